import pytest

from leadfit.matchers.business_type import classify_location
from leadfit.models import LocationClass


def test_contractor_with_address_is_office(make_candidate):
    """Roofing contractor that is operational with an address has a real base."""
    assert classify_location(make_candidate()) == LocationClass.OFFICE


def test_contractor_without_address_is_service_area(make_candidate):
    candidate = make_candidate(formatted_address=None)
    assert classify_location(candidate) == LocationClass.SERVICE_AREA


def test_service_area_flag_beats_storefront_tags(make_candidate):
    candidate = make_candidate(types=["store", "hardware_store"], is_service_area=True)
    assert classify_location(candidate) == LocationClass.SERVICE_AREA


@pytest.mark.parametrize("types, expected", [
    (["lodging", "hotel"], LocationClass.RESIDENTIAL),
    (["restaurant", "food"], LocationClass.STOREFRONT),
    (["beauty_salon"], LocationClass.STOREFRONT),
    (["dentist", "health"], LocationClass.OFFICE),
    (["car_repair"], LocationClass.OFFICE),
    (["point_of_interest", "establishment"], LocationClass.OFFICE),
])
def test_tag_lists_in_priority_order(make_candidate, types, expected):
    assert classify_location(make_candidate(types=types)) == expected


def test_unknown_without_base_or_tags(make_candidate):
    candidate = make_candidate(types=["point_of_interest"], is_operational=False)
    assert classify_location(candidate) == LocationClass.UNKNOWN
    assert classify_location(None) == LocationClass.UNKNOWN


@pytest.mark.parametrize("review_count", [None, 0, 31, 500])
def test_review_volume_does_not_change_contractor_class(make_candidate, review_count):
    assert classify_location(make_candidate(review_count=review_count)) == LocationClass.OFFICE
    candidate = make_candidate(review_count=review_count, formatted_address=None)
    assert classify_location(candidate) == LocationClass.SERVICE_AREA
