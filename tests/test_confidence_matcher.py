import pytest

from leadfit.matchers.confidence_matcher import score_match
from leadfit.models import PHONE_MISMATCH, STATE_MISMATCH, VETO_SCORE


def test_phone_and_name_match_is_high_confidence(make_lead, make_candidate):
    result = score_match(make_lead(), make_candidate())

    assert not result.vetoed
    assert result.is_phone_match and result.is_business_name_match
    assert result.high_confidence_override
    assert result.matched_fields == ["phone", "businessName", "state", "city"]
    assert result.confidence == 4
    assert result.is_accepted
    assert result.name_similarity == 100


@pytest.mark.parametrize("extra", [
    {},
    {"city": "Austin", "postal_code": "78701", "website": "https://abcroofing.com"},
])
def test_phone_mismatch_always_vetoes(make_lead, make_candidate, extra):
    """No number of other agreeing fields can rescue a phone mismatch."""
    lead = make_lead(phone="512-555-0000", **extra)
    candidate = make_candidate(website="https://abcroofing.com")

    result = score_match(lead, candidate)

    assert result.vetoed
    assert result.veto_reason == PHONE_MISMATCH
    assert result.confidence == VETO_SCORE
    assert result.matched_fields == [PHONE_MISMATCH]
    assert not result.is_accepted


def test_state_mismatch_without_override_vetoes(make_lead, make_candidate):
    lead = make_lead(phone=None, state="TX", postal_code="78701")
    candidate = make_candidate(state="CA", postal_code="90210", city="Los Angeles")

    result = score_match(lead, candidate)

    assert result.vetoed
    assert result.veto_reason == STATE_MISMATCH
    assert result.matched_fields == [STATE_MISMATCH]
    assert result.confidence == VETO_SCORE


def test_state_mismatch_overridden_by_phone_and_name(make_lead, make_candidate):
    result = score_match(make_lead(state="TX"), make_candidate(state="OK"))

    assert not result.vetoed
    assert result.should_overwrite_address
    assert "state" not in result.matched_fields


def test_state_mismatch_overridden_by_exact_zip(make_lead, make_candidate):
    lead = make_lead(phone=None, business_name="Totally Different Name", postal_code="78701")
    candidate = make_candidate(state="NM")

    result = score_match(lead, candidate)

    assert not result.vetoed
    assert result.should_overwrite_address
    assert not result.high_confidence_override
    assert "zip" in result.matched_fields


def test_state_mismatch_with_phone_match_but_name_mismatch_vetoes(make_lead, make_candidate):
    result = score_match(make_lead(business_name="XYZ Landscaping"), make_candidate(state="CA"))
    assert result.veto_reason == STATE_MISMATCH


def test_confidence_counts_corroborating_fields(make_lead, make_candidate):
    lead = make_lead(phone=None, business_name="Other Co", city=None, state=None)
    assert score_match(lead, make_candidate()).confidence == 0
    assert not score_match(lead, make_candidate()).is_accepted

    lead = make_lead(phone=None, business_name="Other Co", city="austin", state=None, website="abcroofing.com")
    result = score_match(lead, make_candidate(website="https://www.abcroofing.com/"))
    assert result.matched_fields == ["city", "website"]
    assert result.is_accepted


def test_same_state_is_not_an_overwrite(make_lead, make_candidate):
    lead = make_lead(phone=None)
    result = score_match(lead, make_candidate())
    assert not result.should_overwrite_address
    assert result.matched_fields == ["businessName", "state", "city"]
