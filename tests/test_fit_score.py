import itertools

import pytest

from leadfit.matchers.confidence_matcher import score_match
from leadfit.matchers.fit_score import (
    REVIEW_TIERS,
    SUB_SCORE_MAX,
    build_score_output,
    compute_score,
    fit_tier_for,
    parse_size_range_midpoint,
    tier_points,
)
from leadfit.models import (
    DemographicData,
    EnrichmentBundle,
    FusedFields,
    LegacyFirmographics,
    LocationClass,
    MatchResult,
    WebsiteSignals,
)


def matched_bundle(lead, candidate, **kwargs) -> EnrichmentBundle:
    return EnrichmentBundle(lead=lead, candidate=candidate, match=score_match(lead, candidate), **kwargs)


def test_matched_contractor_with_reviews_and_office(make_lead, make_candidate):
    """Matched roofing contractor: match + second review tier + office location."""
    bundle = matched_bundle(make_lead(), make_candidate(), location_class=LocationClass.OFFICE)

    breakdown = compute_score(bundle)

    assert breakdown.directory_match == 10
    assert breakdown.reviews == 15
    assert breakdown.location_type == 10
    assert breakdown.website == 0
    assert breakdown.total == 35
    assert fit_tier_for(breakdown.total) == "Disqualified"


def test_domain_age_fills_missing_years(make_lead):
    bundle = EnrichmentBundle(
        lead=make_lead(),
        demographics=DemographicData(years_in_business=None, employee_count=12),
        website_signals=WebsiteSignals(domain_age_years=9),
    )

    breakdown = compute_score(bundle)

    assert breakdown.years_in_business == 20
    assert breakdown.years_source == "domain_age"
    assert breakdown.employees == 15
    assert breakdown.employees_source == "demographics_count"


def test_primary_source_wins_over_fallbacks(make_lead):
    bundle = EnrichmentBundle(
        lead=make_lead(),
        demographics=DemographicData(years_in_business=3),
        website_signals=WebsiteSignals(domain_age_years=12),
        legacy=LegacyFirmographics(years_in_business=20, employee_estimate=4),
    )
    breakdown = compute_score(bundle)

    assert breakdown.years_in_business == 10
    assert breakdown.years_source == "demographics"
    assert breakdown.employees == 10
    assert breakdown.employees_source == "legacy"


def test_size_range_used_when_count_missing(make_lead):
    bundle = EnrichmentBundle(lead=make_lead(), demographics=DemographicData(employee_count=0, size_range="11-50"))
    breakdown = compute_score(bundle)
    assert breakdown.employees == 20
    assert breakdown.employees_source == "demographics_size_range"


@pytest.mark.parametrize("size_range, expected", [
    ("1-10", 6),
    ("11-50", 31),
    ("51-200", 126),
    ("10001+", 15002),
    ("", None),
    ("unknown", None),
])
def test_parse_size_range_midpoint(size_range, expected):
    assert parse_size_range_midpoint(size_range) == expected


@pytest.mark.parametrize("value, points", [
    (None, 0), (0, 0), (4, 0), (5, 8), (14, 8), (15, 15), (99, 15), (100, 20), (5000, 20),
])
def test_review_tier_boundaries(value, points):
    assert tier_points(value, REVIEW_TIERS) == points


@pytest.mark.parametrize("score, tier", [
    (0, "Disqualified"), (39, "Disqualified"), (40, "MQL"), (59, "MQL"),
    (60, "High Fit"), (79, "High Fit"), (80, "Premium"), (100, "Premium"),
])
def test_fit_tiers(score, tier):
    assert fit_tier_for(score) == tier


@pytest.mark.parametrize("website, points", [
    ("https://abcroofing.com", 10),
    ("https://www.facebook.com/abcroofing", 5),
    ("https://abcroofing.wixsite.com/home", 0),
    (None, 0),
])
def test_website_quality_tiers(make_lead, website, points):
    assert compute_score(EnrichmentBundle(lead=make_lead(website=website))).website == points


def test_fused_website_preferred_over_lead_website(make_lead):
    bundle = EnrichmentBundle(
        lead=make_lead(website="https://www.yelp.com/biz/abc"),
        fused=FusedFields(website="https://abcroofing.com"),
    )
    assert compute_score(bundle).website == 10


def test_pixels_count_but_hubspot_does_not(make_lead):
    signals = WebsiteSignals(has_meta_pixel=True, has_hubspot=True)
    assert compute_score(EnrichmentBundle(lead=make_lead(), website_signals=signals)).digital_marketing == 5
    signals.has_ga4 = True
    assert compute_score(EnrichmentBundle(lead=make_lead(), website_signals=signals)).digital_marketing == 10


def test_vetoed_candidate_earns_no_directory_points(make_lead, make_candidate):
    bundle = matched_bundle(make_lead(phone="5125550000"), make_candidate(review_count=500),
                            location_class=LocationClass.STOREFRONT)
    breakdown = compute_score(bundle)

    assert breakdown.directory_match == 0
    assert breakdown.reviews == 0
    assert breakdown.location_type == 0
    assert "place_id" not in build_score_output(bundle, breakdown)


@pytest.mark.parametrize("reviews, years, employees, location, pixels", list(itertools.product(
    [None, 3, 50, 10_000],
    [None, -2, 1, 30],
    [None, 0, 7, 100_000],
    [LocationClass.STOREFRONT, LocationClass.SERVICE_AREA, LocationClass.UNKNOWN],
    [0, 1, 4],
)))
def test_score_always_bounded(make_lead, make_candidate, reviews, years, employees, location, pixels):
    signals = WebsiteSignals(
        has_meta_pixel=pixels >= 1,
        has_ga4=pixels >= 2,
        has_google_ads_tag=pixels >= 3,
        has_tiktok_pixel=pixels >= 4,
    )
    bundle = matched_bundle(
        make_lead(website="https://abcroofing.com"),
        make_candidate(review_count=reviews),
        location_class=location,
        demographics=DemographicData(years_in_business=years, employee_count=employees),
        website_signals=signals,
    )
    breakdown = compute_score(bundle)

    assert 0 <= breakdown.total <= 100
    for name, cap in SUB_SCORE_MAX.items():
        assert 0 <= getattr(breakdown, name) <= cap


def test_fully_loaded_lead_scores_100(make_lead, make_candidate):
    bundle = matched_bundle(
        make_lead(website="https://abcroofing.com"),
        make_candidate(review_count=250),
        location_class=LocationClass.STOREFRONT,
        demographics=DemographicData(years_in_business=12, employee_count=40),
        website_signals=WebsiteSignals(has_meta_pixel=True, has_ga4=True, has_tiktok_pixel=True),
    )
    breakdown = compute_score(bundle)
    output = build_score_output(bundle, breakdown)

    assert breakdown.total == 100
    assert output["fit_score"] == 100
    assert output["fit_tier"] == "Premium"
    assert output["place_id"] == "ChIJabc123"
    assert output["matched_fields"] == ["phone", "businessName", "state", "city"]
    assert output["should_overwrite_address"] is True
    assert output["score_breakdown"]["total"] == 100


def test_unaccepted_match_is_not_a_directory_match(make_lead, make_candidate):
    bundle = EnrichmentBundle(lead=make_lead(), candidate=make_candidate(), match=MatchResult(confidence=0))
    assert compute_score(bundle).directory_match == 0
