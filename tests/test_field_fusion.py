import itertools

import pytest

from leadfit.matchers.confidence_matcher import score_match
from leadfit.matchers.field_fusion import apply_fused_fields, fuse_fields
from leadfit.models import MatchResult


def test_high_confidence_match_overwrites_city_with_audit_note(make_lead, make_candidate):
    """Phone+name match moves the lead from Dallas to Chicago and records why."""
    lead = make_lead(phone="5551234567", city="Dallas", state="IL")
    candidate = make_candidate(city="Chicago", state="IL", postal_code="60601",
                               street="1 N State St", formatted_address="1 N State St, Chicago, IL 60601")
    match = score_match(lead, candidate)
    assert match.should_overwrite_address

    fused = fuse_fields(candidate, match, lead)

    assert fused.city == "Chicago"
    assert fused.street == "1 N State St"
    assert fused.postal_code == "60601"
    assert "city: 'Dallas' -> 'Chicago'" in fused.audit_note
    assert candidate.place_id in fused.audit_note


def test_without_override_only_empty_fields_are_filled(make_lead, make_candidate):
    lead = make_lead(city="Round Rock", street=None, postal_code=None)
    match = MatchResult(confidence=2, matched_fields=["businessName", "state"])

    fused = fuse_fields(make_candidate(), match, lead)

    assert fused.city is None
    assert fused.street == "500 Congress Ave"
    assert fused.postal_code == "78701"
    assert fused.audit_note is None  # filling blanks is not an overwrite


def test_website_always_taken_from_candidate(make_lead, make_candidate):
    lead = make_lead(website="http://old-site.com")
    match = MatchResult(confidence=1, matched_fields=["state"])
    fused = fuse_fields(make_candidate(website="https://abcroofing.com"), match, lead)
    assert fused.website == "https://abcroofing.com"


@pytest.mark.parametrize("overwrite, phone_match, name_match", list(itertools.product([True, False], repeat=3)))
def test_phone_never_fused(make_lead, make_candidate, overwrite, phone_match, name_match):
    match = MatchResult(
        confidence=3,
        matched_fields=["phone", "businessName", "state"],
        should_overwrite_address=overwrite,
        is_phone_match=phone_match,
        is_business_name_match=name_match,
    )
    fused = fuse_fields(make_candidate(phone="(999) 999-9999"), match, make_lead())

    assert not hasattr(fused, "phone")
    assert "phone" not in fused.to_dict()
    assert apply_fused_fields(make_lead(), fused).phone == "+15551234567"


def test_refusing_fused_output_changes_nothing(make_lead, make_candidate):
    lead = make_lead(phone="5551234567", city="Dallas")
    candidate = make_candidate(city="Chicago")
    match = score_match(lead, candidate)

    first = fuse_fields(candidate, match, lead)
    updated = apply_fused_fields(lead, first)
    second = fuse_fields(candidate, match, updated)

    assert apply_fused_fields(updated, second) == updated
    assert second.audit_note is None
    assert second.to_dict() == first.to_dict()
