import pytest

from leadfit.models import CandidateProfile, LeadRecord


@pytest.fixture
def make_lead():
    """Factory for LeadRecord; defaults to ABC Roofing in Austin, TX with an 11-digit phone."""
    def _make(**overrides) -> LeadRecord:
        fields = dict(
            business_name="ABC Roofing",
            phone="+15551234567",
            city="Austin",
            state="TX",
        )
        fields.update(overrides)
        return LeadRecord(**fields)
    return _make


@pytest.fixture
def make_candidate():
    """Factory for CandidateProfile; defaults to an operational Austin roofing contractor with 31 reviews."""
    def _make(**overrides) -> CandidateProfile:
        fields = dict(
            place_id="ChIJabc123",
            name="ABC Roofing LLC",
            phone="(555) 123-4567",
            formatted_address="500 Congress Ave, Austin, TX 78701, USA",
            street="500 Congress Ave",
            city="Austin",
            state="TX",
            postal_code="78701",
            types=["roofing_contractor", "point_of_interest", "establishment"],
            rating=4.7,
            review_count=31,
            is_operational=True,
            is_service_area=False,
            website=None,
        )
        fields.update(overrides)
        return CandidateProfile(**fields)
    return _make
