"""
Typed data models for the lead resolution and scoring pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class LeadRecord:
    """Input lead loaded from CSV or handed over by the caller. Never mutated."""
    business_name: str
    phone: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    street: Optional[str] = None
    postal_code: Optional[str] = None
    website: Optional[str] = None
    lead_source: Optional[str] = None


@dataclass(frozen=True)
class GeoBias:
    """Circle the directory search should prefer results inside of."""
    latitude: float
    longitude: float
    radius_meters: float = 50000.0


@dataclass(frozen=True)
class SearchQuery:
    """One search strategy: the text sent to the directory plus an optional bias."""
    text: str
    strategy: str
    bias: Optional[GeoBias] = None


@dataclass
class CandidateProfile:
    """Directory profile fetched for a candidate id. Never cached across leads."""
    place_id: str
    name: Optional[str] = None
    phone: Optional[str] = None
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    types: List[str] = field(default_factory=list)
    rating: Optional[float] = None
    review_count: Optional[int] = None
    is_operational: bool = False
    is_service_area: bool = False
    website: Optional[str] = None  # Already filtered against the social/directory blocklist


# Matched-field names
PHONE = "phone"
STATE = "state"
CITY = "city"
ZIP = "zip"
WEBSITE = "website"
BUSINESS_NAME = "businessName"

# Veto markers; each replaces the whole matched-field set when it fires
PHONE_MISMATCH = "PHONE_MISMATCH"
STATE_MISMATCH = "STATE_MISMATCH"

VETO_SCORE = -10


@dataclass
class MatchResult:
    """Outcome of comparing a lead against a candidate profile."""
    confidence: int
    matched_fields: List[str] = field(default_factory=list)
    vetoed: bool = False
    veto_reason: Optional[str] = None  # PHONE_MISMATCH or STATE_MISMATCH
    high_confidence_override: bool = False
    should_overwrite_address: bool = False
    is_phone_match: bool = False
    is_business_name_match: bool = False
    name_similarity: float = 0.0  # rapidfuzz token_set_ratio, diagnostics only

    @property
    def is_accepted(self) -> bool:
        """A non-vetoed candidate is kept with one corroborating field, or phone + name."""
        if self.vetoed:
            return False
        if self.is_phone_match and self.is_business_name_match:
            return True
        return self.confidence >= 1


class LocationClass(str, Enum):
    STOREFRONT = "storefront"
    OFFICE = "office"
    SERVICE_AREA = "service_area"
    RESIDENTIAL = "residential"
    UNKNOWN = "unknown"


@dataclass
class FusedFields:
    """
    Directory values approved for propagation back to the caller.

    Has no phone attribute: the lead's phone is never replaced by directory data.
    """
    website: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    audit_note: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        out = {
            "website": self.website,
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip": self.postal_code,
        }
        return {k: v for k, v in out.items() if v is not None}


@dataclass
class DemographicData:
    """Firmographic data from the primary demographic provider."""
    years_in_business: Optional[float] = None
    founded_year: Optional[int] = None
    employee_count: Optional[int] = None
    size_range: Optional[str] = None  # e.g. "11-50" or "10001+"
    industry: Optional[str] = None


@dataclass
class LegacyFirmographics:
    """Lowest-priority firmographic source kept for older imports."""
    years_in_business: Optional[float] = None
    employee_estimate: Optional[int] = None


@dataclass
class WebsiteSignals:
    """Tracking technologies detected on the website plus domain registration age."""
    has_meta_pixel: bool = False
    has_ga4: bool = False
    has_google_ads_tag: bool = False
    has_tiktok_pixel: bool = False
    has_hubspot: bool = False
    marketing_tools_detected: List[str] = field(default_factory=list)
    domain_age_years: Optional[float] = None

    @property
    def pixel_count(self) -> int:
        """Tracking pixels only; marketing automation such as HubSpot is not counted."""
        return sum([
            self.has_meta_pixel,
            self.has_ga4,
            self.has_google_ads_tag,
            self.has_tiktok_pixel,
        ])


@dataclass
class EnrichmentBundle:
    """Everything known about one lead after enrichment. Any part may be missing."""
    lead: LeadRecord
    candidate: Optional[CandidateProfile] = None
    match: Optional[MatchResult] = None
    location_class: LocationClass = LocationClass.UNKNOWN
    fused: Optional[FusedFields] = None
    demographics: Optional[DemographicData] = None
    website_signals: Optional[WebsiteSignals] = None
    legacy: Optional[LegacyFirmographics] = None

    @property
    def has_directory_match(self) -> bool:
        return (
            self.candidate is not None
            and self.match is not None
            and self.match.is_accepted
        )

    @property
    def resolved_website(self) -> Optional[str]:
        if self.fused and self.fused.website:
            return self.fused.website
        return self.lead.website or None


@dataclass
class ScoreBreakdown:
    """Integer points per signal plus the clamped total."""
    directory_match: int = 0
    website: int = 0
    reviews: int = 0
    years_in_business: int = 0
    employees: int = 0
    location_type: int = 0
    digital_marketing: int = 0
    total: int = 0
    years_source: Optional[str] = None
    employees_source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directory_match": self.directory_match,
            "website": self.website,
            "reviews": self.reviews,
            "years_in_business": self.years_in_business,
            "employees": self.employees,
            "location_type": self.location_type,
            "digital_marketing": self.digital_marketing,
            "total": self.total,
        }


@dataclass
class LeadEnrichment:
    """Final per-lead result handed back to the caller for persistence."""
    lead: LeadRecord
    bundle: EnrichmentBundle
    breakdown: ScoreBreakdown
    fit_tier: str
    output: Dict[str, Any]
    errors: List[str] = field(default_factory=list)
