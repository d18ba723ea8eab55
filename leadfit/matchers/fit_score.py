"""
Fit score: a bounded, deterministic composite over the enrichment bundle.

Sub-scores (each clamped to its maximum, then summed and clamped to [0, 100]):

| component          | rule                                                         | max |
|--------------------|--------------------------------------------------------------|-----|
| directory_match    | 10 when an accepted directory match exists                   | 10  |
| website            | 10 custom domain, 5 directory-hosted page, 0 absent/builder  | 10  |
| reviews            | >=100: 20, >=15: 15, >=5: 8, else 0                          | 20  |
| years_in_business  | >=8: 20, >=4: 15, >=2: 10, else 0                            | 20  |
| employees          | >=16: 20, >=6: 15, >=3: 10, else 0                           | 20  |
| location_type      | storefront/office 10, service_area 5, else 0                 | 10  |
| digital_marketing  | tracking pixels >=2: 10, ==1: 5, else 0                      | 10  |

Tier thresholds are compared with ``>=`` in descending order, so a value sitting on a
boundary lands in the tier that boundary opens and never above it.
"""
import math
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from loguru import logger

from leadfit.models import EnrichmentBundle, LocationClass, ScoreBreakdown
from leadfit.normalize import extract_domain, is_blocked_website_domain, is_free_builder_domain

DIRECTORY_MATCH_POINTS = 10
WEBSITE_CUSTOM_DOMAIN_POINTS = 10
WEBSITE_DIRECTORY_PAGE_POINTS = 5

# (threshold, points), highest threshold first
REVIEW_TIERS: Tuple[Tuple[float, int], ...] = ((100, 20), (15, 15), (5, 8))
YEARS_TIERS: Tuple[Tuple[float, int], ...] = ((8, 20), (4, 15), (2, 10))
EMPLOYEE_TIERS: Tuple[Tuple[float, int], ...] = ((16, 20), (6, 15), (3, 10))
PIXEL_TIERS: Tuple[Tuple[float, int], ...] = ((2, 10), (1, 5))

LOCATION_POINTS = {
    LocationClass.STOREFRONT: 10,
    LocationClass.OFFICE: 10,
    LocationClass.SERVICE_AREA: 5,
    LocationClass.RESIDENTIAL: 0,
    LocationClass.UNKNOWN: 0,
}

SUB_SCORE_MAX = {
    "directory_match": DIRECTORY_MATCH_POINTS,
    "website": WEBSITE_CUSTOM_DOMAIN_POINTS,
    "reviews": REVIEW_TIERS[0][1],
    "years_in_business": YEARS_TIERS[0][1],
    "employees": EMPLOYEE_TIERS[0][1],
    "location_type": max(LOCATION_POINTS.values()),
    "digital_marketing": PIXEL_TIERS[0][1],
}

# Quality tiers for downstream consumers, highest cut point first
FIT_TIERS: Tuple[Tuple[int, str], ...] = ((80, "Premium"), (60, "High Fit"), (40, "MQL"))
LOWEST_FIT_TIER = "Disqualified"


@dataclass(frozen=True)
class SignalSource:
    """A named place a signal can be read from; ``read`` returns None when absent."""
    name: str
    read: Callable[[EnrichmentBundle], Optional[float]]


def first_available(
    bundle: EnrichmentBundle,
    sources: Sequence[SignalSource],
) -> Tuple[Optional[float], Optional[str]]:
    """
    Evaluate sources in priority order and return the first value that is present.

    Returns:
        Tuple[Optional[float], Optional[str]]: (value, source name), or (None, None).
    """
    for source in sources:
        value = source.read(bundle)
        if value is not None:
            return value, source.name
    return None, None


def _positive(value) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or value <= 0:
        return None
    return value


def _non_negative(value) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or value < 0:
        return None
    return value


def parse_size_range_midpoint(size_range: Optional[str]) -> Optional[int]:
    """
    Midpoint of an employee size range.

    ``"11-50"`` -> 31, ``"1-10"`` -> 6; an open range like ``"10001+"`` uses twice its
    lower bound as the upper bound. Halves round up.
    """
    if not size_range:
        return None
    match = re.search(r"(\d[\d,]*)\s*(?:-\s*(\d[\d,]*))?", size_range)
    if not match:
        return None
    low = int(match.group(1).replace(",", ""))
    high = int(match.group(2).replace(",", "")) if match.group(2) else low * 2
    return int(math.floor((low + high) / 2 + 0.5))


YEARS_SOURCES: Tuple[SignalSource, ...] = (
    SignalSource(
        "demographics",
        lambda b: _non_negative(b.demographics.years_in_business) if b.demographics else None,
    ),
    SignalSource(
        "domain_age",
        lambda b: _non_negative(b.website_signals.domain_age_years) if b.website_signals else None,
    ),
    SignalSource(
        "legacy",
        lambda b: _non_negative(b.legacy.years_in_business) if b.legacy else None,
    ),
)

EMPLOYEE_SOURCES: Tuple[SignalSource, ...] = (
    SignalSource(
        "demographics_count",
        lambda b: _positive(b.demographics.employee_count) if b.demographics else None,
    ),
    SignalSource(
        "demographics_size_range",
        lambda b: _positive(parse_size_range_midpoint(b.demographics.size_range)) if b.demographics else None,
    ),
    SignalSource(
        "legacy",
        lambda b: _positive(b.legacy.employee_estimate) if b.legacy else None,
    ),
)


def tier_points(value: Optional[float], tiers: Sequence[Tuple[float, int]]) -> int:
    """Points of the first (highest) tier whose threshold ``value`` reaches; 0 otherwise."""
    if value is None:
        return 0
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


def website_points(bundle: EnrichmentBundle) -> int:
    website = bundle.resolved_website
    if not extract_domain(website):
        return 0
    if is_blocked_website_domain(website):
        return WEBSITE_DIRECTORY_PAGE_POINTS
    if is_free_builder_domain(website):
        return 0
    return WEBSITE_CUSTOM_DOMAIN_POINTS


def _clamp(value: int, upper: int, lower: int = 0) -> int:
    return max(lower, min(upper, value))


def fit_tier_for(fit_score: int) -> str:
    for cut, label in FIT_TIERS:
        if fit_score >= cut:
            return label
    return LOWEST_FIT_TIER


def compute_score(bundle: EnrichmentBundle) -> ScoreBreakdown:
    """
    Compute the fit score for one lead.

    Missing sources contribute their zero tier; this never raises on partial data.

    Args:
        bundle (EnrichmentBundle): Everything gathered for the lead.

    Returns:
        ScoreBreakdown: Per-component points, the sources used, and the clamped total.
    """
    breakdown = ScoreBreakdown()
    has_match = bundle.has_directory_match

    breakdown.directory_match = DIRECTORY_MATCH_POINTS if has_match else 0
    breakdown.website = website_points(bundle)

    review_count = bundle.candidate.review_count if has_match else None
    breakdown.reviews = tier_points(review_count, REVIEW_TIERS)

    years, breakdown.years_source = first_available(bundle, YEARS_SOURCES)
    breakdown.years_in_business = tier_points(years, YEARS_TIERS)

    employees, breakdown.employees_source = first_available(bundle, EMPLOYEE_SOURCES)
    breakdown.employees = tier_points(employees, EMPLOYEE_TIERS)

    location = bundle.location_class if has_match else LocationClass.UNKNOWN
    breakdown.location_type = LOCATION_POINTS.get(location, 0)

    pixels = bundle.website_signals.pixel_count if bundle.website_signals else 0
    breakdown.digital_marketing = tier_points(pixels, PIXEL_TIERS)

    for name, cap in SUB_SCORE_MAX.items():
        setattr(breakdown, name, _clamp(getattr(breakdown, name), cap))

    raw = sum(getattr(breakdown, name) for name in SUB_SCORE_MAX)
    breakdown.total = _clamp(raw, 100)

    logger.debug(
        f"📊 '{bundle.lead.business_name}': {breakdown.to_dict()} "
        f"(years via {breakdown.years_source}, employees via {breakdown.employees_source})"
    )
    return breakdown


def build_score_output(bundle: EnrichmentBundle, breakdown: ScoreBreakdown) -> dict:
    """
    Score output contract consumed downstream (e.g. by a CRM field mapper).

    Returns:
        dict: ``fit_score``, ``fit_tier`` and ``score_breakdown``, plus ``place_id``,
              ``matched_fields`` and ``should_overwrite_address`` when a match exists.
    """
    output = {
        "fit_score": breakdown.total,
        "fit_tier": fit_tier_for(breakdown.total),
        "score_breakdown": breakdown.to_dict(),
    }
    if bundle.has_directory_match:
        output["place_id"] = bundle.candidate.place_id
        output["matched_fields"] = list(bundle.match.matched_fields)
        output["should_overwrite_address"] = bundle.match.should_overwrite_address
    return output
