from typing import List, Optional

from loguru import logger

from leadfit.geo import bias_for
from leadfit.models import GeoBias, LeadRecord, SearchQuery
from leadfit.normalize import (
    NormalizedName,
    extract_domain,
    format_us_phone,
    name_from_domain,
    phone_digits,
    significant_name_words,
)

ABBREVIATED_NAME_WORDS = 3


def _clean(value: Optional[str]) -> str:
    return " ".join((value or "").split())


def phone_variants(phone: Optional[str]) -> List[str]:
    """
    Textual variants of a phone number, in the order the directory should try them.

    Args:
        phone (str): Phone as supplied on the lead.

    Returns:
        List[str]: As given, with +1 prefix (10-digit numbers only), human formatted,
                   and digits only. Duplicates removed.
    """
    given = _clean(phone)
    if not given:
        return []
    digits = phone_digits(given)
    variants = [given]
    if len(digits) == 10:
        variants.append(f"+1{digits}")
    formatted = format_us_phone(digits)
    if formatted:
        variants.append(formatted)
    if digits:
        variants.append(digits)
    return _dedupe(variants)


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    out = []
    for item in items:
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            out.append(item)
    return out


def _location(lead: LeadRecord) -> str:
    """``Austin, TX`` / ``Austin`` / ``TX``; empty when neither is known."""
    city, state = _clean(lead.city), _clean(lead.state)
    if city and state:
        return f"{city}, {state}"
    return city or state


def abbreviated_name(name: Optional[str]) -> Optional[str]:
    """First three significant words of a long name; None if the name is already short."""
    words = significant_name_words(name)
    if len(words) <= ABBREVIATED_NAME_WORDS:
        return None
    return " ".join(words[:ABBREVIATED_NAME_WORDS])


def build_search_queries(lead: LeadRecord) -> List[SearchQuery]:
    """
    Build the ordered list of directory queries for a lead, most specific first.

    Generation is pure: no I/O happens here. Every query carries the same 50 km
    geo-bias when the lead's city resolves to a known metro.

    Args:
        lead (LeadRecord): Input lead.

    Returns:
        List[SearchQuery]: Queries in the order they should be tried. Texts are unique
                           (case-insensitive); the first strategy to produce a text keeps it.
    """
    name = _clean(lead.business_name)
    street = _clean(lead.street)
    zip_code = _clean(lead.postal_code)
    location = _location(lead)
    bias: Optional[GeoBias] = bias_for(lead.city, lead.state)

    queries: List[SearchQuery] = []

    def add(strategy: str, *parts: str) -> None:
        text = " ".join(p for p in (_clean(p) for p in parts) if p)
        if text:
            queries.append(SearchQuery(text=text, strategy=strategy, bias=bias))

    # 1) Phone is the single highest-precision identifier
    for variant in phone_variants(lead.phone):
        add("phone", variant)

    if name:
        # 2) Full address
        if street and location:
            add("name_street_city_state", name, f"{street},", location)

        # 3) City/state (+zip)
        if _clean(lead.city) and _clean(lead.state):
            add("name_city_state", name, location, zip_code)

        # 4) State only
        if _clean(lead.state):
            add("name_state", name, _clean(lead.state))

        # 5) Zip only
        if zip_code:
            add("name_zip", name, zip_code)

        # 6) Name + phone
        if _clean(lead.phone):
            add("name_phone", name, _clean(lead.phone))

    # 7) Website domain alone
    domain = extract_domain(lead.website)
    if domain:
        add("website_domain", domain)

    # 8) Long names rarely match verbatim
    short_name = abbreviated_name(name)
    if short_name and location:
        add("abbreviated_name_city_state", short_name, location)
        if zip_code:
            add("abbreviated_name_city_state_zip", short_name, location, zip_code)

    # 9) Name derived from the website domain
    domain_name = name_from_domain(lead.website)
    if domain_name and location:
        if NormalizedName.from_text(domain_name).core != NormalizedName.from_text(name).core:
            add("domain_name_city_state", domain_name, location)
            if zip_code:
                add("domain_name_city_state_zip", domain_name, location, zip_code)

    # 10) Last resort
    if name:
        add("name_only", name)

    unique: List[SearchQuery] = []
    seen = set()
    for query in queries:
        key = query.text.lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(query)

    logger.debug(f"🔎 {len(unique)} search strategies for '{name}' (bias={'yes' if bias else 'no'})")
    return unique
