from typing import List

from loguru import logger
from rapidfuzz import fuzz

from leadfit.models import (
    BUSINESS_NAME,
    CITY,
    PHONE,
    PHONE_MISMATCH,
    STATE,
    STATE_MISMATCH,
    VETO_SCORE,
    WEBSITE,
    ZIP,
    CandidateProfile,
    LeadRecord,
    MatchResult,
)
from leadfit.normalize import (
    NormalizedName,
    cities_match,
    extract_domain,
    last_ten_digits,
    normalize_state,
    normalize_zip,
)


def _veto(reason: str, **flags) -> MatchResult:
    return MatchResult(
        confidence=VETO_SCORE,
        matched_fields=[reason],
        vetoed=True,
        veto_reason=reason,
        **flags,
    )


def score_match(lead: LeadRecord, candidate: CandidateProfile) -> MatchResult:
    """
    Compare a lead against a directory candidate.

    Phone is checked first and a mismatch is an unconditional veto. A state mismatch
    vetoes too, unless phone and name both agree or the postal codes are identical;
    either override lets directory address fields replace the lead's.

    Args:
        lead (LeadRecord): The lead as received.
        candidate (CandidateProfile): Profile returned by the directory.

    Returns:
        MatchResult: Confidence equals the number of corroborating fields, or
                     VETO_SCORE with a single veto marker in ``matched_fields``.
    """
    matched: List[str] = []

    lead_name = NormalizedName.from_text(lead.business_name)
    cand_name = NormalizedName.from_text(candidate.name)
    similarity = 0.0
    if lead_name.core and cand_name.core:
        similarity = fuzz.token_set_ratio(lead_name.core, cand_name.core)

    # 1) Phone
    is_phone_match = False
    lead_phone = last_ten_digits(lead.phone)
    cand_phone = last_ten_digits(candidate.phone)
    if lead_phone and cand_phone:
        if lead_phone != cand_phone:
            logger.debug(
                f"❌ Veto {candidate.place_id}: phone {lead_phone} != {cand_phone} "
                f"('{lead.business_name}' vs '{candidate.name}')"
            )
            return _veto(PHONE_MISMATCH, name_similarity=similarity)
        is_phone_match = True
        matched.append(PHONE)

    # 2) Business name
    is_name_match = lead_name.matches(cand_name)
    if is_name_match:
        matched.append(BUSINESS_NAME)

    high_confidence = is_phone_match and is_name_match
    should_overwrite = high_confidence

    # 3) State, with the two override paths
    lead_zip = normalize_zip(lead.postal_code)
    cand_zip = normalize_zip(candidate.postal_code)
    zip_match = bool(lead_zip) and lead_zip == cand_zip

    lead_state = normalize_state(lead.state)
    cand_state = normalize_state(candidate.state)
    if lead_state and cand_state:
        if lead_state == cand_state:
            matched.append(STATE)
        elif high_confidence or zip_match:
            should_overwrite = True
            logger.info(
                f"↪️ State override for {candidate.place_id}: {lead_state} -> {cand_state} "
                f"({'phone+name' if high_confidence else 'zip'})"
            )
        else:
            logger.debug(
                f"❌ Veto {candidate.place_id}: state {lead_state} != {cand_state} "
                f"without phone+name or zip corroboration"
            )
            return _veto(
                STATE_MISMATCH,
                is_phone_match=is_phone_match,
                is_business_name_match=is_name_match,
                name_similarity=similarity,
            )

    # 4) City, zip, website
    if cities_match(lead.city, candidate.city):
        matched.append(CITY)
    if zip_match:
        matched.append(ZIP)
    lead_domain = extract_domain(lead.website)
    if lead_domain and lead_domain == extract_domain(candidate.website):
        matched.append(WEBSITE)

    result = MatchResult(
        confidence=len(matched),
        matched_fields=matched,
        high_confidence_override=high_confidence,
        should_overwrite_address=should_overwrite,
        is_phone_match=is_phone_match,
        is_business_name_match=is_name_match,
        name_similarity=similarity,
    )
    logger.debug(
        f"🧮 {candidate.place_id}: confidence={result.confidence} matched={matched} "
        f"overwrite={should_overwrite} similarity={similarity:.0f}"
    )
    return result
