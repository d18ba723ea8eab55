"""
Field fusion: which directory values may flow back into the lead.

Rules:
- Website comes from the directory whenever the (filtered) profile has one.
- Phone never comes from the directory.
- Street, city, state and zip fill empty lead fields, and replace populated ones
  only when the match carries ``should_overwrite_address``.
"""
import dataclasses
from typing import List, Optional

from loguru import logger

from leadfit.models import CandidateProfile, FusedFields, LeadRecord, MatchResult

# (FusedFields attribute, LeadRecord attribute, CandidateProfile attribute, label)
ADDRESS_FIELDS = (
    ("street", "street", "street", "street"),
    ("city", "city", "city", "city"),
    ("state", "state", "state", "state"),
    ("postal_code", "postal_code", "postal_code", "zip"),
)


def _present(value: Optional[str]) -> bool:
    return bool((value or "").strip())


def fuse_fields(
    candidate: CandidateProfile,
    match: MatchResult,
    lead: LeadRecord,
) -> FusedFields:
    """
    Decide per field whether to keep, fill or overwrite.

    Args:
        candidate (CandidateProfile): Accepted directory profile.
        match (MatchResult): Confidence result for that profile.
        lead (LeadRecord): The lead's original values.

    Returns:
        FusedFields: Values approved for propagation. ``audit_note`` is set only when
                     a previously populated address field actually changed.
    """
    fused = FusedFields()
    if _present(candidate.website):
        fused.website = candidate.website

    changes: List[str] = []
    for fused_attr, lead_attr, cand_attr, label in ADDRESS_FIELDS:
        new_value = getattr(candidate, cand_attr)
        if not _present(new_value):
            continue
        old_value = getattr(lead, lead_attr)
        if _present(old_value) and not match.should_overwrite_address:
            continue
        setattr(fused, fused_attr, new_value)
        if _present(old_value) and old_value.strip() != new_value.strip():
            changes.append(f"{label}: '{old_value}' -> '{new_value}'")

    if changes:
        fused.audit_note = (
            f"Address overwritten from directory profile {candidate.place_id} "
            f"(matched on {', '.join(match.matched_fields)}): " + "; ".join(changes)
        )
        logger.info(f"📝 {lead.business_name}: {fused.audit_note}")

    return fused


def apply_fused_fields(lead: LeadRecord, fused: FusedFields) -> LeadRecord:
    """Return a copy of ``lead`` with the fused values applied. Phone is untouched."""
    updates = {
        "website": fused.website,
        "street": fused.street,
        "city": fused.city,
        "state": fused.state,
        "postal_code": fused.postal_code,
    }
    return dataclasses.replace(lead, **{k: v for k, v in updates.items() if v is not None})
