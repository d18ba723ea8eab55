"""
Maps the 0-100 fit score onto the CRM's 0-5 lead score.

Only paid-social and search lead sources receive an automatic CRM score.
"""
from typing import Optional

ALLOWED_LEAD_SOURCES = {"facebook", "tiktok", "google"}

SCORE_LABELS = {
    0: "Disqualified",
    1: "Low Quality",
    2: "MQL",
    3: "Good MQL",
    4: "High Quality",
    5: "Premium",
}


def fit_score_to_crm_score(fit_score: Optional[int]) -> int:
    """
    0 -> 0, 1-39 -> 1, 40-59 -> 2, 60-79 -> 3, 80-99 -> 4, 100 -> 5.
    """
    if not fit_score:
        return 0
    if fit_score >= 100:
        return 5
    if fit_score >= 80:
        return 4
    if fit_score >= 60:
        return 3
    if fit_score >= 40:
        return 2
    return 1


def crm_score_label(score: int) -> str:
    return SCORE_LABELS.get(score, "Unknown")


def should_update_crm_score(lead_source: Optional[str]) -> bool:
    if not lead_source:
        return False
    return lead_source.strip().lower() in ALLOWED_LEAD_SOURCES


def crm_score_for(fit_score: Optional[int], lead_source: Optional[str]) -> Optional[int]:
    """CRM score for allowed lead sources; None for every other source."""
    if not should_update_crm_score(lead_source):
        return None
    return fit_score_to_crm_score(fit_score)
