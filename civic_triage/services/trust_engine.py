"""
Trust Engine - maps a citizen's trust score to a trust level and its policy.

DESIGN PRINCIPLES:
- Pure functions, no I/O
- Total over every numeric input (missing or non-finite scores count as 0)
- Thresholds are closed on the LOW/HIGH side: -2 is LOW, 3 is HIGH
"""

import math
from typing import Optional

from civic_triage.models.report import ReportStatus
from civic_triage.models.trust import InitialStatus, TrustLevel

LOW_TRUST_THRESHOLD = -2
HIGH_TRUST_THRESHOLD = 3

# None means no cap
DAILY_REPORT_LIMITS = {
    TrustLevel.LOW: 1,
    TrustLevel.MEDIUM: 5,
    TrustLevel.HIGH: None,
}

# Anonymous submitters get the MEDIUM starting status but no quota
DEFAULT_TRUST_LEVEL = TrustLevel.MEDIUM


def _coerce_score(score: Optional[float]) -> float:
    if score is None:
        return 0.0
    try:
        value = float(score)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def compute_trust_level(score: Optional[float]) -> TrustLevel:
    """
    Classify a trust score.

    Args:
        score: Citizen trust score

    Returns:
        LOW for score <= -2, HIGH for score >= 3, MEDIUM otherwise
    """
    value = _coerce_score(score)
    if value <= LOW_TRUST_THRESHOLD:
        return TrustLevel.LOW
    if value >= HIGH_TRUST_THRESHOLD:
        return TrustLevel.HIGH
    return TrustLevel.MEDIUM


def daily_report_limit(level: TrustLevel) -> Optional[int]:
    """Reports allowed per rolling 24 hours, or None for unlimited."""
    return DAILY_REPORT_LIMITS[TrustLevel(level)]


def requires_manual_review(level: TrustLevel) -> bool:
    return TrustLevel(level) is TrustLevel.LOW


def initial_status_for_level(level: TrustLevel) -> InitialStatus:
    """Starting status of a report submitted at the given trust level."""
    if requires_manual_review(level):
        return InitialStatus(status=ReportStatus.MANUAL_REVIEW.value, requires_manual_review=True)
    return InitialStatus(status=ReportStatus.PENDING.value, requires_manual_review=False)
