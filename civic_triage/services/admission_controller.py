"""
Admission Controller - decides whether a new report may be created.

DESIGN PRINCIPLES:
- Expected business outcomes are RETURNED, never raised
- Verification check runs before, and independently of, the daily quota
- The load-test bypass arrives as an explicit AdmissionPolicy value
- No persistence here; the caller stores the report

Rules (in order):
1. Anonymous submission  -> admit as Pending, no quota
2. UNRESTRICTED policy   -> admit, skip every check
3. Unverified + already submitted once -> VerificationRequired
4. 24h count >= trust-tier limit       -> DailyLimitReached
5. Otherwise admit with the trust-tier starting status
"""

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union
import logging

from pydantic import BaseModel, Field

from civic_triage.core.settings import Settings
from civic_triage.models.citizen import CitizenSnapshot
from civic_triage.models.trust import AdmissionPolicy, TrustLevel
from civic_triage.services.trust_engine import (
    DEFAULT_TRUST_LEVEL,
    compute_trust_level,
    daily_report_limit,
    initial_status_for_level,
)

logger = logging.getLogger(__name__)


class RejectionReason(str, Enum):
    VERIFICATION_REQUIRED = "VerificationRequired"
    DAILY_LIMIT_REACHED = "DailyLimitReached"


class AdmissionGranted(BaseModel):
    """Report may be created with this starting status."""
    admitted: Literal[True] = True
    status: str
    requires_manual_review: bool
    trust_level: Optional[TrustLevel] = Field(None, description="None for anonymous submissions")
    daily_limit: Optional[int] = None
    submitted_today: Optional[int] = Field(None, description="Reports in the window before this one")


class AdmissionRejected(BaseModel):
    """Report must not be created."""
    admitted: Literal[False] = False
    reason: RejectionReason
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


AdmissionOutcome = Union[AdmissionGranted, AdmissionRejected]


def admission_policy_from_settings(app_settings: Settings) -> AdmissionPolicy:
    """
    Turn the DISABLE_ADMISSION_GATING switch into a policy value.

    The switch never applies in production.
    """
    if not app_settings.DISABLE_ADMISSION_GATING:
        return AdmissionPolicy.NORMAL

    if app_settings.is_production:
        logger.warning("DISABLE_ADMISSION_GATING is set in production; ignoring it")
        return AdmissionPolicy.NORMAL

    return AdmissionPolicy.UNRESTRICTED


def evaluate_submission(
    citizen: Optional[CitizenSnapshot],
    policy: AdmissionPolicy = AdmissionPolicy.NORMAL
) -> AdmissionOutcome:
    """
    Evaluate a submission against verification and trust-tier quota rules.

    Args:
        citizen: Submitting citizen, or None for an anonymous submission
        policy: NORMAL, or UNRESTRICTED for load testing

    Returns:
        AdmissionGranted or AdmissionRejected
    """
    if citizen is None:
        initial = initial_status_for_level(DEFAULT_TRUST_LEVEL)
        return AdmissionGranted(
            status=initial.status,
            requires_manual_review=initial.requires_manual_review,
        )

    trust_level = compute_trust_level(citizen.trust_score)
    limit = daily_report_limit(trust_level)
    initial = initial_status_for_level(trust_level)

    if policy is AdmissionPolicy.UNRESTRICTED:
        logger.debug(f"Admission gating bypassed for citizen {citizen.id}")
        return AdmissionGranted(
            status=initial.status,
            requires_manual_review=initial.requires_manual_review,
            trust_level=trust_level,
            daily_limit=limit,
            submitted_today=citizen.reports_last_24h,
        )

    # First report is a free pass so unverified citizens can get started
    if not citizen.is_verified and citizen.lifetime_report_count >= 1:
        logger.info(f"Citizen {citizen.id} rejected: verification required")
        return AdmissionRejected(
            reason=RejectionReason.VERIFICATION_REQUIRED,
            message="Please verify your account before submitting another report.",
        )

    if limit is not None and citizen.reports_last_24h >= limit:
        logger.info(
            f"Citizen {citizen.id} rejected: daily limit reached "
            f"({citizen.reports_last_24h}/{limit}, trust {trust_level.value})"
        )
        return AdmissionRejected(
            reason=RejectionReason.DAILY_LIMIT_REACHED,
            message=(
                f"Daily limit reached: {trust_level.value} trust accounts may submit "
                f"{limit} report(s) per 24 hours."
            ),
            details={
                "trust_level": trust_level.value,
                "limit": limit,
                "submitted_today": citizen.reports_last_24h,
            },
        )

    return AdmissionGranted(
        status=initial.status,
        requires_manual_review=initial.requires_manual_review,
        trust_level=trust_level,
        daily_limit=limit,
        submitted_today=citizen.reports_last_24h,
    )
