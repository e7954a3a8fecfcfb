"""
Trust models shared by the trust engine, admission controller and ledger.

DESIGN PRINCIPLES:
- Trust level is DERIVED from the score on every read, never stored
- The per-report ledger is a single enum, so a report can never carry
  a credit and a penalty at the same time
- Admission policy is an explicit value decided at the request boundary
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TrustLevel(str, Enum):
    """Citizen trust tier derived from the trust score."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class LedgerState(str, Enum):
    """
    Outstanding trust adjustment for one report.

    NONE            - nothing owed
    CREDIT_APPLIED  - the citizen holds a +1 credit for this report
    PENALTY_APPLIED - the citizen carries a -2 penalty for this report
    """
    NONE = "NONE"
    CREDIT_APPLIED = "CREDIT_APPLIED"
    PENALTY_APPLIED = "PENALTY_APPLIED"

    @property
    def credit_applied(self) -> bool:
        return self is LedgerState.CREDIT_APPLIED

    @property
    def penalty_applied(self) -> bool:
        return self is LedgerState.PENALTY_APPLIED

    @classmethod
    def from_flags(cls, credit_applied: bool, penalty_applied: bool) -> "LedgerState":
        """
        Build a ledger state from the legacy pair of booleans.

        Raises:
            ValueError: If both flags are set
        """
        if credit_applied and penalty_applied:
            raise ValueError("A report cannot carry both a trust credit and a trust penalty")
        if credit_applied:
            return cls.CREDIT_APPLIED
        if penalty_applied:
            return cls.PENALTY_APPLIED
        return cls.NONE


class AdmissionPolicy(str, Enum):
    """
    Gating mode for report submissions.

    UNRESTRICTED skips verification and quota checks; only used for
    synthetic load generation outside production.
    """
    NORMAL = "NORMAL"
    UNRESTRICTED = "UNRESTRICTED"


class InitialStatus(BaseModel):
    """Starting status of an admitted report."""
    status: str
    requires_manual_review: bool


class TrustMetadata(BaseModel):
    """Trust summary shown to a citizen before they submit."""
    citizen_id: str
    trust_score: float
    trust_level: TrustLevel
    daily_limit: Optional[int] = Field(None, description="None means unlimited")
    submitted_today: int
    remaining_today: Optional[int] = Field(None, description="None means unlimited")
    requires_manual_review: bool
    is_verified: bool
