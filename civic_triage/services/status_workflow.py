"""
Status Workflow Engine - status vocabulary, trust classification and audit trail.

DESIGN PRINCIPLES:
- Status input is matched case-insensitively to the canonical vocabulary
- Any status may follow any other; staff can correct mistakes freely
- Trust classification compares lowercase status strings, so stored
  legacy spellings still classify correctly
- All transitions logged in status_history
"""

from enum import Enum
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from civic_triage.models.report import ReportStatus

logger = logging.getLogger(__name__)


class StatusClass(str, Enum):
    """How a status affects the owning citizen's trust."""
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


class StatusWorkflowEngine:
    """
    Status rules shared by the triage router and the trust ledger.
    """

    POSITIVE_STATUSES = frozenset({"in progress", "resolved"})
    NEGATIVE_STATUS = "invalid"
    RESOLVED_STATUS = "resolved"

    _CANONICAL: Dict[str, ReportStatus] = {status.value.lower(): status for status in ReportStatus}

    @classmethod
    def normalize_status(cls, status: str) -> str:
        """
        Match a status to the canonical vocabulary.

        Args:
            status: Status as typed by the caller ("resolved", " In progress ")

        Returns:
            Canonical status string ("Resolved", "In Progress")

        Raises:
            ValueError: If the status is not part of the vocabulary
        """
        key = " ".join((status or "").split()).lower()
        canonical = cls._CANONICAL.get(key)
        if canonical is None:
            allowed = [s.value for s in ReportStatus]
            raise ValueError(f"Unknown status '{status}'. Allowed statuses: {allowed}")
        return canonical.value

    @classmethod
    def get_allowed_statuses(cls) -> List[str]:
        return [status.value for status in ReportStatus]

    @classmethod
    def classify(cls, status: Optional[str]) -> StatusClass:
        """Classify a status for trust accounting; unknown or missing statuses are neutral."""
        key = (status or "").strip().lower()
        if key == cls.NEGATIVE_STATUS:
            return StatusClass.NEGATIVE
        if key in cls.POSITIVE_STATUSES:
            return StatusClass.POSITIVE
        return StatusClass.NEUTRAL

    @classmethod
    def is_resolution(cls, status: Optional[str]) -> bool:
        return (status or "").strip().lower() == cls.RESOLVED_STATUS

    @classmethod
    def create_status_history_entry(
        cls,
        action: str,
        from_status: Optional[str],
        to_status: Optional[str],
        actor_type: str,
        actor_id: Optional[str],
        timestamp: datetime,
        note: Optional[str] = None,
        trust_delta: int = 0
    ) -> Dict[str, Any]:
        """
        Create a status history entry for the audit trail.

        Args:
            action: Human-readable action ("Status updated to Resolved")
            from_status: Previous status ("" or None on creation)
            to_status: New status (same as from_status for responses)
            actor_type: citizen / staff / admin / system
            actor_id: Acting user identifier
            timestamp: When the change happened
            note: Optional remarks
            trust_delta: Net trust score change caused by this entry

        Returns:
            Status history entry dict
        """
        return {
            "action": action,
            "from": from_status or "",
            "to": to_status or "",
            "actor_type": actor_type,
            "actor_id": actor_id,
            "note": note or "",
            "trust_delta": trust_delta,
            "timestamp": timestamp,
        }
