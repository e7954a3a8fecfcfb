"""
Trust Store - the record-store boundary used by the triage core.

DESIGN PRINCIPLES:
- Reads and writes for one admission are serialized per citizen
- Reads and writes for one transition are serialized per report AND per
  owning citizen, and commit together or not at all
- Store errors surface as StoreFailure; the core never retries them
- Business decisions are passed IN as callables and run inside the
  serialized section, so the store owns no trust rules
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple
import logging
import secrets
import string

from pydantic import BaseModel

from civic_triage.core.settings import settings
from civic_triage.models.citizen import CitizenSnapshot
from civic_triage.models.report import ReportCreate, ReportRecord
from civic_triage.models.trust import LedgerState
from civic_triage.services.admission_controller import AdmissionOutcome
from civic_triage.services.status_workflow import StatusWorkflowEngine
from civic_triage.services.transition_ledger import LedgerOutcome

logger = logging.getLogger(__name__)

REPORT_WINDOW = timedelta(hours=24)
TRACKING_ID_ALPHABET = string.ascii_uppercase + string.digits

AdmissionDecider = Callable[[Optional[CitizenSnapshot]], AdmissionOutcome]
LedgerFn = Callable[[Optional[str], Optional[str], LedgerState, bool], LedgerOutcome]


class TrustStoreError(Exception):
    """Base class for record-store errors."""


class CitizenNotFound(TrustStoreError):
    def __init__(self, citizen_id: str):
        super().__init__(f"Citizen {citizen_id} not found")
        self.citizen_id = citizen_id


class ReportNotFound(TrustStoreError):
    def __init__(self, report_id: str):
        super().__init__(f"Report {report_id} not found")
        self.report_id = report_id


class StoreFailure(TrustStoreError):
    """Underlying persistence error during a read or write."""


class TransitionResult(BaseModel):
    """Committed effect of one status change or response."""
    report: ReportRecord
    previous_status: Optional[str] = None
    status_changed: bool = False
    ledger: Optional[LedgerOutcome] = None
    trust_score: Optional[float] = None
    citizen_name: Optional[str] = None

    @property
    def trust_delta(self) -> int:
        return self.ledger.score_delta if self.ledger else 0


def generate_tracking_id(prefix: Optional[str] = None) -> str:
    """Public tracking ID, e.g. RPT-7QK2ZD."""
    suffix = "".join(secrets.choice(TRACKING_ID_ALPHABET) for _ in range(6))
    return f"{prefix or settings.TRACKING_ID_PREFIX}-{suffix}"


class TrustStore(ABC):
    """
    Abstract record store.

    Implementations must honour the serialization rules in the module
    docstring; the helpers below hold the shared bookkeeping.
    """

    @abstractmethod
    def get_citizen(self, citizen_id: str, now: datetime) -> CitizenSnapshot:
        """
        Raises:
            CitizenNotFound: If the citizen does not exist
            StoreFailure: On persistence errors
        """
        raise NotImplementedError

    @abstractmethod
    def admit_report(
        self,
        citizen_id: Optional[str],
        draft: ReportCreate,
        decide: AdmissionDecider,
        now: datetime
    ) -> Tuple[AdmissionOutcome, Optional[ReportRecord]]:
        """Run the admission decision and insert the report only if admitted."""
        raise NotImplementedError

    @abstractmethod
    def get_report(self, report_id: str) -> ReportRecord:
        raise NotImplementedError

    @abstractmethod
    def apply_transition(
        self,
        report_id: str,
        new_status: str,
        actor_type: str,
        actor_id: Optional[str],
        note: Optional[str],
        now: datetime,
        ledger: LedgerFn
    ) -> TransitionResult:
        """Change status and settle the trust ledger in one committed unit."""
        raise NotImplementedError

    @abstractmethod
    def record_response(
        self,
        report_id: str,
        actor_type: str,
        actor_id: Optional[str],
        message: str,
        now: datetime
    ) -> TransitionResult:
        """Append a staff response to the history without changing status."""
        raise NotImplementedError

    @abstractmethod
    def add_notification(self, notification: Dict[str, Any]) -> str:
        """Store an in-app notification and return its ID."""
        raise NotImplementedError

    def is_healthy(self) -> bool:
        return True

    # Shared bookkeeping

    @staticmethod
    def _build_report(
        report_id: str,
        draft: ReportCreate,
        status: str,
        requires_manual_review: bool,
        now: datetime
    ) -> ReportRecord:
        history_entry = StatusWorkflowEngine.create_status_history_entry(
            action="Report submitted",
            from_status=None,
            to_status=status,
            actor_type="citizen" if draft.citizen_id else "system",
            actor_id=draft.citizen_id,
            timestamp=now,
            note="Report created",
        )
        return ReportRecord(
            id=report_id,
            tracking_id=generate_tracking_id(),
            citizen_id=draft.citizen_id,
            title=draft.title,
            description=draft.description,
            category=draft.category,
            urgency=draft.urgency,
            location_address=draft.location_address,
            location_landmark=draft.location_landmark,
            latitude=draft.latitude,
            longitude=draft.longitude,
            evidence_urls=list(draft.evidence_urls),
            status=status,
            requires_manual_review=requires_manual_review,
            trust_ledger=LedgerState.NONE,
            status_history=[history_entry],
            created_at=now,
        )

    @staticmethod
    def _plan_transition(
        report: ReportRecord,
        new_status: str,
        actor_type: str,
        actor_id: Optional[str],
        note: Optional[str],
        now: datetime,
        ledger: LedgerFn,
        has_owner: Optional[bool] = None
    ) -> Tuple[ReportRecord, LedgerOutcome]:
        """
        Compute the updated report for a status change; nothing is written here.

        has_owner defaults to whether the report names a citizen. Stores pass
        False when that citizen no longer exists, so the ledger is left as is.
        """
        if has_owner is None:
            has_owner = report.citizen_id is not None
        outcome = ledger(report.status, new_status, report.trust_ledger, has_owner)

        history = list(report.status_history)
        history.append(StatusWorkflowEngine.create_status_history_entry(
            action=f"Status updated to {new_status}",
            from_status=report.status,
            to_status=new_status,
            actor_type=actor_type,
            actor_id=actor_id,
            timestamp=now,
            note=note,
            trust_delta=outcome.score_delta,
        ))

        resolved_at = now if StatusWorkflowEngine.is_resolution(new_status) else report.resolved_at
        updated = report.model_copy(update={
            "status": new_status,
            "trust_ledger": outcome.state,
            "status_history": history,
            "resolved_at": resolved_at,
        })
        return updated, outcome

    @staticmethod
    def _plan_response(
        report: ReportRecord,
        actor_type: str,
        actor_id: Optional[str],
        message: str,
        now: datetime
    ) -> ReportRecord:
        history = list(report.status_history)
        history.append(StatusWorkflowEngine.create_status_history_entry(
            action="Department response recorded",
            from_status=report.status,
            to_status=report.status,
            actor_type=actor_type,
            actor_id=actor_id,
            timestamp=now,
            note=message,
        ))
        return report.model_copy(update={"status_history": history})


# Global store instance (singleton pattern)
_trust_store: Optional[TrustStore] = None


def get_trust_store() -> TrustStore:
    """
    Get or create the configured TrustStore.

    Returns:
        InMemoryTrustStore when USE_MOCK_DB is set, FirestoreTrustStore otherwise
    """
    global _trust_store
    if _trust_store is None:
        if settings.USE_MOCK_DB:
            from civic_triage.services.memory_store import InMemoryTrustStore
            _trust_store = InMemoryTrustStore()
            logger.info("[STORE] Using in-memory trust store")
        else:
            from civic_triage.services.firestore_store import FirestoreTrustStore
            _trust_store = FirestoreTrustStore()
            logger.info("[STORE] Using Firestore trust store")
    return _trust_store


def reset_trust_store(store: Optional[TrustStore] = None) -> None:
    """Replace (or clear) the global store; used by tests and scripts."""
    global _trust_store
    _trust_store = store
