"""
Firestore Trust Store - production record store.

Collections:
- citizens/{citizen_id}: is_verified, trust_score, full_name, last_report_at
- reports/{report_id}: ReportRecord fields, trust_ledger plus the mirrored
  trust_credit_applied / trust_penalty_applied booleans
- notifications/{auto_id}: in-app notifications

Every admission and transition runs in a Firestore transaction. Reads take
locks on the citizen and report documents, so concurrent transitions on
the same report, or on different reports of the same citizen, are
serialized and their score updates cannot overwrite each other.

Index: reports (citizen_id ASC, created_at ASC) for the 24-hour window query.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Tuple
import logging

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from civic_triage.config.firebase import get_db
from civic_triage.models.citizen import CitizenSnapshot
from civic_triage.models.report import ReportCreate, ReportRecord
from civic_triage.models.trust import LedgerState
from civic_triage.services.admission_controller import AdmissionOutcome
from civic_triage.services.status_workflow import StatusClass, StatusWorkflowEngine
from civic_triage.services.trust_store import (
    REPORT_WINDOW,
    AdmissionDecider,
    CitizenNotFound,
    LedgerFn,
    ReportNotFound,
    StoreFailure,
    TransitionResult,
    TrustStore,
    TrustStoreError,
)
from civic_triage.utils.firestore_helpers import count_documents, to_datetime, where_filter

logger = logging.getLogger(__name__)

CITIZENS = "citizens"
REPORTS = "reports"
NOTIFICATIONS = "notifications"


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Convert Firestore errors to StoreFailure; domain errors pass through."""
    try:
        yield
    except TrustStoreError:
        raise
    except google_exceptions.GoogleAPIError as e:
        logger.error(f"Firestore {operation} failed: {e}", exc_info=True)
        raise StoreFailure(f"{operation} failed: {e}") from e
    except ValueError as e:
        # Raised by the transaction runner when contention exhausts its attempts
        logger.error(f"Firestore {operation} aborted: {e}")
        raise StoreFailure(f"{operation} aborted: {e}") from e


def _legacy_ledger_state(report_id: str, data: Dict[str, Any]) -> LedgerState:
    """
    Ledger state of a pre-enum document.

    A document with both flags set is settled to what its current status
    earns (Invalid -> penalty, In Progress/Resolved -> credit, else nothing)
    and logged so the citizen's score can be audited by hand.
    """
    credit = bool(data.get("trust_credit_applied"))
    penalty = bool(data.get("trust_penalty_applied"))
    if not (credit and penalty):
        return LedgerState.from_flags(credit, penalty)

    status_class = StatusWorkflowEngine.classify(data.get("status"))
    if status_class is StatusClass.NEGATIVE:
        state = LedgerState.PENALTY_APPLIED
    elif status_class is StatusClass.POSITIVE:
        state = LedgerState.CREDIT_APPLIED
    else:
        state = LedgerState.NONE
    logger.warning(
        f"⚠️ Report {report_id} carries both trust flags (status {data.get('status')!r}); "
        f"reading ledger as {state.value}, citizen {data.get('citizen_id')} needs a score audit"
    )
    return state


class FirestoreTrustStore(TrustStore):
    """
    TrustStore backed by Firestore transactions.
    """

    def __init__(self, db: Optional[firestore.Client] = None):
        self.db = db or get_db()

    def get_citizen(self, citizen_id: str, now: datetime) -> CitizenSnapshot:
        with _store_errors("read citizen"):
            return self._read_snapshot(citizen_id, now)

    def admit_report(
        self,
        citizen_id: Optional[str],
        draft: ReportCreate,
        decide: AdmissionDecider,
        now: datetime
    ) -> Tuple[AdmissionOutcome, Optional[ReportRecord]]:
        report_ref = self.db.collection(REPORTS).document()

        if citizen_id is None:
            decision = decide(None)
            if not decision.admitted:
                return decision, None
            report = self._build_report(report_ref.id, draft, decision.status, decision.requires_manual_review, now)
            with _store_errors("insert report"):
                report_ref.set(self._report_to_doc(report))
            logger.info(f"Report saved to Firestore: {report.id} ({report.tracking_id})")
            return decision, report

        citizen_ref = self.db.collection(CITIZENS).document(citizen_id)

        @firestore.transactional
        def admit_in_transaction(transaction):
            snapshot = self._read_snapshot(citizen_id, now, transaction)
            decision = decide(snapshot)
            if not decision.admitted:
                return decision, None

            report = self._build_report(report_ref.id, draft, decision.status, decision.requires_manual_review, now)
            transaction.set(report_ref, self._report_to_doc(report))
            # Writing the citizen document makes concurrent admissions conflict
            transaction.update(citizen_ref, {"last_report_at": now})
            return decision, report

        with _store_errors("admit report"):
            decision, report = admit_in_transaction(self.db.transaction())

        if report is not None:
            logger.info(f"Report saved to Firestore: {report.id} ({report.tracking_id})")
        return decision, report

    def get_report(self, report_id: str) -> ReportRecord:
        with _store_errors("read report"):
            doc = self.db.collection(REPORTS).document(report_id).get()
            if not doc.exists:
                raise ReportNotFound(report_id)
            return self._report_from_doc(doc)

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
        report_ref = self.db.collection(REPORTS).document(report_id)

        @firestore.transactional
        def transition_in_transaction(transaction):
            # All reads first; Firestore rejects reads after writes in a transaction
            report_doc = report_ref.get(transaction=transaction)
            if not report_doc.exists:
                raise ReportNotFound(report_id)
            report = self._report_from_doc(report_doc)

            citizen_ref = None
            citizen_data: Dict[str, Any] = {}
            if report.citizen_id:
                citizen_ref = self.db.collection(CITIZENS).document(report.citizen_id)
                citizen_doc = citizen_ref.get(transaction=transaction)
                if citizen_doc.exists:
                    citizen_data = citizen_doc.to_dict() or {}
                else:
                    logger.warning(
                        f"⚠️ Owner {report.citizen_id} of report {report_id} not found; "
                        f"changing status without trust adjustment"
                    )
                    citizen_ref = None

            updated, outcome = self._plan_transition(
                report, new_status, actor_type, actor_id, note, now, ledger,
                has_owner=citizen_ref is not None,
            )

            transaction.update(report_ref, {
                "status": updated.status,
                "trust_ledger": updated.trust_ledger.value,
                "trust_credit_applied": updated.trust_credit_applied,
                "trust_penalty_applied": updated.trust_penalty_applied,
                "status_history": updated.status_history,
                "resolved_at": updated.resolved_at,
            })

            new_score = None
            if citizen_ref is not None:
                new_score = float(citizen_data.get("trust_score") or 0) + outcome.score_delta
                if outcome.changed:
                    transaction.update(citizen_ref, {"trust_score": new_score})

            return TransitionResult(
                report=updated,
                previous_status=report.status,
                status_changed=report.status != new_status,
                ledger=outcome,
                trust_score=new_score,
                citizen_name=citizen_data.get("full_name") or None,
            )

        with _store_errors("apply transition"):
            return transition_in_transaction(self.db.transaction())

    def record_response(
        self,
        report_id: str,
        actor_type: str,
        actor_id: Optional[str],
        message: str,
        now: datetime
    ) -> TransitionResult:
        report_ref = self.db.collection(REPORTS).document(report_id)

        @firestore.transactional
        def respond_in_transaction(transaction):
            report_doc = report_ref.get(transaction=transaction)
            if not report_doc.exists:
                raise ReportNotFound(report_id)
            report = self._report_from_doc(report_doc)
            updated = self._plan_response(report, actor_type, actor_id, message, now)
            transaction.update(report_ref, {"status_history": updated.status_history})
            return TransitionResult(report=updated, previous_status=report.status)

        with _store_errors("record response"):
            return respond_in_transaction(self.db.transaction())

    def add_notification(self, notification: Dict[str, Any]) -> str:
        with _store_errors("insert notification"):
            doc_ref = self.db.collection(NOTIFICATIONS).document()
            doc_ref.set({**notification, "created_at": firestore.SERVER_TIMESTAMP})
            return doc_ref.id

    def is_healthy(self) -> bool:
        try:
            list(self.db.collection(REPORTS).limit(1).stream())
            return True
        except google_exceptions.GoogleAPIError as e:
            logger.warning(f"Firestore health check failed: {e}")
            return False

    # Internals

    def _read_snapshot(self, citizen_id: str, now: datetime, transaction=None) -> CitizenSnapshot:
        doc = self.db.collection(CITIZENS).document(citizen_id).get(transaction=transaction)
        if not doc.exists:
            raise CitizenNotFound(citizen_id)
        data = doc.to_dict() or {}

        owned = where_filter(self.db.collection(REPORTS), "citizen_id", "==", citizen_id)
        recent = where_filter(owned, "created_at", ">=", now - REPORT_WINDOW)
        recent = where_filter(recent, "created_at", "<=", now)

        return CitizenSnapshot(
            id=citizen_id,
            is_verified=bool(data.get("is_verified", False)),
            trust_score=float(data.get("trust_score") or 0),
            # Admission only asks whether a first report exists
            lifetime_report_count=count_documents(owned, transaction, limit=1),
            reports_last_24h=count_documents(recent, transaction),
            full_name=data.get("full_name") or "",
        )

    @staticmethod
    def _report_to_doc(report: ReportRecord) -> Dict[str, Any]:
        doc = report.model_dump(exclude={"id"})
        doc["trust_ledger"] = report.trust_ledger.value
        return doc

    @staticmethod
    def _report_from_doc(doc) -> ReportRecord:
        data = doc.to_dict() or {}
        data["id"] = doc.id
        if "trust_ledger" not in data:
            # Documents written before the ledger enum only carry the two flags
            data["trust_ledger"] = _legacy_ledger_state(doc.id, data)
        data.pop("trust_credit_applied", None)
        data.pop("trust_penalty_applied", None)
        data["created_at"] = to_datetime(data.get("created_at"))
        data["resolved_at"] = to_datetime(data.get("resolved_at"))
        return ReportRecord.model_validate(data)
