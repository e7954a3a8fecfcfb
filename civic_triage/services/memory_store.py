"""
In-memory Trust Store for local development (USE_MOCK_DB) and tests.

Serialization uses one lock per citizen and one per report. A transition
takes the report lock first and the citizen lock second; admissions only
take the citizen lock, so lock order never inverts.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging
import threading
import uuid

from civic_triage.models.citizen import CitizenSnapshot
from civic_triage.models.report import ReportCreate, ReportRecord
from civic_triage.services.admission_controller import AdmissionOutcome
from civic_triage.services.trust_store import (
    REPORT_WINDOW,
    AdmissionDecider,
    CitizenNotFound,
    LedgerFn,
    ReportNotFound,
    TransitionResult,
    TrustStore,
)

logger = logging.getLogger(__name__)


class KeyedLocks:
    """
    A lock per key, created on first use and dropped once no thread
    holds or waits for it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]
        self._locks: Dict[str, list] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


class InMemoryTrustStore(TrustStore):
    """
    Dict-backed store.

    Citizens are plain dicts (is_verified, trust_score, full_name); reports
    are immutable ReportRecord values replaced wholesale on every write.
    """

    def __init__(self):
        self._citizens: Dict[str, Dict[str, Any]] = {}
        self._reports: Dict[str, ReportRecord] = {}
        self._notifications: List[Dict[str, Any]] = []
        self._citizen_locks = KeyedLocks()
        self._report_locks = KeyedLocks()
        self._notifications_lock = threading.Lock()

    # Seeding helpers (account subsystem stand-in)

    def add_citizen(
        self,
        citizen_id: str,
        is_verified: bool = False,
        trust_score: float = 0,
        full_name: str = ""
    ) -> None:
        with self._citizen_locks.hold(citizen_id):
            self._citizens[citizen_id] = {
                "is_verified": is_verified,
                "trust_score": trust_score,
                "full_name": full_name,
            }

    def remove_citizen(self, citizen_id: str) -> None:
        """Delete an account; its reports stay."""
        with self._citizen_locks.hold(citizen_id):
            self._citizens.pop(citizen_id, None)

    def set_verified(self, citizen_id: str, is_verified: bool = True) -> None:
        with self._citizen_locks.hold(citizen_id):
            self._require_citizen(citizen_id)["is_verified"] = is_verified

    def get_trust_score(self, citizen_id: str) -> float:
        return self._require_citizen(citizen_id)["trust_score"]

    @property
    def notifications(self) -> List[Dict[str, Any]]:
        with self._notifications_lock:
            return list(self._notifications)

    # TrustStore

    def get_citizen(self, citizen_id: str, now: datetime) -> CitizenSnapshot:
        with self._citizen_locks.hold(citizen_id):
            return self._snapshot(citizen_id, now)

    def admit_report(
        self,
        citizen_id: Optional[str],
        draft: ReportCreate,
        decide: AdmissionDecider,
        now: datetime
    ) -> Tuple[AdmissionOutcome, Optional[ReportRecord]]:
        if citizen_id is None:
            return self._admit(None, draft, decide, now)

        with self._citizen_locks.hold(citizen_id):
            snapshot = self._snapshot(citizen_id, now)
            return self._admit(snapshot, draft, decide, now)

    def get_report(self, report_id: str) -> ReportRecord:
        report = self._reports.get(report_id)
        if report is None:
            raise ReportNotFound(report_id)
        return report

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
        with self._report_locks.hold(report_id):
            report = self.get_report(report_id)
            if report.citizen_id is None:
                return self._transition_without_owner(report, new_status, actor_type, actor_id, note, now, ledger)

            with self._citizen_locks.hold(report.citizen_id):
                citizen = self._citizens.get(report.citizen_id)
                if citizen is None:
                    logger.warning(
                        f"⚠️ Owner {report.citizen_id} of report {report_id} not found; "
                        f"changing status without trust adjustment"
                    )
                    return self._transition_without_owner(
                        report, new_status, actor_type, actor_id, note, now, ledger
                    )

                updated, outcome = self._plan_transition(report, new_status, actor_type, actor_id, note, now, ledger)
                new_score = citizen["trust_score"] + outcome.score_delta

                # Both assignments happen after every computation has succeeded
                citizen["trust_score"] = new_score
                self._reports[report_id] = updated

                return TransitionResult(
                    report=updated,
                    previous_status=report.status,
                    status_changed=report.status != new_status,
                    ledger=outcome,
                    trust_score=new_score,
                    citizen_name=citizen.get("full_name") or None,
                )

    def record_response(
        self,
        report_id: str,
        actor_type: str,
        actor_id: Optional[str],
        message: str,
        now: datetime
    ) -> TransitionResult:
        with self._report_locks.hold(report_id):
            report = self.get_report(report_id)
            updated = self._plan_response(report, actor_type, actor_id, message, now)
            self._reports[report_id] = updated
            return TransitionResult(report=updated, previous_status=report.status)

    def add_notification(self, notification: Dict[str, Any]) -> str:
        notification_id = uuid.uuid4().hex
        with self._notifications_lock:
            self._notifications.append({**notification, "id": notification_id})
        return notification_id

    # Internals

    def _transition_without_owner(
        self,
        report: ReportRecord,
        new_status: str,
        actor_type: str,
        actor_id: Optional[str],
        note: Optional[str],
        now: datetime,
        ledger: LedgerFn
    ) -> TransitionResult:
        updated, outcome = self._plan_transition(
            report, new_status, actor_type, actor_id, note, now, ledger, has_owner=False
        )
        self._reports[report.id] = updated
        return TransitionResult(
            report=updated,
            previous_status=report.status,
            status_changed=report.status != new_status,
            ledger=outcome,
        )

    def _require_citizen(self, citizen_id: str) -> Dict[str, Any]:
        citizen = self._citizens.get(citizen_id)
        if citizen is None:
            raise CitizenNotFound(citizen_id)
        return citizen

    def _snapshot(self, citizen_id: str, now: datetime) -> CitizenSnapshot:
        citizen = self._require_citizen(citizen_id)
        window_start = now - REPORT_WINDOW
        owned = [r for r in self._reports.values() if r.citizen_id == citizen_id]
        return CitizenSnapshot(
            id=citizen_id,
            is_verified=citizen["is_verified"],
            trust_score=citizen["trust_score"],
            lifetime_report_count=len(owned),
            reports_last_24h=sum(1 for r in owned if window_start <= r.created_at <= now),
            full_name=citizen.get("full_name", ""),
        )

    def _admit(
        self,
        snapshot: Optional[CitizenSnapshot],
        draft: ReportCreate,
        decide: AdmissionDecider,
        now: datetime
    ) -> Tuple[AdmissionOutcome, Optional[ReportRecord]]:
        decision = decide(snapshot)
        if not decision.admitted:
            return decision, None

        report = self._build_report(
            report_id=uuid.uuid4().hex,
            draft=draft,
            status=decision.status,
            requires_manual_review=decision.requires_manual_review,
            now=now,
        )
        self._reports[report.id] = report
        logger.info(f"[STORE] Report saved: {report.id} ({report.tracking_id})")
        return decision, report
