"""
Triage Router - orchestrates admission and status transitions.

Flow on submission:
1. Store reads the citizen snapshot (serialized per citizen)
2. Admission controller decides; store inserts only if admitted
3. Staff are notified (best-effort)

Flow on status update:
1. Store loads report + citizen, runs the transition ledger, and commits
   status, ledger state and trust score together
2. The citizen is notified (best-effort) ONLY after the commit

IMPORTANT: Store failures propagate to the caller. Notification failures
are logged and never undo a committed trust change.
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Union
import logging

from civic_triage.models.citizen import CitizenSnapshot
from civic_triage.models.report import (
    ActorRole,
    ReportCreate,
    ReportRecord,
    SubmissionAccepted,
    SubmissionRejected,
    TransitionResponse,
)
from civic_triage.models.trust import AdmissionPolicy, TrustMetadata
from civic_triage.services.admission_controller import evaluate_submission
from civic_triage.services.notification_service import NotificationService, get_notification_service
from civic_triage.services.status_workflow import StatusWorkflowEngine
from civic_triage.services.transition_ledger import apply_transition
from civic_triage.services.trust_engine import (
    compute_trust_level,
    daily_report_limit,
    requires_manual_review,
)
from civic_triage.services.trust_store import TransitionResult, TrustStore, get_trust_store

logger = logging.getLogger(__name__)

STAFF_ROLES = frozenset({ActorRole.STAFF, ActorRole.ADMIN})


class ActorNotAllowed(Exception):
    """The acting user's role may not change report status."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TriageRouter:
    """
    Wires the trust engine, admission controller and transition ledger to
    the record store and the notification service.
    """

    def __init__(
        self,
        store: Optional[TrustStore] = None,
        notifications: Optional[NotificationService] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store or get_trust_store()
        self.notifications = notifications or get_notification_service()
        self.clock = clock

    def submit(
        self,
        draft: ReportCreate,
        policy: AdmissionPolicy = AdmissionPolicy.NORMAL
    ) -> Union[SubmissionAccepted, SubmissionRejected]:
        """
        Admit and store a report, or explain why it was rejected.

        Raises:
            CitizenNotFound: If draft.citizen_id does not resolve
            StoreFailure: On persistence errors
        """
        seen: dict = {}

        def decide(snapshot: Optional[CitizenSnapshot]):
            seen["citizen"] = snapshot
            return evaluate_submission(snapshot, policy)

        decision, report = self.store.admit_report(draft.citizen_id, draft, decide, self.clock())

        if not decision.admitted:
            return SubmissionRejected(
                reason=decision.reason.value,
                message=decision.message,
                details=decision.details,
            )

        citizen = seen.get("citizen")
        self._notify(
            self.notifications.notify_new_report,
            report,
            citizen_name=citizen.full_name if citizen else None,
            trust_level=decision.trust_level,
        )

        logger.info(
            f"✅ Report {report.id} admitted as {report.status} "
            f"(citizen={report.citizen_id or 'anonymous'}, trust={decision.trust_level}, policy={policy.value})"
        )

        return SubmissionAccepted(
            report_id=report.id,
            tracking_id=report.tracking_id,
            status=report.status,
            manual_review=report.requires_manual_review,
            trust_level=decision.trust_level,
            daily_limit=decision.daily_limit,
            submitted_today=decision.submitted_today + 1 if decision.submitted_today is not None else None,
        )

    def transition(
        self,
        report_id: str,
        actor_role: ActorRole,
        actor_id: str,
        new_status: Optional[str] = None,
        message: Optional[str] = None,
        actor_name: Optional[str] = None
    ) -> TransitionResponse:
        """
        Change status and/or record a staff response.

        Args:
            report_id: Report document ID
            actor_role: Must be STAFF or ADMIN
            actor_id: Acting user identifier
            new_status: Optional new status (case-insensitive)
            message: Optional remarks / response to the citizen
            actor_name: Display name used in notifications

        Raises:
            ActorNotAllowed: If the role may not act on reports
            ValueError: If neither status nor message is given, or the status is unknown
            ReportNotFound / StoreFailure: From the store
        """
        role = ActorRole(actor_role)
        if role not in STAFF_ROLES:
            raise ActorNotAllowed(f"Role {role.value} may not update reports")

        message = (message or "").strip() or None
        if not new_status and not message:
            raise ValueError("Provide a message or status update.")

        actor_type = role.value.lower()
        now = self.clock()

        if new_status:
            status = StatusWorkflowEngine.normalize_status(new_status)
            result = self.store.apply_transition(
                report_id=report_id,
                new_status=status,
                actor_type=actor_type,
                actor_id=actor_id,
                note=message,
                now=now,
                ledger=apply_transition,
            )
            self._log_transition(result, actor_id)
            self._notify(self.notifications.notify_status_change, result.report, actor_name=actor_name)
        else:
            result = self.store.record_response(report_id, actor_type, actor_id, message, now)
            logger.info(f"✅ {actor_type} {actor_id} responded on report {report_id}")
            self._notify(self.notifications.notify_response, result.report, actor_name=actor_name)

        return TransitionResponse(
            report_id=result.report.id,
            previous_status=result.previous_status,
            status=result.report.status,
            trust_delta=result.trust_delta,
            trust_ledger=result.report.trust_ledger,
            trust_score=result.trust_score,
        )

    def get_report(self, report_id: str) -> ReportRecord:
        return self.store.get_report(report_id)

    def get_trust_metadata(self, citizen_id: str) -> TrustMetadata:
        """Trust level, quota and usage for a citizen, as shown before submitting."""
        citizen = self.store.get_citizen(citizen_id, self.clock())
        level = compute_trust_level(citizen.trust_score)
        limit = daily_report_limit(level)
        return TrustMetadata(
            citizen_id=citizen.id,
            trust_score=citizen.trust_score,
            trust_level=level,
            daily_limit=limit,
            submitted_today=citizen.reports_last_24h,
            remaining_today=max(limit - citizen.reports_last_24h, 0) if limit is not None else None,
            requires_manual_review=requires_manual_review(level),
            is_verified=citizen.is_verified,
        )

    def _log_transition(self, result: TransitionResult, actor_id: str) -> None:
        report = result.report
        if result.ledger and result.ledger.changed:
            steps = ", ".join(step.value for step in result.ledger.steps)
            logger.info(
                f"Trust ledger for report {report.id}: {steps} "
                f"(citizen {report.citizen_id}, delta {result.trust_delta:+d}, score {result.trust_score})"
            )
        logger.info(f"✅ {actor_id} updated report {report.id}: {result.previous_status} → {report.status}")

    def _notify(self, send: Callable, report: ReportRecord, **kwargs) -> None:
        try:
            send(report, **kwargs)
        except Exception as e:
            logger.error(f"⚠️ Notification for report {report.id} failed: {e}", exc_info=True)


# Global service instance (singleton pattern)
_triage_router = None


def get_triage_router() -> TriageRouter:
    """
    Get or create TriageRouter singleton instance.

    Returns:
        TriageRouter: The global triage router instance
    """
    global _triage_router
    if _triage_router is None:
        _triage_router = TriageRouter()
    return _triage_router


def reset_triage_router(router: Optional[TriageRouter] = None) -> None:
    global _triage_router
    _triage_router = router
