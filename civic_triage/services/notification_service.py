"""
Notification Service - best-effort messages after a committed change.

DESIGN PRINCIPLES (CRITICAL):
- Called ONLY after the trust ledger has committed
- Never raises; every failure is logged and swallowed
- A failed notification never rolls back or retries a trust mutation

WHAT THIS SERVICE DOES:
✅ Record in-app notifications through the trust store
✅ Relay the same payload to NOTIFICATION_WEBHOOK_URL (e-mail gateway) when set
✅ Flag manual-review submissions and the citizen trust level for staff

WHAT THIS SERVICE DOES NOT:
❌ Decide anything about trust or status
❌ Retry failed deliveries
"""

from typing import Any, Dict, Optional
import logging

import requests

from civic_triage.core.settings import settings
from civic_triage.models.report import ReportRecord
from civic_triage.models.trust import TrustLevel
from civic_triage.services.trust_store import TrustStore, get_trust_store

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Builds notification messages and dispatches them.
    """

    RECIPIENT_CITIZEN = "citizen"
    RECIPIENT_STAFF = "staff"

    def __init__(self, store: Optional[TrustStore] = None, session: Optional[requests.Session] = None):
        self.store = store or get_trust_store()
        self.session = session or requests.Session()

    def notify_new_report(
        self,
        report: ReportRecord,
        citizen_name: Optional[str] = None,
        trust_level: Optional[TrustLevel] = None
    ) -> None:
        """Tell the triage queue a report arrived."""
        submitter = citizen_name or "Anonymous citizen"
        manual_flag = " ⚠️ Manual review required" if report.requires_manual_review else ""
        trust_note = f" [Citizen trust: {trust_level.value}]" if trust_level else ""
        message = (
            f"📋 New report assigned (ID {report.tracking_id}): \"{report.title}\" "
            f"submitted by {submitter}{manual_flag}{trust_note}"
        )
        self._dispatch(report, self.RECIPIENT_STAFF, report.category, message)

    def notify_status_change(self, report: ReportRecord, actor_name: Optional[str] = None) -> None:
        """Tell the owning citizen their report moved."""
        if not report.citizen_id:
            return
        actor = f" by {actor_name}" if actor_name else ""
        message = f"🔔 Status update{self._context(report)}: now \"{report.status}\"{actor}"
        self._dispatch(report, self.RECIPIENT_CITIZEN, report.citizen_id, message)

    def notify_response(self, report: ReportRecord, actor_name: Optional[str] = None) -> None:
        """Tell the owning citizen staff responded."""
        if not report.citizen_id:
            return
        actor = f" from {actor_name}" if actor_name else ""
        message = f"💬 New response{self._context(report)}{actor}"
        self._dispatch(report, self.RECIPIENT_CITIZEN, report.citizen_id, message)

    def _context(self, report: ReportRecord) -> str:
        parts = [f"ID {report.tracking_id}", f"\"{report.title}\""]
        return f" on {' • '.join(parts)}"

    def _dispatch(self, report: ReportRecord, recipient_type: str, recipient_id: str, message: str) -> None:
        if not settings.NOTIFICATIONS_ENABLED:
            logger.debug(f"Notifications disabled, skipping message for report {report.id}")
            return

        payload: Dict[str, Any] = {
            "report_id": report.id,
            "tracking_id": report.tracking_id,
            "recipient_type": recipient_type,
            "recipient_id": recipient_id,
            "message": message,
            "read": False,
        }

        try:
            notification_id = self.store.add_notification(payload)
            logger.info(f"Notification {notification_id} recorded for {recipient_type} {recipient_id}")
        except Exception as e:
            logger.error(f"⚠️ Failed to record notification for report {report.id}: {e}")

        if settings.NOTIFICATION_WEBHOOK_URL:
            try:
                response = self.session.post(
                    settings.NOTIFICATION_WEBHOOK_URL,
                    json=payload,
                    timeout=settings.NOTIFICATION_TIMEOUT_SECONDS,
                )
                response.raise_for_status()
            except requests.RequestException as e:
                logger.error(f"⚠️ Notification webhook failed for report {report.id}: {e}")


# Global service instance (singleton pattern)
_notification_service = None


def get_notification_service() -> NotificationService:
    """
    Get or create NotificationService singleton instance.

    Returns:
        NotificationService: The global notification service instance
    """
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service


def reset_notification_service(service: Optional[NotificationService] = None) -> None:
    global _notification_service
    _notification_service = service
