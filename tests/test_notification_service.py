"""Tests for best-effort notifications."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

from civic_triage.core.settings import settings
from civic_triage.models.report import ReportRecord
from civic_triage.models.trust import TrustLevel
from civic_triage.services.notification_service import NotificationService
from civic_triage.services.trust_store import StoreFailure

WEBHOOK = "https://notify.example.test/hook"


def make_report(**overrides) -> ReportRecord:
    data = {
        "id": "r-1",
        "tracking_id": "RPT-ABC123",
        "citizen_id": "c-1",
        "title": "Clogged drain",
        "description": "Water pooling at the corner after rain.",
        "category": "DRAINAGE",
        "status": "Resolved",
        "created_at": datetime(2026, 3, 2, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return ReportRecord(**data)


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def webhook(monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATION_WEBHOOK_URL", WEBHOOK)


def test_new_report_goes_to_staff_queue(store, session):
    service = NotificationService(store=store, session=session)

    service.notify_new_report(make_report(requires_manual_review=False), citizen_name="Ana", trust_level=TrustLevel.HIGH)

    [notification] = store.notifications
    assert notification["recipient_type"] == "staff"
    assert notification["recipient_id"] == "DRAINAGE"
    assert "Ana" in notification["message"]
    assert "HIGH" in notification["message"]
    assert "Manual review" not in notification["message"]
    session.post.assert_not_called()


def test_anonymous_report_has_no_citizen_messages(store, session):
    service = NotificationService(store=store, session=session)
    report = make_report(citizen_id=None)

    service.notify_status_change(report)
    service.notify_response(report)

    assert store.notifications == []


def test_webhook_receives_payload(store, session, webhook):
    service = NotificationService(store=store, session=session)

    service.notify_status_change(make_report(), actor_name="Public Works")

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args == (WEBHOOK,)
    assert kwargs["json"]["recipient_id"] == "c-1"
    assert "Public Works" in kwargs["json"]["message"]
    assert kwargs["timeout"] == settings.NOTIFICATION_TIMEOUT_SECONDS


def test_webhook_failure_is_swallowed(store, session, webhook):
    session.post.side_effect = requests.ConnectionError("gateway down")
    service = NotificationService(store=store, session=session)

    service.notify_response(make_report())

    assert len(store.notifications) == 1


def test_store_failure_is_swallowed(session):
    failing_store = MagicMock()
    failing_store.add_notification.side_effect = StoreFailure("quota exceeded")
    service = NotificationService(store=failing_store, session=session)

    service.notify_status_change(make_report())

    failing_store.add_notification.assert_called_once()


def test_disabled_notifications_send_nothing(store, session, webhook, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", False)
    service = NotificationService(store=store, session=session)

    service.notify_status_change(make_report())

    assert store.notifications == []
    session.post.assert_not_called()
