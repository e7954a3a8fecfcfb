"""Pytest configuration for civic_triage tests."""
import os

# Select the in-memory store before settings are loaded
os.environ["USE_MOCK_DB"] = "true"
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)
os.environ.pop("DISABLE_ADMISSION_GATING", None)

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from civic_triage.main import app
from civic_triage.models.report import ReportCreate
from civic_triage.services.memory_store import InMemoryTrustStore
from civic_triage.services.notification_service import NotificationService, reset_notification_service
from civic_triage.services.triage_router import TriageRouter, get_triage_router, reset_triage_router
from civic_triage.services.trust_store import reset_trust_store

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock the tests move by hand."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store():
    """Fresh in-memory store, also installed as the global store."""
    memory_store = InMemoryTrustStore()
    reset_trust_store(memory_store)
    yield memory_store
    reset_trust_store()
    reset_notification_service()
    reset_triage_router()


@pytest.fixture
def notifications(store) -> NotificationService:
    return NotificationService(store=store)


@pytest.fixture
def triage(store, notifications, clock) -> TriageRouter:
    return TriageRouter(store=store, notifications=notifications, clock=clock)


@pytest.fixture
def client(triage):
    app.dependency_overrides[get_triage_router] = lambda: triage
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_draft():
    """Build a ReportCreate with sensible defaults."""
    def _make(**overrides) -> ReportCreate:
        data = {
            "title": "Broken streetlight",
            "description": "The streetlight outside building 12 has been out for a week.",
            "category": "ENGINEERING",
        }
        data.update(overrides)
        return ReportCreate(**data)
    return _make
