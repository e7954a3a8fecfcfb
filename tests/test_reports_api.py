"""HTTP tests for report and citizen endpoints."""

from civic_triage.models.trust import AdmissionPolicy
from civic_triage.main import app
from civic_triage.routes.reports import get_admission_policy

PAYLOAD = {
    "title": "Pothole on Rizal Street",
    "description": "Deep pothole near the school gate, cars swerving.",
    "category": "ROADS",
}


def submit(client, **overrides):
    return client.post("/reports", json={**PAYLOAD, **overrides})


def test_root_and_health(client):
    assert client.get("/").json()["docs"] == "/docs"
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/db").json()["database"] == "InMemoryTrustStore"


def test_submit_returns_201(client, store):
    store.add_citizen("c-1", is_verified=True)

    response = submit(client, citizen_id="c-1")

    assert response.status_code == 201
    body = response.json()
    assert body["accepted"] is True
    assert body["status"] == "Pending"
    assert body["trust_level"] == "MEDIUM"
    assert body["daily_limit"] == 5
    assert body["submitted_today"] == 1


def test_unverified_second_report_is_403(client, store):
    store.add_citizen("c-1", is_verified=False)
    submit(client, citizen_id="c-1")

    response = submit(client, citizen_id="c-1")

    assert response.status_code == 403
    assert response.json()["reason"] == "VerificationRequired"


def test_daily_limit_is_429(client, store):
    store.add_citizen("c-1", is_verified=True, trust_score=-2)
    submit(client, citizen_id="c-1")

    response = submit(client, citizen_id="c-1")

    assert response.status_code == 429
    body = response.json()
    assert body["accepted"] is False
    assert body["details"] == {"trust_level": "LOW", "limit": 1, "submitted_today": 1}


def test_policy_override_disables_gating(client, store):
    store.add_citizen("c-1", is_verified=True, trust_score=-2)
    app.dependency_overrides[get_admission_policy] = lambda: AdmissionPolicy.UNRESTRICTED

    responses = [submit(client, citizen_id="c-1") for _ in range(3)]

    assert [r.status_code for r in responses] == [201, 201, 201]


def test_unknown_citizen_is_400(client):
    assert submit(client, citizen_id="ghost").status_code == 400


def test_invalid_payload_is_422(client):
    assert client.post("/reports", json={"title": "x"}).status_code == 422


def test_status_update_flow(client, store):
    store.add_citizen("c-1", is_verified=True)
    report_id = submit(client, citizen_id="c-1").json()["report_id"]

    response = client.patch(
        f"/reports/{report_id}/status",
        json={"status": "RESOLVED", "actor_role": "STAFF", "actor_id": "s-1"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Resolved"
    assert body["trust_delta"] == 1
    assert body["trust_score"] == 1
    assert body["trust_ledger"] == "CREDIT_APPLIED"

    report = client.get(f"/reports/{report_id}").json()
    assert report["trust_credit_applied"] is True
    assert report["trust_penalty_applied"] is False
    assert report["resolved_at"] is not None


def test_citizen_role_is_403(client, store):
    report_id = submit(client).json()["report_id"]

    response = client.patch(
        f"/reports/{report_id}/status",
        json={"status": "Resolved", "actor_role": "CITIZEN", "actor_id": "c-1"},
    )

    assert response.status_code == 403


def test_unknown_status_is_400(client):
    report_id = submit(client).json()["report_id"]

    response = client.patch(
        f"/reports/{report_id}/status",
        json={"status": "Escalated", "actor_role": "ADMIN", "actor_id": "a-1"},
    )

    assert response.status_code == 400


def test_missing_report_is_404(client):
    assert client.get("/reports/nope").status_code == 404
    response = client.post("/reports/nope/actions", json={"actor_role": "STAFF", "actor_id": "s-1", "message": "hi"})
    assert response.status_code == 404


def test_action_without_status_or_message_is_400(client):
    report_id = submit(client).json()["report_id"]

    response = client.post(f"/reports/{report_id}/actions", json={"actor_role": "STAFF", "actor_id": "s-1"})

    assert response.status_code == 400


def test_action_with_message_records_response(client):
    report_id = submit(client).json()["report_id"]

    response = client.post(
        f"/reports/{report_id}/actions",
        json={"actor_role": "STAFF", "actor_id": "s-1", "message": "Inspection scheduled"},
    )

    assert response.status_code == 200
    assert response.json()["status"] == "Pending"


def test_citizen_trust_endpoint(client, store):
    store.add_citizen("c-1", is_verified=True, trust_score=5)

    body = client.get("/citizens/c-1/trust").json()

    assert body["trust_level"] == "HIGH"
    assert body["daily_limit"] is None
    assert body["remaining_today"] is None
    assert client.get("/citizens/ghost/trust").status_code == 404


def test_status_update_for_deleted_citizen_is_200(client, store):
    store.add_citizen("c-1", is_verified=True)
    report_id = submit(client, citizen_id="c-1").json()["report_id"]
    store.remove_citizen("c-1")

    response = client.patch(
        f"/reports/{report_id}/status",
        json={"status": "Invalid", "actor_role": "STAFF", "actor_id": "s-1"},
    )

    assert response.status_code == 200
    assert response.json()["trust_delta"] == 0
    assert response.json()["trust_ledger"] == "NONE"
