# tests/api/v1/test_rsvp_api.py

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from evently.crud.crud_capacity import capacity_ledger
from evently.schemas.admission import CapacitySnapshot, RegistrationResult, RejectionReason
from tests.utils.auth import get_user_authentication_headers
from tests.utils.event import create_random_event


# ========================================
# Service layer mocked
# ========================================


@pytest.mark.parametrize(
    "reason, status_code",
    [
        (RejectionReason.EVENT_NOT_FOUND, 404),
        (RejectionReason.EVENT_IN_PAST, 400),
        (RejectionReason.EVENT_FULL, 409),
        (RejectionReason.ALREADY_RSVPED, 409),
        (RejectionReason.TRANSIENT_ERROR, 503),
    ],
)
def test_join_rejection_status_codes(monkeypatch, test_client: TestClient, reason, status_code):
    coordinator_mock = MagicMock()
    coordinator_mock.join.return_value = RegistrationResult.reject(reason)
    monkeypatch.setattr(
        "evently.api.v1.endpoints.rsvp.registration_coordinator", coordinator_mock
    )

    response = test_client.post("/api/v1/rsvp/evt_1")

    assert response.status_code == status_code
    assert response.json() == {"status": "Rejected", "reason": reason.value}
    coordinator_mock.join.assert_called_once()
    assert coordinator_mock.join.call_args.kwargs == {
        "event_id": "evt_1",
        "caller_id": "user_123",
    }


@pytest.mark.parametrize(
    "reason, status_code",
    [
        (RejectionReason.NOT_RSVPED, 404),
        (RejectionReason.TRANSIENT_ERROR, 503),
        (RejectionReason.INCONSISTENT_STATE, 500),
    ],
)
def test_leave_rejection_status_codes(monkeypatch, test_client: TestClient, reason, status_code):
    coordinator_mock = MagicMock()
    coordinator_mock.leave.return_value = RegistrationResult.reject(reason)
    monkeypatch.setattr(
        "evently.api.v1.endpoints.rsvp.registration_coordinator", coordinator_mock
    )

    response = test_client.delete("/api/v1/rsvp/evt_1")

    assert response.status_code == status_code
    assert response.json()["reason"] == reason.value


def test_join_committed_body(monkeypatch, test_client: TestClient):
    coordinator_mock = MagicMock()
    coordinator_mock.join.return_value = RegistrationResult.commit(
        CapacitySnapshot(event_id="evt_1", confirmed_count=4, capacity=10)
    )
    monkeypatch.setattr(
        "evently.api.v1.endpoints.rsvp.registration_coordinator", coordinator_mock
    )

    response = test_client.post("/api/v1/rsvp/evt_1")

    assert response.status_code == 201
    assert response.json() == {
        "status": "Committed",
        "event_id": "evt_1",
        "confirmed_count": 4,
        "capacity": 10,
        "available_spots": 6,
    }


# ========================================
# End to end
# ========================================


def test_join_and_leave_e2e(test_client_e2e: TestClient, db_session):
    event = create_random_event(db_session, capacity=2)
    headers = get_user_authentication_headers("user_1")

    response = test_client_e2e.post(f"/api/v1/rsvp/{event.id}", headers=headers)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "Committed"
    assert body["confirmed_count"] == 1
    assert body["available_spots"] == 1

    response = test_client_e2e.get(f"/api/v1/rsvp/{event.id}/status", headers=headers)
    assert response.json() == {"active": True}

    response = test_client_e2e.post(f"/api/v1/rsvp/{event.id}", headers=headers)
    assert response.status_code == 409
    assert response.json()["reason"] == "ALREADY_RSVPED"

    response = test_client_e2e.delete(f"/api/v1/rsvp/{event.id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["confirmed_count"] == 0

    response = test_client_e2e.delete(f"/api/v1/rsvp/{event.id}", headers=headers)
    assert response.status_code == 404
    assert response.json()["reason"] == "NOT_RSVPED"

    response = test_client_e2e.get(f"/api/v1/rsvp/{event.id}/status", headers=headers)
    assert response.json() == {"active": False}


def test_join_full_event_e2e(test_client_e2e: TestClient, db_session):
    event = create_random_event(db_session, capacity=1)

    first = test_client_e2e.post(
        f"/api/v1/rsvp/{event.id}", headers=get_user_authentication_headers("user_1")
    )
    second = test_client_e2e.post(
        f"/api/v1/rsvp/{event.id}", headers=get_user_authentication_headers("user_2")
    )

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json() == {"status": "Rejected", "reason": "EVENT_FULL"}
    assert capacity_ledger.snapshot(db_session, event.id).confirmed_count == 1


def test_join_unknown_and_past_events_e2e(test_client_e2e: TestClient, db_session):
    headers = get_user_authentication_headers("user_1")
    past = create_random_event(db_session, days_ahead=-1)

    response = test_client_e2e.post("/api/v1/rsvp/evt_missing", headers=headers)
    assert response.status_code == 404
    assert response.json()["reason"] == "EVENT_NOT_FOUND"

    response = test_client_e2e.post(f"/api/v1/rsvp/{past.id}", headers=headers)
    assert response.status_code == 400
    assert response.json()["reason"] == "EVENT_IN_PAST"


def test_join_requires_authentication(test_client_e2e: TestClient, db_session):
    event = create_random_event(db_session)

    response = test_client_e2e.post(f"/api/v1/rsvp/{event.id}")
    assert response.status_code == 401

    response = test_client_e2e.post(
        f"/api/v1/rsvp/{event.id}", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_my_rsvps_e2e(test_client_e2e: TestClient, db_session):
    headers = get_user_authentication_headers("user_1")
    attending = create_random_event(db_session, title="Attending")
    create_random_event(db_session, title="Not attending")
    test_client_e2e.post(f"/api/v1/rsvp/{attending.id}", headers=headers)

    response = test_client_e2e.get("/api/v1/rsvp/my-rsvps", headers=headers)

    assert response.status_code == 200
    rsvps = response.json()
    assert len(rsvps) == 1
    assert rsvps[0]["event"]["id"] == attending.id
    assert rsvps[0]["event"]["confirmed_count"] == 1
    assert rsvps[0]["event"]["owner"] is None
