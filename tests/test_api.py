"""
Tests for the GymTrack Sync HTTP API.
"""

import pytest
from conftest import make_workout
from fastapi.testclient import TestClient

from gymtrack_sync.api.app import create_app
from gymtrack_sync.dto import ApiResult
from gymtrack_sync.handlers import status_for
from gymtrack_sync.repositories import InMemoryLocalStore, InMemoryRemoteGateway
from gymtrack_sync.retry import RetryExecutor
from gymtrack_sync.services import GymTrackClient


async def no_sleep(delay: float) -> None:
    return None


@pytest.fixture
def remote():
    return InMemoryRemoteGateway()


@pytest.fixture
def client(remote):
    """Create a test client over in-memory stores."""

    async def factory() -> GymTrackClient:
        return await GymTrackClient.create(
            InMemoryLocalStore(),
            remote,
            retry=RetryExecutor(max_attempts=2, base_delay=0, sleep=no_sleep),
        )

    with TestClient(create_app(factory)) as test_client:
        yield test_client


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "GymTrack Sync API"


def test_health(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["remote_available"] is True
    assert data["local_store_healthy"] is True
    assert "hits" in data["cache"]


def test_health_reports_degraded_remote(client, remote):
    remote.available = False
    data = client.get("/health").json()
    assert data["status"] == "degraded"
    assert data["remote_available"] is False


def test_profile_round_trip(client, remote):
    response = client.put("/profiles", json={"uid": "u1", "username": "lifter"})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert remote.documents("users")["u1"]["username"] == "lifter"

    fetched = client.get("/profiles/u1", params={"online": "false"}).json()
    assert fetched["data"]["username"] == "lifter"

    settings = client.patch("/profiles/u1/settings", json={"darkMode": True})
    assert settings.json()["data"] == {"darkMode": True}


def test_unknown_profile_is_empty_success(client):
    response = client.get("/profiles/ghost")
    assert response.status_code == 200
    assert response.json()["data"] is None


def test_validation_errors_are_422(client):
    response = client.put("/profiles", json={"uid": "u1", "email": "nope"})
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "validation_failed"


def test_workout_endpoints(client, remote):
    workout = make_workout()
    del workout["userId"]

    created = client.post("/users/u1/workouts", json={**workout, "id": "w1"}, params={"online": "false"})
    assert created.status_code == 200
    assert remote.documents("users/u1/workoutHistory") == {}

    listed = client.get("/users/u1/workouts", params={"online": "false"}).json()
    assert [item["id"] for item in listed["data"]] == ["w1"]

    recent = client.get("/users/u1/workouts/recent", params={"count": 1, "online": "false"}).json()
    assert len(recent["data"]) == 1

    synced = client.post("/users/u1/workouts/sync").json()
    assert synced["data"]["pushed"] == ["w1"]

    updated = client.patch("/users/u1/workouts/w1", json={"name": "Leg day"}).json()
    assert updated["data"]["name"] == "Leg day"

    assert client.delete("/users/u1/workouts/w1").status_code == 200
    assert client.get("/users/u1/workouts/w1").status_code == 404


def test_weight_log_endpoints(client):
    logged = client.post("/users/u1/weight-log", json={"date": "2024-01-01", "weight": 80})
    assert logged.json()["data"]["id"] == "20240101"

    log = client.get("/users/u1/weight-log").json()
    assert [entry["weight"] for entry in log["data"]] == [80]


def test_offline_sync_is_409(client):
    response = client.post("/users/u1/sync", params={"online": "false"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "offline_write_rejected"


def test_sync_all_endpoint(client):
    response = client.post("/users/u1/sync")
    assert response.status_code == 200
    assert response.json()["data"]["ok"] is True


def test_friend_request_endpoints(client):
    sent = client.post(
        "/friend-requests",
        json={"fromUid": "u1", "toUid": "u2", "fromUsername": "alice", "toUsername": "bob"},
    )
    request_id = sent.json()["data"]["id"]

    received = client.get("/users/u2/friend-requests/received").json()
    assert [item["id"] for item in received["data"]] == [request_id]

    accepted = client.post(f"/friend-requests/{request_id}/accept", params={"user_id": "u2"})
    assert accepted.status_code == 200
    assert len(accepted.json()["data"]) == 2

    again = client.post(f"/friend-requests/{request_id}/accept", params={"user_id": "u2"})
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "invalid_state_transition"

    friends = client.get("/users/u1/friends").json()
    assert friends["data"][0]["friendId"] == "u2"


def test_status_mapping():
    assert status_for(ApiResult.ok([])) == 200
    assert status_for(ApiResult.fail("missing_required_field", "x")) == 422
    assert status_for(ApiResult.fail("not_found", "x")) == 404
    assert status_for(ApiResult.fail("operation_failed", "x")) == 500
