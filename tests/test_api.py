"""
==============================================================================
API Integration Tests
==============================================================================

Tests for REST API endpoints.

==============================================================================
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.core.security import get_security_manager
from app.db.models import User
from app.main import app


def _request_ride(client: TestClient, headers: dict, pickup="A", drop="B") -> dict:
    response = client.post(
        "/api/v1/rides",
        headers=headers,
        json={"pickupLocation": pickup, "dropLocation": drop}
    )
    assert response.status_code == 200
    return response.json()


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_health_check(self, client: TestClient):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"] == "healthy"

    def test_readiness_probe(self, client: TestClient):
        response = client.get("/api/v1/health/ready")
        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_liveness_probe(self, client: TestClient):
        response = client.get("/api/v1/health/live")
        assert response.status_code == 200
        assert response.json()["alive"] is True


class TestAuthEndpoints:
    """Tests for authentication endpoints."""

    def test_register_returns_token(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "Alice", "password": "pw", "role": "ROLE_USER"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["token"]
        assert data["tokenType"] == "bearer"
        assert data["expiresIn"] > 0
        assert data["username"] == "alice"
        assert data["role"] == "ROLE_USER"

    def test_register_duplicate_username(self, client: TestClient, rider_user: User):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "ALICE", "password": "pw", "role": "ROLE_DRIVER"}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "USERNAME_EXISTS"

    def test_register_unknown_role(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "eve", "password": "pw", "role": "ROLE_ADMIN"}
        )
        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"]["code"] == "VALIDATION_ERROR"

    def test_login_success(self, client: TestClient, rider_user: User):
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "alice", "password": "alice123"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["username"] == "alice"
        assert data["role"] == "ROLE_USER"

    def test_login_invalid_password(self, client: TestClient, rider_user: User):
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "alice", "password": "wrong"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_login_user_not_found(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/login",
            json={"username": "nobody", "password": "password123"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    def test_get_current_user(self, client: TestClient, driver_headers: dict):
        response = client.get("/api/v1/auth/me", headers=driver_headers)
        assert response.status_code == 200
        user = response.json()["user"]
        assert user["username"] == "bob"
        assert user["role"] == "ROLE_DRIVER"

    def test_get_current_user_no_token(self, client: TestClient):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_INVALID"

    def test_expired_token_rejected(self, client: TestClient, rider_user: User):
        token = get_security_manager().create_access_token(
            {"sub": rider_user.id},
            expires_delta=timedelta(seconds=-10)
        )
        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "TOKEN_EXPIRED"


class TestRideEndpoints:
    """Tests for ride lifecycle endpoints."""

    def test_request_ride(self, client: TestClient, rider_headers: dict, rider_user: User):
        ride = _request_ride(client, rider_headers, "Main St", "Airport")
        assert set(ride) == {
            "id", "userId", "driverId", "pickupLocation",
            "dropLocation", "status", "createdAt",
        }
        assert ride["status"] == "REQUESTED"
        assert ride["driverId"] is None
        assert ride["userId"] == rider_user.id
        assert ride["pickupLocation"] == "Main St"
        assert ride["dropLocation"] == "Airport"

    def test_request_ride_requires_token(self, client: TestClient):
        response = client.post(
            "/api/v1/rides",
            json={"pickupLocation": "A", "dropLocation": "B"}
        )
        assert response.status_code == 401

    def test_request_ride_missing_location(self, client: TestClient, rider_headers: dict):
        response = client.post(
            "/api/v1/rides",
            headers=rider_headers,
            json={"pickupLocation": "A"}
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_full_lifecycle(self, client: TestClient):
        alice = client.post(
            "/api/v1/auth/register",
            json={"username": "alice", "password": "pw", "role": "ROLE_USER"}
        ).json()
        login = client.post(
            "/api/v1/auth/login",
            json={"username": "alice", "password": "pw"}
        )
        assert login.status_code == 200
        alice_headers = {"Authorization": f"Bearer {login.json()['token']}"}
        assert alice["role"] == "ROLE_USER"

        ride = _request_ride(client, alice_headers)
        assert ride["status"] == "REQUESTED"

        bob = client.post(
            "/api/v1/auth/register",
            json={"username": "bob", "password": "pw", "role": "ROLE_DRIVER"}
        ).json()
        bob_headers = {"Authorization": f"Bearer {bob['token']}"}
        bob_id = client.get("/api/v1/auth/me", headers=bob_headers).json()["user"]["id"]

        pending = client.get("/api/v1/driver/rides/requests", headers=bob_headers).json()
        assert [r["id"] for r in pending] == [ride["id"]]

        accepted = client.post(
            f"/api/v1/driver/rides/{ride['id']}/accept", headers=bob_headers
        )
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "ACCEPTED"
        assert accepted.json()["driverId"] == bob_id

        assert client.get("/api/v1/driver/rides/requests", headers=bob_headers).json() == []

        completed = client.post(
            f"/api/v1/rides/{ride['id']}/complete", headers=alice_headers
        )
        assert completed.status_code == 200
        assert completed.json()["status"] == "COMPLETED"

        again = client.post(
            f"/api/v1/rides/{ride['id']}/complete", headers=alice_headers
        )
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "INVALID_STATUS"

    def test_accept_already_accepted(
        self,
        client: TestClient,
        rider_headers: dict,
        driver_headers: dict,
        other_driver_headers: dict,
        driver_user: User
    ):
        ride = _request_ride(client, rider_headers)
        client.post(f"/api/v1/driver/rides/{ride['id']}/accept", headers=driver_headers)

        response = client.post(
            f"/api/v1/driver/rides/{ride['id']}/accept", headers=other_driver_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["details"]["current_status"] == "ACCEPTED"

        current = client.get(f"/api/v1/rides/{ride['id']}", headers=rider_headers).json()
        assert current["status"] == "ACCEPTED"
        assert current["driverId"] == driver_user.id

    def test_rider_cannot_accept(self, client: TestClient, rider_headers: dict):
        ride = _request_ride(client, rider_headers)
        response = client.post(
            f"/api/v1/driver/rides/{ride['id']}/accept", headers=rider_headers
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "DRIVER_REQUIRED"

    def test_rider_cannot_list_pending(self, client: TestClient, rider_headers: dict):
        response = client.get("/api/v1/driver/rides/requests", headers=rider_headers)
        assert response.status_code == 403

    def test_accept_unknown_ride(self, client: TestClient, driver_headers: dict):
        response = client.post(
            "/api/v1/driver/rides/does-not-exist/accept", headers=driver_headers
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RIDE_NOT_FOUND"

    def test_complete_requires_accepted(self, client: TestClient, rider_headers: dict):
        ride = _request_ride(client, rider_headers)
        response = client.post(
            f"/api/v1/rides/{ride['id']}/complete", headers=rider_headers
        )
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_STATUS"

    def test_stranger_cannot_complete(
        self,
        client: TestClient,
        rider_headers: dict,
        driver_headers: dict,
        other_rider_headers: dict
    ):
        ride = _request_ride(client, rider_headers)
        client.post(f"/api/v1/driver/rides/{ride['id']}/accept", headers=driver_headers)

        response = client.post(
            f"/api/v1/rides/{ride['id']}/complete", headers=other_rider_headers
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

        current = client.get(f"/api/v1/rides/{ride['id']}", headers=rider_headers).json()
        assert current["status"] == "ACCEPTED"

    def test_driver_can_complete(
        self,
        client: TestClient,
        rider_headers: dict,
        driver_headers: dict
    ):
        ride = _request_ride(client, rider_headers)
        client.post(f"/api/v1/driver/rides/{ride['id']}/accept", headers=driver_headers)

        response = client.post(
            f"/api/v1/rides/{ride['id']}/complete", headers=driver_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "COMPLETED"

    def test_user_rides_only_own(
        self,
        client: TestClient,
        rider_headers: dict,
        other_rider_headers: dict
    ):
        mine = _request_ride(client, rider_headers)
        _request_ride(client, other_rider_headers)

        response = client.get("/api/v1/user/rides", headers=rider_headers)
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [mine["id"]]

    def test_driver_rides(
        self,
        client: TestClient,
        rider_headers: dict,
        driver_headers: dict
    ):
        first = _request_ride(client, rider_headers, "A", "B")
        _request_ride(client, rider_headers, "C", "D")
        client.post(f"/api/v1/driver/rides/{first['id']}/accept", headers=driver_headers)

        response = client.get("/api/v1/driver/rides", headers=driver_headers)
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == [first["id"]]

    def test_get_unknown_ride(self, client: TestClient, rider_headers: dict):
        response = client.get("/api/v1/rides/missing", headers=rider_headers)
        assert response.status_code == 404

    def test_user_rides_include_every_status(
        self,
        client: TestClient,
        rider_headers: dict,
        driver_headers: dict
    ):
        completed = _request_ride(client, rider_headers, "A", "B")
        accepted = _request_ride(client, rider_headers, "C", "D")
        requested = _request_ride(client, rider_headers, "E", "F")

        client.post(f"/api/v1/driver/rides/{completed['id']}/accept", headers=driver_headers)
        client.post(f"/api/v1/rides/{completed['id']}/complete", headers=rider_headers)
        client.post(f"/api/v1/driver/rides/{accepted['id']}/accept", headers=driver_headers)

        response = client.get("/api/v1/user/rides", headers=rider_headers)
        assert response.status_code == 200
        statuses = {r["id"]: r["status"] for r in response.json()}
        assert statuses == {
            completed["id"]: "COMPLETED",
            accepted["id"]: "ACCEPTED",
            requested["id"]: "REQUESTED",
        }

    def test_created_at_carries_utc_offset(self, client: TestClient, rider_headers: dict):
        ride = _request_ride(client, rider_headers)
        created_at = datetime.fromisoformat(ride["createdAt"].replace("Z", "+00:00"))
        assert created_at.utcoffset() == timedelta(0)


class TestUsernameRules:
    """Username length is checked after normalization."""

    @pytest.mark.parametrize("username", ["  a  ", " ab ", "   "])
    def test_short_username_after_strip(self, client: TestClient, username: str):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": username, "password": "pw", "role": "ROLE_USER"}
        )
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_padded_username_is_trimmed(self, client: TestClient):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": "  Zed  ", "password": "pw", "role": "ROLE_USER"}
        )
        assert response.status_code == 200
        assert response.json()["username"] == "zed"


class TestStartup:
    """Application lifespan behaviour."""

    def test_startup_fails_without_database(self, monkeypatch):
        monkeypatch.setattr("app.main.init_db", lambda: False)

        with pytest.raises(RuntimeError):
            with TestClient(app):
                pass
