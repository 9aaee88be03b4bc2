"""Tests for the authentication API endpoints."""

from unittest.mock import AsyncMock, patch

import pytest

from storefront_auth.core.errors import IdentityStoreError
from tests.conftest import DAY_SECONDS, TEST_EMAIL, TEST_PASSWORD, bearer

pytestmark = pytest.mark.asyncio


class TestLogin:
    """Tests for POST /auth/login."""

    async def test_login_success(self, async_client, shopper, clock):
        response = await async_client.post(
            "/auth/login",
            json={"email": TEST_EMAIL, "password": TEST_PASSWORD, "device_id": "phoneA"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token"]
        assert data["token_type"] == "bearer"
        assert data["device_id"] == "phoneA"
        assert data["expires_at"] == clock.now_ms + 7 * DAY_SECONDS * 1000

    async def test_login_without_device(self, login):
        data = await login()
        assert data["device_id"] == "unknown"

    async def test_login_email_is_case_insensitive(self, async_client, shopper):
        response = await async_client.post(
            "/auth/login", json={"email": TEST_EMAIL.upper(), "password": TEST_PASSWORD}
        )
        assert response.status_code == 200

    async def test_wrong_password(self, async_client, shopper):
        response = await async_client.post(
            "/auth/login", json={"email": TEST_EMAIL, "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_unknown_email(self, async_client, shopper):
        response = await async_client.post(
            "/auth/login", json={"email": "nobody@example.com", "password": TEST_PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_deactivated_account_cannot_login(self, async_client, container, shopper):
        await container.accounts.deactivate(shopper.id)

        response = await async_client.post(
            "/auth/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD}
        )

        assert response.status_code == 401

    async def test_accounts_database_failure_is_503(self, async_client, container, shopper):
        failing = AsyncMock(side_effect=IdentityStoreError("Account lookup failed"))

        with patch.object(container.accounts, "authenticate", failing):
            response = await async_client.post(
                "/auth/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD}
            )

        assert response.status_code == 503
        assert response.json()["detail"] == "Authentication service unavailable"

    async def test_login_needs_no_token(self, async_client, shopper):
        """The login route is excluded from the gate."""
        response = await async_client.post(
            "/auth/login",
            json={"email": TEST_EMAIL, "password": TEST_PASSWORD},
            headers={"Authorization": "Bearer garbage"},
        )
        assert response.status_code == 200

    async def test_each_login_is_a_new_session(self, async_client, login):
        first = await login("phoneA")
        second = await login("phoneA")

        assert first["token"] != second["token"]

        response = await async_client.get("/auth/sessions", headers=bearer(first["token"]))
        assert len(response.json()) == 2


class TestMe:
    """Tests for GET /auth/me."""

    async def test_me(self, async_client, login, shopper):
        data = await login()

        response = await async_client.get("/auth/me", headers=bearer(data["token"]))

        assert response.status_code == 200
        assert response.json() == {
            "id": shopper.id,
            "email": TEST_EMAIL,
            "display_name": "Test Shopper",
        }

    async def test_me_without_token(self, async_client):
        response = await async_client.get("/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_me_with_wrong_scheme(self, async_client, login):
        data = await login()

        response = await async_client.get(
            "/auth/me", headers={"Authorization": f"Token {data['token']}"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    async def test_me_with_garbage_token(self, async_client):
        response = await async_client.get("/auth/me", headers=bearer("not-a-token"))

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_me_with_expired_token(self, async_client, login, clock):
        data = await login()
        clock.advance(seconds=7 * DAY_SECONDS)

        response = await async_client.get("/auth/me", headers=bearer(data["token"]))

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_me_after_account_deactivated(self, async_client, container, login, shopper):
        data = await login()
        await container.accounts.deactivate(shopper.id)

        response = await async_client.get("/auth/me", headers=bearer(data["token"]))

        assert response.status_code == 401
        assert response.json()["detail"] == "User not found"

    async def test_unknown_protected_path_still_gated(self, async_client):
        response = await async_client.get("/api/orders")
        assert response.status_code == 401


class TestLogout:
    """Tests for POST /auth/logout and /auth/logout-all."""

    async def test_logout_revokes_token(self, async_client, login):
        data = await login("phoneA")
        headers = bearer(data["token"])

        response = await async_client.post("/auth/logout", headers=headers)

        assert response.status_code == 200
        assert response.json()["revoked"] is True

        response = await async_client.get("/auth/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_logout_keeps_other_devices(self, async_client, login):
        phone = await login("phoneA")
        laptop = await login("laptop")

        await async_client.post("/auth/logout", headers=bearer(phone["token"]))

        response = await async_client.get("/auth/me", headers=bearer(laptop["token"]))
        assert response.status_code == 200

    async def test_logout_all(self, async_client, login):
        phone = await login("phoneA")
        laptop = await login("laptop")

        response = await async_client.post("/auth/logout-all", headers=bearer(phone["token"]))

        assert response.status_code == 200
        assert response.json()["revoked"] == 2
        for token in (phone["token"], laptop["token"]):
            response = await async_client.get("/auth/me", headers=bearer(token))
            assert response.status_code == 401

        fresh = await login("phoneA")
        response = await async_client.get("/auth/me", headers=bearer(fresh["token"]))
        assert response.status_code == 200

    async def test_logout_requires_token(self, async_client):
        response = await async_client.post("/auth/logout")
        assert response.status_code == 401


class TestSessions:
    """Tests for GET /auth/sessions."""

    async def test_lists_live_sessions_and_marks_current(self, async_client, login, clock):
        phone = await login("phoneA")
        clock.advance(seconds=1)
        laptop = await login("laptop")

        response = await async_client.get("/auth/sessions", headers=bearer(laptop["token"]))

        assert response.status_code == 200
        sessions = response.json()
        assert [s["device_id"] for s in sessions] == ["laptop", "phoneA"]
        assert [s["current"] for s in sessions] == [True, False]
        assert all("token" not in s for s in sessions)
        assert sessions[1]["expires_at"] == phone["expires_at"]

    async def test_revoked_sessions_not_listed(self, async_client, login):
        phone = await login("phoneA")
        laptop = await login("laptop")
        await async_client.post("/auth/logout", headers=bearer(phone["token"]))

        response = await async_client.get("/auth/sessions", headers=bearer(laptop["token"]))

        assert [s["device_id"] for s in response.json()] == ["laptop"]


class TestRefresh:
    """Tests for POST /auth/refresh."""

    async def test_fresh_token_not_refreshed(self, async_client, login):
        data = await login("phoneA")

        response = await async_client.post("/auth/refresh", headers=bearer(data["token"]))

        assert response.status_code == 200
        body = response.json()
        assert body["refreshed"] is False
        assert body["token"] == data["token"]

    async def test_near_expiry_token_refreshed(self, async_client, login, clock):
        data = await login("phoneA")
        clock.advance(seconds=6 * DAY_SECONDS + 60)

        response = await async_client.post("/auth/refresh", headers=bearer(data["token"]))

        assert response.status_code == 200
        body = response.json()
        assert body["refreshed"] is True
        assert body["token"] != data["token"]
        assert body["device_id"] == "phoneA"
        assert body["expires_at"] == clock.now_ms + 7 * DAY_SECONDS * 1000

        response = await async_client.get("/auth/me", headers=bearer(body["token"]))
        assert response.status_code == 200

    async def test_refresh_requires_live_token(self, async_client, login):
        data = await login()
        await async_client.post("/auth/logout", headers=bearer(data["token"]))

        response = await async_client.post("/auth/refresh", headers=bearer(data["token"]))

        assert response.status_code == 401


class TestHealth:
    """Tests for GET /health."""

    async def test_health_is_public(self, async_client):
        response = await async_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "session_store": "connected"}
