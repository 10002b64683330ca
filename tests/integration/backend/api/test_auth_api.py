"""
Integration tests for the admin login flow.

Credentials come from the environment the root conftest.py sets up.
"""

import pytest
from httpx import AsyncClient

from modules.backend.core.config import get_settings
from modules.backend.core.security import create_access_token

BASE = "/api/v1/auth"


def admin_credentials() -> dict[str, str]:
    settings = get_settings()
    return {"username": settings.admin_username, "password": settings.admin_password}


class TestLogin:
    """Tests for POST /auth/login."""

    @pytest.mark.asyncio
    async def test_login_sets_cookie(self, client: AsyncClient, api):
        response = await client.post(f"{BASE}/login", json=admin_credentials())

        data = api.assert_success(response)["data"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 604800
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith(f"admin_token={data['access_token']}")
        assert "HttpOnly" in set_cookie

    @pytest.mark.asyncio
    async def test_wrong_password(self, client: AsyncClient, api):
        credentials = admin_credentials()
        credentials["password"] = "definitely-wrong"

        response = await client.post(f"{BASE}/login", json=credentials)

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_empty_body(self, client: AsyncClient, api):
        response = await client.post(f"{BASE}/login", json={})

        api.assert_validation_error(response, field="username")


class TestVerify:
    """Tests for GET /auth/verify."""

    @pytest.mark.asyncio
    async def test_verify_with_login_token(self, client: AsyncClient, api):
        login = api.assert_success(await client.post(f"{BASE}/login", json=admin_credentials()))
        token = login["data"]["access_token"]

        response = await client.get(
            f"{BASE}/verify",
            headers={"Cookie": f"admin_token={token}"},
        )

        assert api.assert_success(response)["data"] == {
            "username": admin_credentials()["username"],
            "authenticated": True,
        }

    @pytest.mark.asyncio
    async def test_verify_without_token(self, client: AsyncClient, api):
        response = await client.get(f"{BASE}/verify")

        api.assert_error(response, 401)

    @pytest.mark.asyncio
    async def test_non_admin_token_rejected(self, client: AsyncClient, api):
        token = create_access_token({"sub": "visitor", "role": "viewer"})

        response = await client.get(
            f"{BASE}/verify",
            headers={"Authorization": f"Bearer {token}"},
        )

        api.assert_error(response, 401)


class TestLogout:

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client: AsyncClient, api):
        response = await client.post(f"{BASE}/logout")

        data = api.assert_success(response)["data"]
        assert data["authenticated"] is False
        assert response.headers["set-cookie"].startswith('admin_token=""')
