"""
Integration Test Fixtures.

The FastAPI app runs in-process over ASGITransport against the test
database. Fixtures build on the root conftest.py database fixtures.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient, Response
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.database import get_db_session


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
async def client(
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client whose requests all share the test session.

    Every API call works in the session that is rolled back after the
    test, so tests can seed with ``make_opportunity`` and read back.

    Usage:
        async def test_listing(client: AsyncClient):
            response = await client.get("/api/v1/opportunities")
            assert response.status_code == 200
    """
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    from modules.backend.main import create_app

    app = create_app()
    app.dependency_overrides[get_db_session] = override_get_db_session

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-Frontend-ID": "internal"},
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# Authentication Fixtures
# =============================================================================


@pytest.fixture
def admin_token() -> str:
    """Valid admin JWT signed with the configured secret."""
    from modules.backend.core.security import create_access_token

    return create_access_token({"sub": "admin", "role": "admin"})


@pytest.fixture
def admin_headers(admin_token: str) -> dict[str, str]:
    """
    Bearer headers for admin endpoints.

    Usage:
        async def test_archive(client, admin_headers, make_opportunity):
            record = await make_opportunity()
            await client.post(f"/api/v1/opportunities/{record.id}/archive", headers=admin_headers)
    """
    return {"Authorization": f"Bearer {admin_token}"}


# =============================================================================
# Envelope Assertions
# =============================================================================


def _body(response: Response, expected_status: int) -> dict[str, Any]:
    assert response.status_code == expected_status, (
        f"{response.request.method} {response.request.url.path}: "
        f"expected {expected_status}, got {response.status_code} {response.text}"
    )
    return response.json()


class ApiAssertions:
    """Checks on the success/error envelope every v1 endpoint returns."""

    @staticmethod
    def assert_success(response: Response, expected_status: int = 200) -> dict[str, Any]:
        """Envelope with ``success: true``; returns the whole body."""
        body = _body(response, expected_status)
        assert body.get("success") is True, body
        return body

    @staticmethod
    def assert_error(
        response: Response,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """Envelope with ``success: false`` and, optionally, a given error code."""
        body = _body(response, expected_status)
        assert body.get("success") is False, body
        error = body.get("error") or {}
        assert error.get("code"), body
        if expected_code is not None:
            assert error["code"] == expected_code, body
        return body

    @staticmethod
    def assert_validation_error(response: Response, field: str | None = None) -> dict[str, Any]:
        """422 request validation error, optionally naming ``field``."""
        body = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")
        if field is not None:
            details = body["error"].get("details") or {}
            fields = [entry.get("field", "") for entry in details.get("validation_errors", [])]
            assert any(field in name for name in fields), f"no error for {field!r} in {fields}"
        return body


@pytest.fixture
def api() -> ApiAssertions:
    return ApiAssertions()
