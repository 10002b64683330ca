"""Unit tests for the CLI HTTP client."""

import httpx
import pytest

from modules.cli import client as client_module
from modules.cli.client import TOKEN_ENV_VAR, APIClient, close_api_client, get_api_client


class TestAPIClient:
    """Tests for APIClient."""

    def test_strips_trailing_slash(self):
        client = APIClient(base_url="http://board.test/", timeout=5.0, token="")
        assert client.base_url == "http://board.test"

    def test_defaults_from_config(self, monkeypatch):
        monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)
        client = APIClient()
        assert client.base_url.startswith("http://")
        assert client.timeout > 0
        assert client.token is None

    def test_token_from_environment(self, monkeypatch):
        monkeypatch.setenv(TOKEN_ENV_VAR, "env-token")
        assert APIClient(base_url="http://board.test", timeout=1.0).token == "env-token"

    @pytest.mark.asyncio
    async def test_sends_frontend_and_bearer_headers(self, backend):
        backend.route("GET", "/health", body={"status": "healthy"})
        client = backend.client(token="abc")

        response = await client.get("/health")
        await client.close()

        assert response.status_code == 200
        sent = backend.requests[0]
        assert sent.headers["X-Frontend-ID"] == "cli"
        assert sent.headers["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_no_authorization_without_token(self, backend):
        backend.route("GET", "/health", body={})
        client = backend.client(token="")

        await client.get("/health")
        await client.close()

        assert "Authorization" not in backend.requests[0].headers

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = APIClient(base_url="http://board.test", timeout=1.0, token="", transport=httpx.MockTransport(handler))

        with pytest.raises(httpx.ConnectError):
            await client.post("/api/v1/opportunities", json={})
        await client.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, backend):
        client = backend.client()
        await client.close()
        await client.close()


class TestSingleton:
    @pytest.mark.asyncio
    async def test_get_and_close(self):
        first = get_api_client()
        assert get_api_client() is first

        await close_api_client()

        assert client_module._client is None
