"""
CLI Test Fixtures.

The backend is replaced by an httpx.MockTransport serving the standard
response envelope.
"""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from modules.cli.client import APIClient


def opportunity_payload(id: str, **overrides: Any) -> dict[str, Any]:
    """Opportunity as the API serializes it."""
    payload = {
        "id": id,
        "title": f"Opportunity {id}",
        "provider": "Acme Foundation",
        "description": "",
        "description_full": "",
        "logo_url": "",
        "apply_url": "https://acme.org/apply",
        "category_tags": ["Grant"],
        "applicable_groups": [],
        "regions": [],
        "funding_types": [],
        "eligibility": "",
        "deadline": None,
        "status": "active",
        "sort_order": None,
        "verified_at": None,
        "archived_at": None,
        "archived_by": None,
        "created_by": "admin",
        "created_at": "2026-01-01T00:00:00",
        "updated_at": "2026-01-01T00:00:00",
        "deadline_state": "ongoing",
    }
    payload.update(overrides)
    return payload


def envelope(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data, "error": None, "metadata": {"request_id": "req-test"}}


def error_envelope(code: str, message: str) -> dict[str, Any]:
    return {"success": False, "data": None, "error": {"code": code, "message": message}, "metadata": {}}


class FakeBackend:
    """Records requests and answers them from a route table."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def route(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, path)] = lambda request: httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, json=error_envelope("RES_NOT_FOUND", "No route"))
        return responder(request)

    def json_of(self, index: int) -> Any:
        return json.loads(self.requests[index].content)

    def client(self, token: str | None = "test-token") -> APIClient:
        return APIClient(
            base_url="http://board.test",
            timeout=5.0,
            token=token,
            transport=httpx.MockTransport(self.handler),
        )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_payload():
    """Factory for serialized opportunities. See ``opportunity_payload``."""
    return opportunity_payload


@pytest.fixture
def ok_envelope():
    return envelope


@pytest.fixture
def failed_envelope():
    return error_envelope
