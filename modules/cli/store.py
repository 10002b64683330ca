"""
HTTP Snapshot Store.

Implements the listing ``SnapshotStore`` against the backend API so the
admin client can run a ``ListingView`` and ``ReorderCoordinator`` locally.
Non-2xx answers are raised as application errors carrying the backend's
error code and message.
"""

from collections.abc import Sequence
from typing import Any

import httpx

from modules.backend.core.config import get_app_config
from modules.backend.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from modules.backend.listing.reorder import ReorderItem
from modules.backend.listing.view import SnapshotQuery
from modules.backend.schemas.opportunity import OpportunityResponse
from modules.cli.client import APIClient

_STATUS_ERRORS: dict[int, type[ApplicationError]] = {
    400: ValidationError,
    401: AuthenticationError,
    404: NotFoundError,
    409: ConflictError,
}


def raise_for_envelope(response: httpx.Response) -> dict[str, Any]:
    """
    Return the decoded envelope of a successful response.

    Raises:
        ApplicationError: Subclass matching the HTTP status, with the
            backend's error message
    """
    if response.status_code == 204:
        return {}
    try:
        body = response.json()
    except ValueError:
        body = {}

    if response.is_success:
        return body

    error = body.get("error") or {}
    message = error.get("message") or f"Backend responded with status {response.status_code}"
    error_cls = _STATUS_ERRORS.get(response.status_code)
    if error_cls is None:
        raise ExternalServiceError(message)
    raise error_cls(message)


class HttpOpportunityStore:
    """Snapshot store backed by the opportunities API."""

    def __init__(self, client: APIClient, api_prefix: str | None = None) -> None:
        self.client = client
        self.prefix = (api_prefix or get_app_config().application.api_prefix).rstrip("/")

    def _path(self, suffix: str = "") -> str:
        return f"{self.prefix}/opportunities{suffix}"

    async def list(self, query: SnapshotQuery) -> list[OpportunityResponse]:
        """Fetch the snapshot for a coarse query in stored order."""
        params = query.as_params()
        # the server applies its default sort unless told otherwise
        params.setdefault("sort", "default")
        response = await self.client.get(self._path(), params=params)
        body = raise_for_envelope(response)
        return [OpportunityResponse.model_validate(item) for item in body.get("data") or []]

    async def reorder(self, items: Sequence[ReorderItem]) -> None:
        """Submit a reorder batch as one request."""
        response = await self.client.put(
            self._path("/order"),
            json={"items": [item.to_dict() for item in items]},
        )
        raise_for_envelope(response)

    async def get(self, opportunity_id: str) -> OpportunityResponse:
        response = await self.client.get(self._path(f"/{opportunity_id}"))
        return OpportunityResponse.model_validate(raise_for_envelope(response)["data"])

    async def action(
        self,
        opportunity_id: str,
        action: str,
        payload: dict[str, Any] | None = None,
    ) -> OpportunityResponse:
        """POST one of the single-record actions (archive, unarchive, duplicate, verify)."""
        response = await self.client.post(self._path(f"/{opportunity_id}/{action}"), json=payload)
        return OpportunityResponse.model_validate(raise_for_envelope(response)["data"])

    async def delete(self, opportunity_id: str) -> None:
        response = await self.client.delete(self._path(f"/{opportunity_id}"))
        raise_for_envelope(response)
