"""
Unit Tests for Base Service.

Tests database error translation and the logging helpers.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from modules.backend.core.exceptions import ConflictError, DatabaseError, NotFoundError
from modules.backend.services.base import BaseService


@pytest.fixture
def service() -> BaseService:
    return BaseService(AsyncMock())


def integrity_error(message: str) -> IntegrityError:
    return IntegrityError("INSERT INTO opportunities ...", {}, Exception(message))


class TestExecuteDbOperation:
    """Tests for _execute_db_operation."""

    @pytest.mark.asyncio
    async def test_returns_result(self, service):
        async def snapshot():
            return ["a", "b"]

        assert await service._execute_db_operation("list_snapshot", snapshot()) == ["a", "b"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", ["UNIQUE constraint failed", "duplicate key value"])
    async def test_unique_violation_is_conflict(self, service, message):
        async def insert():
            raise integrity_error(message)

        with pytest.raises(ConflictError) as exc_info:
            await service._execute_db_operation("create_opportunity", insert())

        assert exc_info.value.message == "Resource already exists"

    @pytest.mark.asyncio
    async def test_other_integrity_error_is_database_error(self, service):
        async def insert():
            raise integrity_error("NOT NULL constraint failed: opportunities.apply_url")

        with pytest.raises(DatabaseError) as exc_info:
            await service._execute_db_operation("create_opportunity", insert())

        assert exc_info.value.message == "Database constraint violation: create_opportunity"

    @pytest.mark.asyncio
    async def test_operational_error_is_database_error(self, service):
        async def snapshot():
            raise OperationalError("SELECT ...", {}, Exception("connection refused"))

        with pytest.raises(DatabaseError) as exc_info:
            await service._execute_db_operation("list_snapshot", snapshot())

        assert "list_snapshot" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_application_errors_pass_through(self, service):
        async def lookup():
            raise NotFoundError("Opportunity not found")

        with pytest.raises(NotFoundError):
            await service._execute_db_operation("get_opportunity", lookup())


class TestLoggingHelpers:

    def test_log_operation_tags_service(self, service):
        with patch.object(service._logger, "info") as mock_info:
            service._log_operation("Archiving opportunity", opportunity_id="opp-1")

        extra = mock_info.call_args.kwargs["extra"]
        assert extra == {"service": "BaseService", "opportunity_id": "opp-1"}

    def test_log_debug_tags_subclass_name(self):
        class ListingService(BaseService):
            pass

        service = ListingService(AsyncMock())
        with patch.object(service._logger, "debug") as mock_debug:
            service._log_debug("Listing computed", displayed=3)

        assert mock_debug.call_args.kwargs["extra"]["service"] == "ListingService"

    def test_session_property(self):
        session = AsyncMock()

        assert BaseService(session).session is session
