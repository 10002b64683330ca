"""
Base Service.

Services hold the business rules and drive the repositories. They never
commit: the request session (``get_db_session``) commits when the endpoint
returns and rolls back when it raises, which is what makes multi-step
operations such as a reorder batch plus its audit entry atomic.

Usage:
    class SubmissionService(BaseService):
        def __init__(self, session: AsyncSession) -> None:
            super().__init__(session)
            self.repo = SubmissionRepository(session)

        async def count_pending(self) -> int:
            return await self._execute_db_operation("count_pending", self.repo.count_pending())
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.exceptions import ConflictError, DatabaseError
from modules.backend.core.logging import get_logger

T = TypeVar("T")

_UNIQUE_MARKERS = ("unique", "duplicate")


class BaseService:
    """Common plumbing for services: session access, DB error mapping, logging."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Await a repository call, translating SQLAlchemy failures.

        Application errors raised inside (NotFoundError and friends) pass
        through untouched.

        Raises:
            ConflictError: On a unique constraint violation
            DatabaseError: On any other database failure
        """
        try:
            return await coro
        except IntegrityError as e:
            self._logger.warning("Database integrity error", extra={"operation": operation, "error": str(e)})
            if any(marker in str(e).lower() for marker in _UNIQUE_MARKERS):
                raise ConflictError("Resource already exists") from e
            raise DatabaseError(f"Database constraint violation: {operation}") from e
        except SQLAlchemyError as e:
            self._logger.error("Database error", extra={"operation": operation, "error": str(e)})
            raise DatabaseError(f"Database operation failed: {operation}") from e

    def _log_operation(self, operation: str, **context: Any) -> None:
        """Info-level log of a business operation, tagged with the service name."""
        self._logger.info(operation, extra={"service": self.__class__.__name__, **context})

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, extra={"service": self.__class__.__name__, **context})
