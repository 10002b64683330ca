"""
Base Repository.

Generic data access shared by the opportunity, submission and audit log
repositories. Writes flush but never commit; the request session decides
the transaction outcome. Records keep string UUID primary keys.
"""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.exceptions import NotFoundError
from modules.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    CRUD over one model.

    Subclasses set ``model``:

        class SubmissionRepository(BaseRepository[Submission]):
            model = Submission
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _ids_clause(self, ids: Sequence[str]):
        return self.model.id.in_([str(record_id) for record_id in ids])

    async def find(self, id: str) -> ModelType | None:
        return await self.session.get(self.model, str(id))

    async def get_by_id(self, id: str) -> ModelType:
        """
        Load one record.

        Raises:
            NotFoundError: If no record has this ID
        """
        instance = await self.find(id)
        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return instance

    async def get_many(self, ids: Sequence[str]) -> dict[str, ModelType]:
        """Records for ``ids`` keyed by ID; unknown IDs are simply absent."""
        if not ids:
            return {}
        result = await self.session.execute(select(self.model).where(self._ids_clause(ids)))
        return {instance.id: instance for instance in result.scalars()}

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def create(self, **values: Any) -> ModelType:
        """Insert a record and return it with database defaults loaded."""
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: str, **values: Any) -> ModelType:
        """
        Patch a record by ID.

        Raises:
            NotFoundError: If no record has this ID
        """
        return await self.update_instance(await self.get_by_id(id), **values)

    async def update_instance(self, instance: ModelType, **values: Any) -> ModelType:
        """Patch an already loaded record. Keys that are not columns are ignored."""
        for key, value in values.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, id: str) -> None:
        """
        Delete a record by ID.

        Raises:
            NotFoundError: If no record has this ID
        """
        await self.session.delete(await self.get_by_id(id))
        await self.session.flush()

    async def delete_many(self, ids: Sequence[str]) -> int:
        """Bulk delete by ID. Returns how many rows went away."""
        if not ids:
            return 0
        result = await self.session.execute(delete(self.model).where(self._ids_clause(ids)))
        await self.session.flush()
        return result.rowcount or 0
