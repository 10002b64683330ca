"""
Data Sync Service.

Moves opportunities between environments. Exports carry no ids; imports
and syncs match existing records on (title, provider).

Each incoming record is validated on its own. A record that fails
validation is reported in ``errors`` and skipped; database failures abort
the whole request and roll it back.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.utils import utc_now
from modules.backend.models.opportunity import Opportunity
from modules.backend.repositories.opportunity import OpportunityRepository
from modules.backend.schemas.sync import ImportResult, SyncRecord, SyncResult
from modules.backend.services.base import BaseService

_MATCH_SEPARATOR = "::"


def _match_key(title: str, provider: str) -> str:
    return f"{title}{_MATCH_SEPARATOR}{provider}"


def _describe(raw: Any) -> str:
    if isinstance(raw, dict) and isinstance(raw.get("title"), str):
        return raw["title"]
    return "<untitled>"


def _validation_message(error: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )


class DataSyncService(BaseService):
    """Export, import and sync of opportunity data."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = OpportunityRepository(session)

    async def export_opportunities(self) -> list[SyncRecord]:
        """Every opportunity, archived ones included, without ids."""
        records = await self._execute_db_operation("export_opportunities", self.repo.list_all())
        self._log_operation("Exporting opportunities", count=len(records))
        return [SyncRecord.model_validate(record) for record in records]

    async def import_opportunities(
        self,
        records: Iterable[dict[str, Any]],
        mode: str = "merge",
    ) -> ImportResult:
        """
        Import exported records.

        Modes:
            replace: delete every opportunity, then insert all records
            merge: patch the record matching (title, provider), insert otherwise
            append: always insert
        """
        result = ImportResult()
        now = utc_now()

        if mode == "replace":
            removed = await self._execute_db_operation("import_replace", self.repo.delete_all())
            self._log_operation("Cleared opportunities before import", removed=removed)

        for raw in records:
            record = self._validate(raw, "import", result.errors)
            if record is None:
                result.skipped += 1
                continue

            values = self._column_values(record, now)
            existing = None
            if mode == "merge":
                existing = await self._execute_db_operation(
                    "import_match",
                    self.repo.find_by_title_provider(record.title, record.provider),
                )

            if existing is not None:
                await self._execute_db_operation(
                    "import_update",
                    self.repo.update_instance(existing, **values),
                )
                result.updated += 1
            else:
                await self._execute_db_operation("import_create", self.repo.create(**values))
                result.created += 1

        self._log_operation(
            "Imported opportunities",
            mode=mode,
            created=result.created,
            updated=result.updated,
            skipped=result.skipped,
        )
        return result

    async def sync_opportunities(self, records: Iterable[dict[str, Any]]) -> SyncResult:
        """
        Bring this environment up to date with a source export.

        A matching record is patched only when the source ``updated_at`` is
        newer than the local one; unmatched records are inserted.
        """
        result = SyncResult()
        now = utc_now()

        existing_records = await self._execute_db_operation("sync_load", self.repo.list_all())
        existing: dict[str, Opportunity] = {}
        for opportunity in existing_records:
            existing.setdefault(_match_key(opportunity.title, opportunity.provider), opportunity)

        for raw in records:
            record = self._validate(raw, "sync", result.errors)
            if record is None:
                continue

            key = _match_key(record.title, record.provider)
            current = existing.get(key)
            values = self._column_values(record, now)

            if current is None:
                created = await self._execute_db_operation("sync_create", self.repo.create(**values))
                existing[key] = created
                result.created += 1
            elif record.updated_at is not None and record.updated_at > current.updated_at:
                await self._execute_db_operation(
                    "sync_update",
                    self.repo.update_instance(current, **values),
                )
                result.updated += 1
            else:
                result.unchanged += 1

        self._log_operation(
            "Synced opportunities",
            created=result.created,
            updated=result.updated,
            unchanged=result.unchanged,
        )
        return result

    def _validate(self, raw: Any, action: str, errors: list[str]) -> SyncRecord | None:
        try:
            return SyncRecord.model_validate(raw)
        except PydanticValidationError as e:
            errors.append(f"Failed to {action} {_describe(raw)}: {_validation_message(e)}")
            return None

    @staticmethod
    def _column_values(record: SyncRecord, now: datetime) -> dict[str, Any]:
        """Column values for a record; ``updated_at`` is stamped with the local time."""
        values = record.model_dump()
        values["updated_at"] = now
        if values["created_at"] is None:
            values["created_at"] = now
        return values
