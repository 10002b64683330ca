"""
Audit Log Repository.

Append-only access to the audit trail.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from modules.backend.core.utils import utc_now
from modules.backend.models.audit_log import AuditLog
from modules.backend.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog model."""

    model = AuditLog

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def record(
        self,
        admin: str,
        action: str,
        resource_type: str,
        resource_id: str,
        changes: dict[str, Any] | None = None,
    ) -> AuditLog:
        """
        Append an audit entry in the current transaction.

        The shared admin credential has no separate e-mail, so the username
        is stored in both admin columns.
        """
        return await self.create(
            admin_id=admin,
            admin_email=admin,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            changes=changes or {},
            timestamp=utc_now(),
        )

    async def list_for_resource(self, resource_id: str) -> list[AuditLog]:
        """Audit entries for one resource, newest first."""
        result = await self.session.execute(
            select(AuditLog)
            .where(AuditLog.resource_id == resource_id)
            .order_by(AuditLog.timestamp.desc())
        )
        return list(result.scalars().all())
