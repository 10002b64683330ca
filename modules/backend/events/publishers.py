"""
Event Publishers.

Domain-specific event publishers. Each publisher wraps the broker's
publish() method with the correct stream name and event schema.

Publishers check the events_publish_enabled feature flag before publishing.
When disabled, events are silently skipped (no error, no log noise).

Usage:
    from modules.backend.events.publishers import OpportunityEventPublisher

    publisher = OpportunityEventPublisher()
    await publisher.opportunity_created(opportunity.id, opportunity.title, correlation_id=request_id)
"""

from modules.backend.core.logging import get_logger, log_with_source
from modules.backend.events.schemas import (
    EventEnvelope,
    OpportunitiesReordered,
    OpportunityArchived,
    OpportunityCreated,
    OpportunityDeleted,
    OpportunityUpdated,
    SubmissionCreated,
)

logger = get_logger(__name__)


class _EventPublisher:
    """Shared publish path gated by the feature flag."""

    async def _publish(self, stream: str, event: EventEnvelope) -> None:
        """Append an event to its Redis stream, trimmed to the configured maxlen."""
        from modules.backend.core.config import get_app_config

        app_config = get_app_config()
        if not app_config.features.events_publish_enabled:
            return

        from modules.backend.events.broker import get_event_broker

        broker = get_event_broker()
        await broker.publish(
            event.model_dump(),
            stream=stream,
            maxlen=app_config.events.streams.default_maxlen,
        )
        log_with_source(
            logger, "events", "debug", "Event published",
            stream=stream, event_type=event.event_type, event_id=event.event_id,
        )


class OpportunityEventPublisher(_EventPublisher):
    """Publishes opportunity domain events to Redis."""

    SOURCE = "opportunity-service"
    STREAM_CREATED = "opportunities:opportunity-created"
    STREAM_UPDATED = "opportunities:opportunity-updated"
    STREAM_ARCHIVED = "opportunities:opportunity-archived"
    STREAM_DELETED = "opportunities:opportunity-deleted"
    STREAM_REORDERED = "opportunities:opportunity-reordered"

    async def opportunity_created(
        self, opportunity_id: str, title: str, correlation_id: str,
    ) -> None:
        """Publish an opportunities.opportunity.created event."""
        await self._publish(
            self.STREAM_CREATED,
            OpportunityCreated(
                source=self.SOURCE,
                correlation_id=correlation_id,
                payload={"opportunity_id": opportunity_id, "title": title},
            ),
        )

    async def opportunity_updated(
        self, opportunity_id: str, fields: list[str], correlation_id: str,
    ) -> None:
        """Publish an opportunities.opportunity.updated event."""
        await self._publish(
            self.STREAM_UPDATED,
            OpportunityUpdated(
                source=self.SOURCE,
                correlation_id=correlation_id,
                payload={"opportunity_id": opportunity_id, "fields_updated": fields},
            ),
        )

    async def opportunity_archived(
        self, opportunity_id: str, archived_by: str, correlation_id: str,
    ) -> None:
        """Publish an opportunities.opportunity.archived event."""
        await self._publish(
            self.STREAM_ARCHIVED,
            OpportunityArchived(
                source=self.SOURCE,
                correlation_id=correlation_id,
                payload={"opportunity_id": opportunity_id, "archived_by": archived_by},
            ),
        )

    async def opportunity_deleted(
        self, opportunity_id: str, correlation_id: str,
    ) -> None:
        """Publish an opportunities.opportunity.deleted event."""
        await self._publish(
            self.STREAM_DELETED,
            OpportunityDeleted(
                source=self.SOURCE,
                correlation_id=correlation_id,
                payload={"opportunity_id": opportunity_id},
            ),
        )

    async def opportunities_reordered(
        self, orders: dict[str, int], correlation_id: str,
    ) -> None:
        """Publish an opportunities.opportunity.reordered event."""
        await self._publish(
            self.STREAM_REORDERED,
            OpportunitiesReordered(
                source=self.SOURCE,
                correlation_id=correlation_id,
                payload={"orders": orders},
            ),
        )


class SubmissionEventPublisher(_EventPublisher):
    """Publishes submission domain events to Redis."""

    SOURCE = "submission-service"
    STREAM_CREATED = "submissions:submission-created"

    async def submission_created(
        self, submission_id: str, opportunity_name: str, correlation_id: str,
    ) -> None:
        """Publish a submissions.submission.created event."""
        await self._publish(
            self.STREAM_CREATED,
            SubmissionCreated(
                source=self.SOURCE,
                correlation_id=correlation_id,
                payload={"submission_id": submission_id, "opportunity_name": opportunity_name},
            ),
        )
