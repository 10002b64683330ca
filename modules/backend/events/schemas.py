"""
Event Schemas.

Standardized event envelope and the domain events of the board.
All events published through the event bus use the EventEnvelope base.

Naming convention for event_type: domain.entity.action (dot notation)
Stream naming convention: {domain}:{event-type} (colon-separated)

Usage:
    from modules.backend.events.schemas import OpportunityCreated

    event = OpportunityCreated(
        source="opportunity-service",
        correlation_id=request_id,
        payload={"opportunity_id": opportunity.id, "title": opportunity.title},
    )
"""

from uuid import uuid4

from pydantic import BaseModel, Field

from modules.backend.core.utils import utc_now


class EventEnvelope(BaseModel):
    """Base event envelope, inherited by every event.

    Fields:
        event_id: Unique event identifier (auto-generated UUID)
        event_type: Domain event type in dot notation (e.g. opportunities.opportunity.created)
        event_version: Schema version for forward compatibility
        timestamp: ISO 8601 UTC timestamp
        source: Service that published the event
        correlation_id: Request ID for tracing across services
        payload: Event-specific data
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    event_version: int = 1
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    source: str
    correlation_id: str
    payload: dict


class OpportunityCreated(EventEnvelope):
    """Published when an opportunity is created, duplicated or approved from a submission."""

    event_type: str = "opportunities.opportunity.created"


class OpportunityUpdated(EventEnvelope):
    """Published when opportunity fields change (including status and unarchive)."""

    event_type: str = "opportunities.opportunity.updated"


class OpportunityArchived(EventEnvelope):
    """Published when an opportunity is archived."""

    event_type: str = "opportunities.opportunity.archived"


class OpportunityDeleted(EventEnvelope):
    """Published when an opportunity is permanently deleted."""

    event_type: str = "opportunities.opportunity.deleted"


class OpportunitiesReordered(EventEnvelope):
    """Published once per applied reorder batch."""

    event_type: str = "opportunities.opportunity.reordered"


class SubmissionCreated(EventEnvelope):
    """Published when a visitor submits an opportunity."""

    event_type: str = "submissions.submission.created"
