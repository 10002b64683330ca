"""
Event Broker.

FastStream RedisBroker setup with lazy initialization. The broker is
connected during application startup when events are enabled and closed
on shutdown.

Usage:
    from modules.backend.events.broker import get_event_broker

    broker = get_event_broker()
"""

from faststream.redis import RedisBroker

from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

_broker: RedisBroker | None = None


def create_event_broker() -> RedisBroker:
    """Create a new RedisBroker using the project's Redis URL."""
    from modules.backend.core.config import get_redis_url

    broker = RedisBroker(get_redis_url())
    logger.info("Event broker created")
    return broker


def get_event_broker() -> RedisBroker:
    """Get the shared event broker (lazy initialization)."""
    global _broker
    if _broker is None:
        _broker = create_event_broker()
    return _broker


async def start_event_broker() -> None:
    """Connect the shared broker."""
    await get_event_broker().start()
    logger.info("Event broker connected")


async def close_event_broker() -> None:
    """Close the shared broker if it was created."""
    global _broker
    if _broker is not None:
        await _broker.close()
        _broker = None
        logger.info("Event broker closed")
