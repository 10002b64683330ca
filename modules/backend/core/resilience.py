"""
Resilience.

Circuit breaking and retry policy for outbound HTTP calls (favicon
probes). Breaker transitions, recorded failures and retries are logged
with a ``resilience_event`` key:

    jq 'select(.resilience_event != null)' logs/system.jsonl

Usage:
    from modules.backend.core.resilience import create_circuit_breaker, transport_retrying

    breaker = create_circuit_breaker("favicon", fail_max=5, timeout_duration=60)

    async for attempt in transport_retrying("favicon"):
        with attempt:
            response = await breaker.call_async(client.head, url)
"""

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import aiobreaker
import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from modules.backend.core.logging import get_logger

logger = get_logger(__name__)


def _state_name(state: Any) -> str:
    # Listeners receive state objects; tests and logs want "open", "half_open", ...
    inner = getattr(state, "state", state)
    name = str(getattr(inner, "value", getattr(inner, "name", inner)))
    return name.lower().replace("-", "_")


class BreakerEventLogger(aiobreaker.CircuitBreakerListener):
    """Logs state changes and failures of one named breaker."""

    def __init__(self, dependency: str) -> None:
        self.dependency = dependency

    def state_change(self, cb: aiobreaker.CircuitBreaker, old_state: Any, new_state: Any) -> None:
        new_name = _state_name(new_state)
        log = logger.error if new_name == "open" else logger.info
        log(
            "Circuit breaker state changed",
            extra={
                "resilience_event": f"circuit_breaker_{new_name}",
                "dependency": self.dependency,
                "from_state": _state_name(old_state),
                "failure_count": cb.fail_counter,
            },
        )

    def failure(self, cb: aiobreaker.CircuitBreaker, exception: Exception) -> None:
        logger.warning(
            "Circuit breaker recorded a failure",
            extra={
                "resilience_event": "circuit_breaker_failure",
                "dependency": self.dependency,
                "failure_count": cb.fail_counter,
                "error": str(exception),
            },
        )


def create_circuit_breaker(
    dependency: str,
    fail_max: int = 5,
    timeout_duration: int = 30,
) -> aiobreaker.CircuitBreaker:
    """
    Breaker that opens after ``fail_max`` consecutive failures.

    Args:
        dependency: Name used in log records
        fail_max: Failures before the breaker opens
        timeout_duration: Seconds the breaker stays open before a trial call
    """
    return aiobreaker.CircuitBreaker(
        fail_max=fail_max,
        timeout_duration=timedelta(seconds=timeout_duration),
        listeners=[BreakerEventLogger(dependency)],
    )


def retry_logger(dependency: str) -> Callable[[RetryCallState], None]:
    """Tenacity ``before_sleep`` callback logging each retry of ``dependency``."""

    def before_sleep(retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        logger.warning(
            "Retrying call",
            extra={
                "resilience_event": "retry_attempt",
                "dependency": dependency,
                "attempt": retry_state.attempt_number,
                "error": str(outcome.exception()) if outcome is not None and outcome.failed else None,
            },
        )

    return before_sleep


def transport_retrying(
    dependency: str,
    attempts: int = 2,
    wait_seconds: float = 0.2,
) -> AsyncRetrying:
    """
    Retry policy for idempotent HTTP calls.

    Only transport errors (connect failures, timeouts) are retried; HTTP
    error statuses and an open breaker are not. The last error is re-raised.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception_type(httpx.TransportError),
        before_sleep=retry_logger(dependency),
        reraise=True,
    )
