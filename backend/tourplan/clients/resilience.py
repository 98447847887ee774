"""Bounded retry and circuit breaking around AI engine calls.

The AI engine client never retries on its own. Callers that want resilience wrap each
call in ``ResiliencePolicy.run``:
- Circuit breaker opens after N counted failures within a window and fails fast
- Half-open after a cool-down admits one trial call; success closes it, failure
  reopens it, and other calls are rejected while the trial is in flight
- Optional bounded retries with linear backoff for connection errors, 429 and 5xx
- Timeouts and 4xx are never retried
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import TypeVar

from backend.tourplan.errors import (
    AIEngineCircuitOpenError,
    AIEngineConnectionError,
    AIEngineDecodeError,
    AIEngineTimeoutError,
    AIEngineUpstreamError,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BreakerState(str, Enum):
    """Circuit breaker state."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """Circuit breaker keyed on consecutive failures within a time window."""

    name: str
    failure_threshold: int
    window_seconds: int
    half_open_seconds: int
    state: BreakerState = BreakerState.CLOSED
    failure_times: list[datetime] = field(default_factory=list)
    opened_at: datetime | None = None
    trial_in_flight: bool = False

    def record_success(self) -> None:
        """Record successful execution; any success resets the failure streak."""
        if self.state != BreakerState.CLOSED:
            logger.info(f"Circuit breaker {self.name} closed")
        self.state = BreakerState.CLOSED
        self.failure_times.clear()
        self.opened_at = None
        self.trial_in_flight = False

    def record_failure(self, now: datetime) -> None:
        """Record a counted failure."""
        if self.state == BreakerState.HALF_OPEN:
            # Trial call failed -> straight back to open
            self._open(now)
            return

        # Clean old failures outside window
        cutoff = now - timedelta(seconds=self.window_seconds)
        self.failure_times = [t for t in self.failure_times if t > cutoff]
        self.failure_times.append(now)

        if len(self.failure_times) >= self.failure_threshold:
            self._open(now)

    def _open(self, now: datetime) -> None:
        if self.state != BreakerState.OPEN:
            logger.warning(
                f"Circuit breaker {self.name} opened after {len(self.failure_times)} failures"
            )
        self.state = BreakerState.OPEN
        self.opened_at = now
        self.trial_in_flight = False

    def check_and_update_state(self, now: datetime) -> BreakerState:
        """Check if breaker should transition states."""
        if self.state == BreakerState.OPEN:
            if self.opened_at and (now - self.opened_at).total_seconds() >= self.half_open_seconds:
                self.state = BreakerState.HALF_OPEN

        return self.state

    def is_open(self, now: datetime) -> bool:
        """Check if breaker is currently open (rejecting calls)."""
        return self.check_and_update_state(now) == BreakerState.OPEN

    def try_acquire(self, now: datetime) -> bool:
        """Admit a call. Half-open admits a single trial until it resolves."""
        state = self.check_and_update_state(now)
        if state == BreakerState.OPEN:
            return False
        if state == BreakerState.HALF_OPEN:
            if self.trial_in_flight:
                return False
            self.trial_in_flight = True
        return True

    def release_trial(self) -> None:
        """Free the half-open slot after a trial that neither closed nor reopened."""
        self.trial_in_flight = False


@dataclass
class RetryConfig:
    """Retry settings; ``retry_count=0`` means a single attempt."""

    retry_count: int = 0
    backoff_ms: int = 1000


def is_counted_failure(error: Exception) -> bool:
    """Whether an error says the engine itself is unhealthy."""
    if isinstance(error, AIEngineUpstreamError):
        return error.upstream_status >= 500
    return isinstance(
        error, (AIEngineTimeoutError, AIEngineConnectionError, AIEngineDecodeError)
    )


def is_retryable(error: Exception) -> bool:
    """Whether another attempt could plausibly succeed."""
    if isinstance(error, AIEngineUpstreamError):
        return error.upstream_status >= 500 or error.upstream_status == 429
    return isinstance(error, AIEngineConnectionError)


class ResiliencePolicy:
    """Composable retry + circuit breaker policy for AI engine calls."""

    def __init__(
        self,
        breaker: CircuitBreaker,
        retry: RetryConfig | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize policy.

        Args:
            breaker: Circuit breaker shared by every call through this policy
            retry: Retry settings (default: single attempt)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
            clock: Injectable clock (default: datetime.now)
        """
        self.breaker = breaker
        self._retry = retry or RetryConfig()
        self._sleep = sleep_fn or asyncio.sleep
        self._clock = clock or datetime.now

    async def run(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run one logical call under the policy.

        Errors from the last attempt propagate unchanged so callers see the true
        upstream condition.

        Raises:
            AIEngineCircuitOpenError: Breaker is open, call not attempted
            UpstreamUnavailable: Whatever the final attempt raised
        """
        if not self.breaker.try_acquire(self._clock()):
            logger.warning(f"AI Engine {operation} rejected: circuit breaker open")
            raise AIEngineCircuitOpenError("AI Engine service is temporarily unavailable")

        is_trial = self.breaker.state == BreakerState.HALF_OPEN
        try:
            return await self._attempt(operation, fn)
        finally:
            if is_trial and self.breaker.state == BreakerState.HALF_OPEN:
                self.breaker.release_trial()

    async def _attempt(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await fn()
            except UpstreamUnavailable as e:
                if is_counted_failure(e):
                    self.breaker.record_failure(self._clock())

                if attempt > self._retry.retry_count or not is_retryable(e):
                    raise
                if self.breaker.is_open(self._clock()):
                    raise

                delay_ms = self._retry.backoff_ms * attempt
                logger.warning(
                    f"AI Engine {operation} failed, retrying "
                    f"({attempt}/{self._retry.retry_count}) in {delay_ms}ms: {e}"
                )
                await self._sleep(delay_ms / 1000)
                continue

            self.breaker.record_success()
            return result
