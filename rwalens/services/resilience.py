"""
Circuit Breaker for the completion service.

The analysis engine makes a single attempt per run. When the upstream keeps
failing, the breaker opens and calls fail fast, so analyses drop straight to
the fallback result instead of waiting on the transport timeout every time.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"       # Normal operation
    OPEN = "open"           # Rejecting all requests
    HALF_OPEN = "half_open" # Letting one probe through


class CircuitOpenError(Exception):
    """Raised when a circuit breaker is open and rejects a call."""

    pass


class CircuitBreaker:
    """
    CLOSED → OPEN → HALF_OPEN → CLOSED

    - CLOSED: after ``failure_threshold`` failures within ``window_seconds`` → OPEN
    - OPEN: reject immediately for ``recovery_timeout`` seconds
    - HALF_OPEN: one probe call. Success → CLOSED; failure → OPEN
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 3,
        window_seconds: float = 60.0,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.window_seconds = window_seconds
        self.recovery_timeout = recovery_timeout
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failures: list[float] = []
        self._opened_at = 0.0
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN:
            if self._clock() - self._opened_at >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                logger.info("circuit_half_open", breaker=self.name)
        return self._state

    async def call(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Run ``fn`` through the breaker."""
        state = self.state

        if state == CircuitState.OPEN:
            logger.warning("circuit_open_rejected", breaker=self.name)
            raise CircuitOpenError(f"Circuit breaker '{self.name}' is OPEN")

        if state == CircuitState.HALF_OPEN:
            if self._probe_in_flight:
                raise CircuitOpenError(f"Circuit breaker '{self.name}' is testing")
            self._probe_in_flight = True

        try:
            result = await fn(*args, **kwargs)
        except (Exception, asyncio.CancelledError):
            # A timed-out or cancelled call counts as a failed attempt
            self._on_failure()
            raise
        self._on_success()
        return result

    def reset(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures.clear()
        self._probe_in_flight = False

    def _on_success(self) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info("circuit_closed", breaker=self.name)
        self.reset()

    def _on_failure(self) -> None:
        now = self._clock()
        self._probe_in_flight = False

        if self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            self._opened_at = now
            logger.warning("circuit_reopened", breaker=self.name)
            return

        cutoff = now - self.window_seconds
        self._failures = [t for t in self._failures if t > cutoff]
        self._failures.append(now)

        if len(self._failures) >= self.failure_threshold:
            self._state = CircuitState.OPEN
            self._opened_at = now
            logger.warning(
                "circuit_opened",
                breaker=self.name,
                failures=len(self._failures),
                threshold=self.failure_threshold,
            )
