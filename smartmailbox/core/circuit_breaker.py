"""Thread-safe circuit breaker for generative model endpoints.

Prevents every upload from waiting out a full timeout while a provider is
down: consecutive failures open the circuit and later calls fail fast.

States:
  CLOSED    -- normal operation, requests pass through
  OPEN      -- endpoint is down, requests fail immediately
  HALF_OPEN -- cooldown expired, one probe request allowed

``call_with_timeout`` combines a wall-clock timeout with the breaker
bookkeeping so the generative client has a single helper.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from enum import Enum
from typing import Any, Callable, Optional

from .config import settings

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreakerOpen(Exception):
    """Raised when the circuit is open and requests are blocked."""

    def __init__(self, endpoint: str, retry_after: float):
        self.endpoint = endpoint
        self.retry_after = retry_after
        super().__init__(
            f"Circuit breaker OPEN for '{endpoint}'. "
            f"Retry after {retry_after:.0f}s."
        )


class CircuitBreaker:
    """Per-endpoint circuit breaker.

    Thread-safe: the metadata and event stages of one analysis run on
    separate threads and share the breaker of their model.
    """

    def __init__(
        self,
        endpoint: str,
        failure_threshold: Optional[int] = None,
        cooldown_seconds: Optional[float] = None,
    ) -> None:
        self.endpoint = endpoint
        self._failure_threshold = (
            failure_threshold if failure_threshold is not None else settings.circuit_failure_threshold
        )
        self._cooldown_seconds = (
            cooldown_seconds if cooldown_seconds is not None else settings.circuit_cooldown_seconds
        )

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    def check(self) -> None:
        """Check if a request is allowed. Raises CircuitBreakerOpen if not."""
        with self._lock:
            if self._state != CircuitState.OPEN:
                return
            elapsed = time.monotonic() - self._last_failure_time
            if elapsed >= self._cooldown_seconds:
                self._state = CircuitState.HALF_OPEN
                logger.info("Circuit %s: OPEN -> HALF_OPEN (cooldown expired)", self.endpoint)
                return
            raise CircuitBreakerOpen(self.endpoint, self._cooldown_seconds - elapsed)

    def record_success(self) -> None:
        with self._lock:
            if self._state == CircuitState.HALF_OPEN:
                logger.info("Circuit %s: HALF_OPEN -> CLOSED", self.endpoint)
            self._state = CircuitState.CLOSED
            self._failure_count = 0

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = time.monotonic()
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                logger.warning("Circuit %s: HALF_OPEN -> OPEN (probe failed)", self.endpoint)
            elif self._state == CircuitState.CLOSED and self._failure_count >= self._failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(
                    "Circuit %s: CLOSED -> OPEN (%d consecutive failures)",
                    self.endpoint, self._failure_count,
                )


# ---------------------------------------------------------------------------
# Registry: one breaker per model string
# ---------------------------------------------------------------------------

_breakers: dict[str, CircuitBreaker] = {}
_registry_lock = threading.Lock()


def get_breaker(endpoint: str) -> CircuitBreaker:
    """Get or create the circuit breaker for a model endpoint."""
    with _registry_lock:
        if endpoint not in _breakers:
            _breakers[endpoint] = CircuitBreaker(endpoint=endpoint)
        return _breakers[endpoint]


def reset_all() -> None:
    """Reset all circuit breakers (for testing)."""
    with _registry_lock:
        _breakers.clear()


# ---------------------------------------------------------------------------
# Timeout helper
# ---------------------------------------------------------------------------

def call_with_timeout(fn: Callable[[], Any], timeout: float, endpoint: str) -> Any:
    """Run *fn* under the breaker for *endpoint* with a wall-clock timeout.

    Raises:
        CircuitBreakerOpen: if the circuit for *endpoint* is open.
        TimeoutError: if *fn* exceeds *timeout* seconds.
        Exception: any exception raised by *fn*.
    """
    breaker = get_breaker(endpoint)
    breaker.check()

    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(fn)
        try:
            result = future.result(timeout=timeout)
        except FuturesTimeoutError:
            breaker.record_failure()
            logger.error("%s timed out after %ss", endpoint, timeout)
            raise TimeoutError(f"{endpoint} exceeded {timeout}s timeout")
        except Exception:
            breaker.record_failure()
            raise
        breaker.record_success()
        return result
    finally:
        # Do not block on a hung call; the worker thread finishes on its own.
        executor.shutdown(wait=False)
