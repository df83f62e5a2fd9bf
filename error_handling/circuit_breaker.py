"""Circuit breaker pattern implementation for upstream calls."""
import functools
import time
from typing import Any, Awaitable, Callable, Dict

import structlog

from analytics.errors import UpstreamError

logger = structlog.get_logger()


class CircuitOpenError(UpstreamError):
    """Exception raised when a circuit is open."""


class CircuitBreaker:
    """
    Implements the Circuit Breaker pattern to prevent cascading failures.

    When the upstream explorer is failing, calling it on every request only
    adds latency before the synthetic fallback kicks in. The breaker stops
    calls once failures exceed a threshold, allowing the upstream time to recover.

    Circuit states:
    - CLOSED: Normal operation, calls pass through to the service
    - OPEN: Service calls are blocked entirely to allow recovery
    - HALF-OPEN: Limited testing of service to check if it's recovered

    All state changes happen between awaits on a single event loop, so no
    lock is needed.
    """

    STATE_CLOSED = 'closed'
    STATE_OPEN = 'open'
    STATE_HALF_OPEN = 'half-open'

    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 60,
                 half_open_success_threshold: int = 1,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize a new Circuit Breaker.

        Args:
            failure_threshold: Number of failures before opening the circuit
            recovery_timeout: Time in seconds to wait before attempting recovery
            half_open_success_threshold: Number of successful calls needed to close circuit
            clock: Monotonic time source
        """
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_success_threshold = half_open_success_threshold
        self.clock = clock

        # Internal state
        self.state = self.STATE_CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = 0.0

    def __call__(self, func: Callable[..., Awaitable[Any]]):
        """Use as a decorator on coroutine functions that might fail."""
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            return await self.call(func, *args, **kwargs)
        return wrapper

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Call the protected coroutine function with circuit breaker protection.

        Args:
            func: The coroutine function to call
            *args, **kwargs: Arguments to pass to the function

        Returns:
            The result of the function call

        Raises:
            CircuitOpenError: If the circuit is open
            Exception: Any exception raised by the function
        """
        if self.state == self.STATE_OPEN:
            elapsed = self.clock() - self.last_failure_time
            if elapsed >= self.recovery_timeout:
                logger.info("circuit_breaker_half_open",
                            func=func.__name__,
                            recovery_timeout=self.recovery_timeout)
                self.state = self.STATE_HALF_OPEN
                self.success_count = 0
            else:
                logger.warning("circuit_breaker_open",
                               func=func.__name__,
                               seconds_remaining=self.recovery_timeout - elapsed)
                raise CircuitOpenError(
                    f"Circuit is open for {func.__name__}, too many failures."
                )

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            self._record_failure(func.__name__, e)
            raise

        self._record_success(func.__name__)
        return result

    def _record_success(self, name: str) -> None:
        if self.state == self.STATE_HALF_OPEN:
            self.success_count += 1
            if self.success_count >= self.half_open_success_threshold:
                # Service has recovered, close the circuit
                logger.info("circuit_breaker_closed",
                            func=name,
                            success_count=self.success_count)
                self.state = self.STATE_CLOSED
                self.failure_count = 0
        elif self.state == self.STATE_CLOSED:
            self.failure_count = 0

    def _record_failure(self, name: str, error: Exception) -> None:
        self.failure_count += 1
        self.last_failure_time = self.clock()

        if self.state == self.STATE_CLOSED and self.failure_count >= self.failure_threshold:
            logger.warning("circuit_breaker_tripped",
                           func=name,
                           failure_count=self.failure_count,
                           exception=str(error))
            self.state = self.STATE_OPEN
        elif self.state == self.STATE_HALF_OPEN:
            # Failed during recovery attempt, reopen the circuit
            logger.warning("circuit_breaker_recovery_failed",
                           func=name,
                           exception=str(error))
            self.state = self.STATE_OPEN

    def reset(self) -> None:
        """Reset the circuit breaker to closed state."""
        self.state = self.STATE_CLOSED
        self.failure_count = 0
        self.success_count = 0
        self.last_failure_time = 0.0
        logger.info("circuit_breaker_reset")

    def get_state(self) -> Dict[str, Any]:
        """Get the current state of the circuit breaker."""
        return {
            'state': self.state,
            'failure_count': self.failure_count,
            'success_count': self.success_count,
            'last_failure_time': self.last_failure_time
        }
