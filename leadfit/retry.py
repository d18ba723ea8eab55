"""
Retry logic with exponential backoff, plus a circuit breaker for providers that stay down.
"""
import asyncio
import time
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from loguru import logger

from leadfit.errors import CircuitOpenError, RetryError, TransientFailure

T = TypeVar("T")

RETRYABLE_STATUS_CODES = {
    408,  # Request Timeout
    429,  # Too Many Requests
    500,  # Internal Server Error
    502,  # Bad Gateway
    503,  # Service Unavailable
    504,  # Gateway Timeout
}


def should_retry_http_status(status_code: int) -> bool:
    """True for timeouts, rate limiting and server errors."""
    return status_code in RETRYABLE_STATUS_CODES


def backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
) -> float:
    """Delay before retry number ``attempt + 1`` (attempt is zero-based)."""
    return min(base_delay * (exponential_base ** attempt), max_delay)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (TransientFailure,),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    context: Optional[str] = None,
) -> T:
    """
    Await ``fn`` until it succeeds, retrying listed exceptions with exponential backoff.

    Args:
        fn: Zero-argument coroutine function making one attempt.
        max_retries: Retries after the first attempt (0 = no retries).
        base_delay: Initial delay in seconds.
        max_delay: Cap on any single delay.
        exponential_base: Multiplier applied per attempt.
        retry_on: Exceptions that trigger a retry. Anything else propagates at once.
        sleep: Coroutine used to wait. Injectable for tests.
        context: Label for log lines.

    Returns:
        Whatever ``fn`` returns on its first successful attempt.

    Raises:
        RetryError: All attempts failed; chained from the last exception.
    """
    label = context or "retry"
    for attempt in range(max_retries + 1):
        try:
            return await fn()
        except retry_on as e:
            if attempt >= max_retries:
                logger.warning(f"⚠️ [{label}] failed after {max_retries + 1} attempts: {e}")
                raise RetryError(f"Failed after {max_retries + 1} attempts: {e}") from e
            delay = backoff_delay(attempt, base_delay, max_delay, exponential_base)
            logger.debug(f"🔁 [{label}] attempt {attempt + 1}/{max_retries} failed ({e}), retrying in {delay:.1f}s")
            await sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RetryError(f"[{label}] retry loop exited unexpectedly")


class CircuitBreaker:
    """
    Circuit breaker shielding a provider that keeps failing.

    States:
    - CLOSED: Normal operation, calls pass through
    - OPEN: Too many consecutive failures, calls are refused with CircuitOpenError
    - HALF_OPEN: Reset timeout elapsed, one trial call decides CLOSED or OPEN again
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        expected_exception: Tuple[Type[BaseException], ...] = (Exception,),
        clock: Callable[[], float] = time.monotonic,
        name: str = "default",
    ):
        """
        Args:
            failure_threshold: Consecutive failures before opening the circuit.
            reset_timeout: Seconds to stay OPEN before allowing a trial call.
            expected_exception: Exceptions that count as failures; others pass through
                untouched and leave the state alone.
            clock: Monotonic time source in seconds. Injectable for tests.
            name: Label for log lines.
        """
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.expected_exception = expected_exception
        self.name = name
        self._clock = clock

        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = self.CLOSED

    async def call(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Await ``fn`` under circuit breaker protection.

        Raises:
            CircuitOpenError: If the circuit is OPEN and the reset timeout has not passed.
            Original exception: If ``fn`` fails.
        """
        if self.state == self.OPEN:
            if self._time_until_reset() > 0:
                raise CircuitOpenError(
                    f"[{self.name}] circuit open, retry after {self._time_until_reset():.0f}s"
                )
            logger.info(f"🔌 [{self.name}] circuit half-open, trying one call")
            self.state = self.HALF_OPEN

        try:
            result = await fn()
        except self.expected_exception:
            self._on_failure()
            raise
        self._on_success()
        return result

    def _time_until_reset(self) -> float:
        if self.last_failure_time is None:
            return 0.0
        elapsed = self._clock() - self.last_failure_time
        return max(0.0, self.reset_timeout - elapsed)

    def _on_success(self):
        if self.state == self.HALF_OPEN:
            logger.info(f"🔌 [{self.name}] circuit closed after successful trial call")
        self.failure_count = 0
        self.state = self.CLOSED

    def _on_failure(self):
        self.failure_count += 1
        self.last_failure_time = self._clock()
        if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != self.OPEN:
                logger.warning(f"🔌 [{self.name}] circuit open after {self.failure_count} failures")
            self.state = self.OPEN

    def reset(self):
        """Manually close the circuit."""
        self.failure_count = 0
        self.last_failure_time = None
        self.state = self.CLOSED
