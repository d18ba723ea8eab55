"""
Minimum-interval gate for outbound directory calls.

One gate is shared by every lead in the process because it protects a single
external quota. Batch workers all await the same instance; the lock makes the
read-sleep-stamp sequence atomic so two workers can never both pass inside one
interval.

Usage:
    gate = get_interval_gate("places", min_interval=1.0)

    async with gate:
        await make_api_call()
"""
import asyncio
import threading
import time
from typing import Awaitable, Callable, Dict, Optional

from loguru import logger


class IntervalGate:
    """
    Async gate enforcing a minimum spacing between successive calls.

    Args:
        min_interval: Seconds that must elapse between two passes through the gate.
        clock: Monotonic time source in seconds. Injectable for tests.
        sleep: Coroutine used to wait. Injectable for tests.
        name: Label for log lines.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: str = "default",
    ):
        if min_interval < 0:
            raise ValueError(f"min_interval must be >= 0, got {min_interval}")
        self.min_interval = min_interval
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: Optional[float] = None

    async def wait(self) -> None:
        """Block until at least ``min_interval`` has passed since the previous call."""
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.min_interval:
                    delay = self.min_interval - elapsed
                    logger.debug(f"⏳ [{self.name}] waiting {delay:.3f}s for rate limit")
                    await self._sleep(delay)
            self._last_call = self._clock()

    async def __aenter__(self) -> "IntervalGate":
        await self.wait()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        return False

    def reset(self) -> None:
        """Forget the previous call so the next one passes immediately."""
        self._last_call = None


_gates: Dict[str, IntervalGate] = {}
_gates_lock = threading.Lock()


def get_interval_gate(name: str, min_interval: float) -> IntervalGate:
    """
    Get or create the process-wide gate for ``name``.

    The interval of an existing gate is not changed by later calls.
    """
    with _gates_lock:
        gate = _gates.get(name)
        if gate is None:
            gate = IntervalGate(min_interval=min_interval, name=name)
            _gates[name] = gate
        return gate
