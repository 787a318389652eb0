"""Token-bucket rate limiting for outgoing requests."""

import asyncio
import time
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger()

# Absorbs float drift when refilled tokens land a hair under the target.
_EPSILON = 1e-9


class TokenBucket:
    """Token bucket with continuous refill.

    The bucket starts full with ``capacity`` tokens and regains tokens at
    ``capacity / refill_interval`` per second, never exceeding ``capacity``.
    Callers that ask for more tokens than are available are suspended until
    enough have accrued; acquisition never fails for ``0 < tokens <= capacity``.
    """

    def __init__(
        self,
        capacity: int,
        refill_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        if refill_interval <= 0:
            raise ValueError(f"refill_interval must be positive, got {refill_interval}")

        self._capacity = capacity
        self._rate = capacity / refill_interval
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available(self) -> float:
        """Tokens available right now."""
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._updated_at
        if elapsed > 0:
            self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._updated_at = now

    async def acquire(self, tokens: int = 1) -> None:
        """Remove ``tokens`` from the bucket, waiting for them if necessary."""
        if tokens <= 0:
            raise ValueError(f"tokens must be positive, got {tokens}")
        if tokens > self._capacity:
            raise ValueError(
                f"cannot acquire {tokens} tokens from a bucket of capacity {self._capacity}"
            )

        async with self._lock:
            while True:
                self._refill()
                if self._tokens + _EPSILON >= tokens:
                    self._tokens = max(0.0, self._tokens - tokens)
                    return

                wait = (tokens - self._tokens) / self._rate
                logger.debug("throttle_wait", tokens=tokens, wait_seconds=round(wait, 4))
                await self._sleep(wait)
