"""
Retry with exponential backoff.

The policy is plain data; ``with_retry`` applies it to any awaitable factory.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from voiceowl.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try and how long to wait in between."""

    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    multiplier: float = 2.0
    max_delay: float = 8.0
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Delay after failed attempt number ``attempt`` (1-based)."""
        delay = self.base_delay * (self.multiplier ** (attempt - 1))
        return min(delay, self.max_delay)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    context: str = "operation",
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """
    Await ``operation()`` until it succeeds or the policy is exhausted.

    Each attempt calls the factory afresh. The last error is re-raised
    once ``policy.max_attempts`` attempts have failed.
    """
    sleep = sleep or asyncio.sleep
    attempt = 1

    while True:
        try:
            return await operation()
        except policy.retry_on as exc:
            logger.warning("%s failed on attempt %d: %s", context, attempt, exc)
            if attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.info("Retrying %s in %.2fs", context, delay)
            await sleep(delay)
        attempt += 1
