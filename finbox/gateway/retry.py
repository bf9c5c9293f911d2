"""
Retry with fixed backoff, independent of HTTP.

The caller supplies an `attempt` coroutine factory and a `classify` function
mapping each attempt's result to an Outcome:

- SUCCESS: stop, return the result
- FATAL:   stop, return the result (retrying won't change it)
- WARMUP:  provider is loading the model; wait `warmup_delay`
- RETRY:   any other transient failure; wait `base_delay`

Warm-up waits count against the same attempt budget. There is never a wait
after the final attempt, so total wait time is the sum of the delays for
the first (attempts - 1) outcomes.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Outcome(enum.Enum):
    SUCCESS = "success"
    RETRY = "retry"
    WARMUP = "warmup"
    FATAL = "fatal"


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 2.0
    warmup_delay: float = 10.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0 or self.warmup_delay < 0:
            raise ValueError("retry delays must be non-negative")

    def delay_for(self, outcome: Outcome) -> float:
        """Seconds to wait before the next attempt after `outcome`."""
        if outcome is Outcome.WARMUP:
            return self.warmup_delay
        if outcome is Outcome.RETRY:
            return self.base_delay
        return 0.0

    @classmethod
    def from_config(cls, cfg: dict) -> RetryPolicy:
        r = cfg.get("retry", {})
        return cls(
            max_attempts=int(r.get("max_attempts", 3)),
            base_delay=float(r.get("base_delay", 2.0)),
            warmup_delay=float(r.get("warmup_delay", 10.0)),
        )


async def retry_with_backoff(
    attempt: Callable[[], Awaitable[T]],
    classify: Callable[[T], Outcome],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> tuple[T, int]:
    """
    Run `attempt` until it succeeds, fails fatally, or the budget runs out.
    Returns (last result, number of attempts made).
    """
    result: T
    for n in range(1, policy.max_attempts + 1):
        result = await attempt()
        outcome = classify(result)

        if outcome in (Outcome.SUCCESS, Outcome.FATAL):
            return result, n

        if n < policy.max_attempts:
            delay = policy.delay_for(outcome)
            logger.warning(
                "Attempt %d/%d %s, retry in %.1fs",
                n, policy.max_attempts,
                "hit a warming-up model" if outcome is Outcome.WARMUP else "failed",
                delay,
            )
            await sleep(delay)

    logger.error("Exhausted %d attempts", policy.max_attempts)
    return result, policy.max_attempts
