"""Exponential backoff with jitter for retried log calls."""
from __future__ import annotations
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, TypeVar

from logprobe_sdk.errors import TRANSIENT_ERRORS

from .errors import DeadlineExceeded

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Backoff:
    min: float = 0.1
    max: float = 10.0
    factor: float = 2.0
    jitter: bool = True
    rng: random.Random = field(default_factory=random.Random)
    attempt: int = 0

    def duration(self) -> float:
        """Delay before the next attempt; grows by `factor` per call up to `max`."""
        delay = min(self.max, self.min * self.factor**self.attempt)
        self.attempt += 1
        if self.jitter:
            delay = self.rng.uniform(self.min, delay)
        return delay

    def reset(self) -> None:
        self.attempt = 0


def retry(
    fn: Callable[[float], T],
    deadline: float,
    backoff: Optional[Backoff] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    what: str = "call",
) -> T:
    """Call `fn(timeout)` until it succeeds, retrying transient log errors.

    `deadline` is an absolute `clock()` value shared by every attempt; each
    attempt is given the time remaining as its timeout. Non-transient errors
    propagate unchanged.
    """
    b = backoff or Backoff()
    while True:
        remaining = deadline - clock()
        if remaining <= 0:
            raise DeadlineExceeded(f"{what}: deadline exceeded before attempt {b.attempt + 1}")
        try:
            return fn(remaining)
        except TRANSIENT_ERRORS as e:
            delay = b.duration()
            if clock() + delay >= deadline:
                raise DeadlineExceeded(
                    f"{what}: giving up after {b.attempt} attempts: {e}"
                ) from e
            log.warning("%s failed (attempt %d), retrying in %.2fs: %s", what, b.attempt, delay, e)
            sleep(delay)
