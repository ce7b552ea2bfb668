"""Deadline-bounded polling shared by every probe."""

import logging
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deadline:
    """A monotonic start instant plus a timeout in seconds."""

    started: float
    timeout: float

    @classmethod
    def start(cls, timeout: float) -> "Deadline":
        return cls(started=time.monotonic(), timeout=timeout)

    def elapsed(self) -> float:
        return time.monotonic() - self.started

    def remaining(self) -> float:
        return max(0.0, self.timeout - self.elapsed())

    def expired(self) -> bool:
        return self.elapsed() >= self.timeout


@dataclass(frozen=True)
class PollOutcome:
    satisfied: bool
    attempts: int


def poll_until(
    predicate: Callable[[], bool],
    deadline: Deadline,
    interval: float,
    label: str = "condition",
) -> PollOutcome:
    """
    Call ``predicate`` until it returns True or ``deadline`` expires.

    The deadline is checked only between attempts, so an attempt already in
    flight is never interrupted. Between unsuccessful attempts the loop sleeps
    ``interval`` seconds, clipped to the time left.

    Args:
        predicate: Zero-argument callable, True means done
        deadline: Budget shared by all attempts
        interval: Seconds to sleep after a failed attempt
        label: Name used in debug logging

    Returns:
        PollOutcome with whether the predicate was satisfied and how many
        attempts were made
    """
    attempts = 0
    while not deadline.expired():
        attempts += 1
        if predicate():
            logger.debug("%s satisfied after %d attempt(s)", label, attempts)
            return PollOutcome(satisfied=True, attempts=attempts)
        remaining = deadline.remaining()
        logger.debug(
            "%s not yet satisfied, %.1fs remaining (attempt %d)", label, remaining, attempts
        )
        if remaining > 0:
            time.sleep(min(interval, remaining))
    return PollOutcome(satisfied=False, attempts=attempts)
