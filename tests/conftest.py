"""Shared fixtures."""

from collections.abc import Iterator
from unittest.mock import patch

import pytest


class FakeClock:
    """Stand-in for the ``time`` module: sleeping advances ``monotonic``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> Iterator[FakeClock]:
    """Patch the polling module's clock so deadlines run in virtual time."""
    clock = FakeClock()
    with patch("wakenrun.core.poll.time", clock):
        yield clock
