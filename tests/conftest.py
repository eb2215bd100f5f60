"""Pytest fixtures for the random tool tests."""
from typing import Callable

import pytest


class RecordingSource:
    """Uniform source that answers with a fixed pick and records each bound."""

    def __init__(self, pick: Callable[[int], int]):
        self._pick = pick
        self.bounds: list[int] = []

    def __call__(self, n: int) -> int:
        self.bounds.append(n)
        return self._pick(n)


@pytest.fixture
def lowest_source() -> RecordingSource:
    """Always draws 0, the smallest value of any range."""
    return RecordingSource(lambda n: 0)


@pytest.fixture
def highest_source() -> RecordingSource:
    """Always draws n - 1, the largest value of any range."""
    return RecordingSource(lambda n: n - 1)


@pytest.fixture
def failing_source() -> Callable[[int], int]:
    """Simulates an operating system entropy failure."""

    def _fail(n: int) -> int:
        raise OSError("getrandom() failed")

    return _fail
