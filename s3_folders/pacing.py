from __future__ import annotations
"""Delays applied between listing pages to bound the request rate."""
from abc import ABC, abstractmethod
import time
from typing import Callable

DEFAULT_PAGE_DELAY = 0.3


class PacingPolicy(ABC):
    """Strategy consulted before each follow-up page request."""

    @abstractmethod
    def wait(self) -> None:
        """Block until the next page may be requested."""


class NoPacing(PacingPolicy):
    def wait(self) -> None:
        return None


class FixedIntervalPacing(PacingPolicy):
    """Sleeps for the same delay between every pair of pages."""

    def __init__(self, delay: float = DEFAULT_PAGE_DELAY, sleep: Callable[[float], None] | None = None):
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.delay = delay
        self._sleep = sleep or time.sleep

    def wait(self) -> None:
        if self.delay:
            self._sleep(self.delay)
