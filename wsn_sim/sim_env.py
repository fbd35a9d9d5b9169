"""
Simulation Environment (logical clock and scheduler).

Time advances in unit ticks. Every attached entity is stepped once per tick,
in the order it was attached, so a full network step always completes before
the next one begins.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised for invalid simulation setup (fatal, no partial run)."""


class Runnable:
    """Anything the environment can drive forward one tick at a time."""

    def step(self, timestamp: int):
        pass


class SimEnv:
    """
    Owns the logical timestamp and the registry of runnable entities.

    Independent environments do not share state, so several simulations can
    coexist in one process.
    """

    def __init__(self):
        self._time = 0
        self._runnables: List[Runnable] = []

    def get_timestamp(self) -> int:
        return self._time

    def attach(self, runnable: Runnable):
        """Register an entity. Attaching the same object twice is an error."""
        if any(r is runnable for r in self._runnables):
            logger.error("Entity %r attached twice", runnable)
            raise ConfigurationError(f"{runnable!r} is already attached to this environment")
        self._runnables.append(runnable)

    def step(self, delta: int = 1):
        """
        Advance time by `delta` ticks.

        Equivalent to `delta` calls of step(1): entities see every
        intermediate timestamp.
        """
        if delta < 1:
            raise ConfigurationError(f"step delta must be positive, got {delta}")
        for _ in range(delta):
            self._time += 1
            for runnable in self._runnables:
                runnable.step(self._time)

    def run(self, duration: int, progress_interval: int = 0):
        """Step `duration` ticks, optionally logging progress."""
        end = self._time + duration
        while self._time < end:
            self.step()
            if progress_interval and self._time % progress_interval == 0:
                logger.info("t=%d/%d", self._time, end)

    def __len__(self):
        return len(self._runnables)
