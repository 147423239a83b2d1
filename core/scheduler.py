"""Clocks and a cooperative debounce timer.

Nothing here starts threads.  The owner of a Debouncer calls ``poll()``
from its own loop (or ``flush()`` before shutting down); the callback runs
on the caller's thread, so it never races with store mutations.
"""

from __future__ import annotations

import time
from typing import Callable, Optional


class Clock:
    """Wall-clock milliseconds."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


class ManualClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> int:
        self._now += ms
        return self._now


class Debouncer:
    """Run *callback* once after *delay_ms* of quiescence.

    Every ``schedule()`` pushes the deadline out again, so a burst of calls
    collapses into a single callback.
    """

    def __init__(self, callback: Callable[[], None], delay_ms: int, clock: Clock):
        self.callback = callback
        self.delay_ms = delay_ms
        self.clock = clock
        self._deadline: Optional[int] = None

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    @property
    def deadline(self) -> Optional[int]:
        return self._deadline

    def schedule(self) -> None:
        self._deadline = self.clock.now_ms() + self.delay_ms

    def cancel(self) -> None:
        self._deadline = None

    def poll(self) -> bool:
        """Fire if the deadline has passed. Returns True if the callback ran."""
        if self._deadline is None or self.clock.now_ms() < self._deadline:
            return False
        self._deadline = None
        self.callback()
        return True

    def flush(self) -> bool:
        """Fire now if anything is pending, regardless of the deadline."""
        if self._deadline is None:
            return False
        self._deadline = None
        self.callback()
        return True
