"""
Monotonic clock and deadline arithmetic.

All values are integer milliseconds on a monotonic clock. A deadline is an
absolute point on that clock; a timeout is a duration relative to now.
"""

import time
from typing import Optional, Protocol

from oiosds.shared.types import Milliseconds

# Upper bound for computed deadlines
MAX_MILLIS = 2 ** 63 - 1


class Clock(Protocol):
    """Protocol for monotonic time sources."""

    def now(self) -> int:
        """Current monotonic time in milliseconds, never decreasing."""
        ...


class MonotonicClock:
    """Clock backed by the interpreter's monotonic timer."""

    def now(self) -> int:
        return time.monotonic_ns() // 1_000_000


class DeadlineManager:
    """Converts timeouts to deadlines and back against an injected clock.

    Holds no state beyond the clock, so a single instance can be shared by
    any number of request contexts and threads.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or MonotonicClock()

    def now(self) -> Milliseconds:
        return Milliseconds(self.clock.now())

    def timeout_to_deadline(self, timeout: int, start: Optional[int] = None) -> Milliseconds:
        """Return ``start + timeout``, clamped to ``[0, MAX_MILLIS]``."""
        if start is None:
            start = self.now()
        return Milliseconds(max(0, min(MAX_MILLIS, start + timeout)))

    def deadline_to_timeout(self, deadline: int) -> Milliseconds:
        """Return the time left before ``deadline``; negative once it has passed."""
        return Milliseconds(deadline - self.now())


_default_manager = DeadlineManager()


def default_deadline_manager() -> DeadlineManager:
    """Process-wide manager used by contexts built without one."""
    return _default_manager
