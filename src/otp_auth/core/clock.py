"""Time source used for every expiry and lockout calculation."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Anything that can tell the current time as epoch seconds."""

    def now(self) -> float:
        """Return the current wall-clock time in seconds since the epoch."""
        ...


class SystemClock:
    """``Clock`` backed by the system wall clock."""

    def now(self) -> float:
        return time.time()
