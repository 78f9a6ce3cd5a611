"""Temporary lockouts for identifiers that exhausted their attempts."""

from __future__ import annotations

import logging
import math
import threading

from otp_auth.core.clock import Clock

logger = logging.getLogger(__name__)


class LockoutRegistry:
    """Maps ``identifier → blocked_until``.

    An entry whose deadline has passed counts as absent and is evicted the
    next time it is read.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._blocked: dict[str, float] = {}

    def block(self, identifier: str, duration: float) -> None:
        """Block *identifier* for *duration* seconds from now, overwriting any entry."""
        blocked_until = self._clock.now() + duration
        with self._lock:
            self._blocked[identifier] = blocked_until
        logger.warning("Blocked %s for %ss", identifier, duration)

    def is_blocked(self, identifier: str) -> bool:
        return self.retry_after(identifier) > 0

    def retry_after(self, identifier: str) -> int:
        """Whole seconds until *identifier* is unblocked, or ``0`` if it is not."""
        now = self._clock.now()
        with self._lock:
            blocked_until = self._blocked.get(identifier)
            if blocked_until is None:
                return 0
            if blocked_until <= now:
                del self._blocked[identifier]
                logger.info("Lockout lifted for %s", identifier)
                return 0
        return max(1, math.ceil(blocked_until - now))

    def purge_expired(self) -> int:
        now = self._clock.now()
        with self._lock:
            expired = [k for k, until in self._blocked.items() if until <= now]
            for key in expired:
                del self._blocked[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._blocked)
