"""Session registry — maps opaque bearer tokens to identities."""

from __future__ import annotations

import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass

from otp_auth.core.clock import Clock
from otp_auth.models.identity import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """One issued token and the identity it authenticates."""

    token: str
    identity: Identity
    created_at: float


def default_token_factory(now: float) -> str:
    """Millisecond timestamp plus 192 random bits, URL-safe."""
    return f"{int(now * 1000):x}-{secrets.token_urlsafe(24)}"


class SessionRegistry:
    """In-memory session store keyed by token.

    Sessions never expire server-side; they live until the process restarts.
    Logging out is the client discarding its token.
    """

    def __init__(
        self,
        clock: Clock,
        token_factory: Callable[[float], str] = default_token_factory,
    ) -> None:
        self._clock = clock
        self._token_factory = token_factory
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    def issue(self, identity: Identity) -> str:
        """Create a session for *identity* and return its token."""
        now = self._clock.now()
        with self._lock:
            token = self._token_factory(now)
            while token in self._sessions:
                logger.warning("Token collision, drawing another")
                token = self._token_factory(now)
            self._sessions[token] = Session(token=token, identity=identity, created_at=now)
        logger.info("Session issued for %s", identity.identifier)
        return token

    def lookup(self, token: str) -> Identity | None:
        """Return the identity bound to *token*, or ``None`` if unknown."""
        with self._lock:
            session = self._sessions.get(token)
        return session.identity if session else None

    @property
    def active_count(self) -> int:
        """Number of issued sessions (useful for monitoring)."""
        with self._lock:
            return len(self._sessions)
