"""In-memory OTP ledger with expiry and attempt counting."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, replace

from otp_auth.core.clock import Clock

logger = logging.getLogger(__name__)


@dataclass
class OtpChallenge:
    """The single live code issued to an identifier."""

    code: str
    expires_at: float
    attempts: int = 0


class VerifyStatus(enum.Enum):
    NO_CHALLENGE = "no_challenge"
    EXPIRED = "expired"
    MISMATCH = "mismatch"
    EXHAUSTED = "exhausted"
    SUCCESS = "success"


@dataclass(frozen=True)
class VerifyOutcome:
    """Result of :meth:`OtpLedger.consume`.

    ``attempts_left`` is only meaningful for ``MISMATCH``; ``challenge`` is
    the consumed entry and only set for ``SUCCESS``.
    """

    status: VerifyStatus
    attempts_left: int = 0
    challenge: OtpChallenge | None = None


class OtpLedger:
    """Thread-safe in-memory challenge store.

    Each entry maps ``identifier → OtpChallenge``.  A new challenge always
    replaces the previous one, and expired entries are purged lazily on
    access.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, OtpChallenge] = {}

    def create(self, identifier: str, code: str, ttl: float) -> None:
        """Install a fresh challenge for *identifier*, discarding any prior one."""
        challenge = OtpChallenge(code=code, expires_at=self._clock.now() + ttl)
        with self._lock:
            replaced = identifier in self._store
            self._store[identifier] = challenge
        if replaced:
            logger.debug("Replaced pending OTP for %s", identifier)

    def restore(self, identifier: str, challenge: OtpChallenge) -> bool:
        """Put a consumed *challenge* back, unless a newer one was issued since.

        Expiry and attempt count are kept as they were.  Returns whether the
        challenge was reinstated.
        """
        with self._lock:
            if identifier in self._store:
                return False
            self._store[identifier] = replace(challenge)
        logger.info("Restored pending OTP for %s", identifier)
        return True

    def get(self, identifier: str) -> OtpChallenge | None:
        """Return a copy of the stored challenge, expired or not."""
        with self._lock:
            challenge = self._store.get(identifier)
            return replace(challenge) if challenge else None

    def consume(self, identifier: str, code: str, max_attempts: int) -> VerifyOutcome:
        """Check *code* against the challenge for *identifier*.

        The challenge is deleted on success, on expiry, and when the failed
        attempt exhausts ``max_attempts``; otherwise its attempt counter is
        incremented in place.
        """
        now = self._clock.now()
        with self._lock:
            challenge = self._store.get(identifier)
            if challenge is None:
                return VerifyOutcome(VerifyStatus.NO_CHALLENGE)

            if now > challenge.expires_at:
                del self._store[identifier]
                logger.info("OTP expired for %s", identifier)
                return VerifyOutcome(VerifyStatus.EXPIRED)

            if code == challenge.code:
                del self._store[identifier]
                return VerifyOutcome(VerifyStatus.SUCCESS, challenge=challenge)

            if challenge.attempts + 1 >= max_attempts:
                del self._store[identifier]
                return VerifyOutcome(VerifyStatus.EXHAUSTED)

            challenge.attempts += 1
            return VerifyOutcome(
                VerifyStatus.MISMATCH,
                attempts_left=max_attempts - challenge.attempts,
            )

    def purge_expired(self) -> int:
        """Drop every challenge past its expiry; return how many were removed."""
        now = self._clock.now()
        with self._lock:
            expired = [k for k, c in self._store.items() if now > c.expires_at]
            for key in expired:
                del self._store[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
