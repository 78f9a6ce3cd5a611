"""Authentication service — request → verify → who-am-i OTP flow."""

from __future__ import annotations

import logging
import math

from otp_auth.config import Settings, settings
from otp_auth.core.clock import Clock, SystemClock
from otp_auth.core.codes import CodeGenerator
from otp_auth.core.locks import KeyedLock
from otp_auth.errors import (
    BlockedError,
    ExpiredError,
    InvalidCodeError,
    InvalidInputError,
    NoPendingChallengeError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from otp_auth.models.identity import Identity
from otp_auth.services.notifier import Notifier, build_notifier
from otp_auth.services.user_directory import UserDirectory, build_user_directory
from otp_auth.store.lockout import LockoutRegistry
from otp_auth.store.otp_ledger import OtpLedger, VerifyStatus
from otp_auth.store.session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class AuthService:
    """Authenticates an email/phone identifier with a one-time code.

    Flow
    ----
    1. ``request_otp`` issues a code for the identifier, replacing any
       pending one and resetting its attempt counter, and hands it to the
       notifier.
    2. ``verify_otp`` checks a submitted code.  A match consumes the code and
       issues a session token; a miss costs one attempt.
    3. The attempt that exhausts ``max_attempts`` destroys the code and
       blocks the identifier for ``lockout_seconds``.  While blocked, both
       requests and verifications are refused and the window is not extended.
    4. A code submitted after its TTL is discarded without a lockout.
    5. ``who_am_i`` resolves a session token back to its identity.

    Every check-then-mutate step runs under a per-identifier lock, so
    concurrent calls for one identifier cannot lose attempt increments or
    consume the same code twice.
    """

    def __init__(
        self,
        *,
        ledger: OtpLedger,
        lockouts: LockoutRegistry,
        sessions: SessionRegistry,
        notifier: Notifier,
        directory: UserDirectory,
        code_generator: CodeGenerator | None = None,
        otp_ttl_seconds: float = 300,
        max_attempts: int = 3,
        lockout_seconds: float = 600,
    ) -> None:
        self._ledger = ledger
        self._lockouts = lockouts
        self._sessions = sessions
        self._notifier = notifier
        self._directory = directory
        self._codes = code_generator or CodeGenerator()
        self._otp_ttl = otp_ttl_seconds
        self._max_attempts = max_attempts
        self._lockout_seconds = lockout_seconds
        self._locks = KeyedLock()

    # ── Public operations ────────────────────────────────

    async def request_otp(self, identifier: str | None) -> str:
        """Issue a fresh code for *identifier* and return an acknowledgement."""
        if not identifier:
            raise InvalidInputError("identifier (email/phone) is required")

        with self._locks.hold(identifier):
            self._ensure_not_blocked(identifier)
            code = self._codes.generate()
            self._ledger.create(identifier, code, self._otp_ttl)

        logger.info("OTP issued for %s", identifier)
        await self._deliver(identifier, code)
        minutes = max(1, math.ceil(self._otp_ttl / 60))
        return f"OTP sent. It is valid for {minutes} minutes."

    async def verify_otp(self, identifier: str | None, code: str | None) -> str:
        """Check *code* for *identifier* and return a session token on success."""
        if not identifier or not code:
            raise InvalidInputError("identifier and otp are required")

        with self._locks.hold(identifier):
            self._ensure_not_blocked(identifier)
            outcome = self._ledger.consume(identifier, code, self._max_attempts)
            if outcome.status is VerifyStatus.EXHAUSTED:
                self._lockouts.block(identifier, self._lockout_seconds)

        if outcome.status is VerifyStatus.NO_CHALLENGE:
            logger.info("Verify without pending OTP for %s", identifier)
            raise NoPendingChallengeError()

        if outcome.status is VerifyStatus.EXPIRED:
            raise ExpiredError()

        if outcome.status is VerifyStatus.MISMATCH:
            logger.info(
                "Invalid OTP for %s (%d attempts left)", identifier, outcome.attempts_left
            )
            raise InvalidCodeError(outcome.attempts_left)

        if outcome.status is VerifyStatus.EXHAUSTED:
            raise BlockedError(math.ceil(self._lockout_seconds), just_blocked=True)

        try:
            identity = await self._directory.resolve(identifier)
        except Exception:
            logger.exception("Identity lookup failed for %s", identifier)
            with self._locks.hold(identifier):
                self._ledger.restore(identifier, outcome.challenge)
            raise ServiceUnavailableError() from None

        token = self._sessions.issue(identity)
        logger.info("%s authenticated via OTP", identifier)
        return token

    def who_am_i(self, token: str | None) -> Identity:
        """Return the identity bound to *token*."""
        if not token:
            raise UnauthorizedError("Missing or invalid Authorization header.")
        identity = self._sessions.lookup(token)
        if identity is None:
            raise UnauthorizedError("Invalid or expired token.")
        return identity

    def purge_expired(self) -> tuple[int, int]:
        """Drop stale challenges and lockouts; return how many of each went."""
        return self._ledger.purge_expired(), self._lockouts.purge_expired()

    # ── Private helpers ──────────────────────────────────

    def _ensure_not_blocked(self, identifier: str) -> None:
        retry_after = self._lockouts.retry_after(identifier)
        if retry_after:
            logger.info("Rejected %s: blocked for another %ss", identifier, retry_after)
            raise BlockedError(retry_after)

    async def _deliver(self, identifier: str, code: str) -> None:
        """Hand the code to the notifier; delivery failures never fail the request."""
        try:
            await self._notifier.deliver(identifier, code)
        except Exception:
            logger.exception("OTP delivery via %s failed for %s", self._notifier.name, identifier)


def build_auth_service(config: Settings | None = None, clock: Clock | None = None) -> AuthService:
    """Wire an ``AuthService`` from configuration."""
    cfg = config or settings
    clock = clock or SystemClock()
    return AuthService(
        ledger=OtpLedger(clock),
        lockouts=LockoutRegistry(clock),
        sessions=SessionRegistry(clock),
        notifier=build_notifier(cfg),
        directory=build_user_directory(cfg),
        code_generator=CodeGenerator(cfg.otp_length),
        otp_ttl_seconds=cfg.otp_ttl_seconds,
        max_attempts=cfg.otp_max_attempts,
        lockout_seconds=cfg.lockout_seconds,
    )
