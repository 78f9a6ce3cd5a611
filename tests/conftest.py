"""Shared fixtures: a controllable clock and a fully in-memory AuthService."""

from __future__ import annotations

import pytest

from otp_auth.core.codes import CodeGenerator
from otp_auth.services.auth_service import AuthService
from otp_auth.services.notifier import Notifier
from otp_auth.services.user_directory import DemoUserDirectory, UserDirectory
from otp_auth.store.lockout import LockoutRegistry
from otp_auth.store.otp_ledger import OtpLedger
from otp_auth.store.session_registry import SessionRegistry


class FakeClock:
    """Clock that only moves when a test tells it to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds


class ScriptedCodes(CodeGenerator):
    """Hands out ``111111``, ``222222``, … so tests know every code."""

    def __init__(self) -> None:
        super().__init__(6)
        self._next = 0

    def generate(self) -> str:
        self._next = self._next % 9 + 1
        return str(self._next) * 6


class RecordingNotifier(Notifier):
    """Keeps every delivered code instead of sending it anywhere."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "recording"

    async def deliver(self, identifier: str, code: str) -> None:
        self.sent.append((identifier, code))

    def last_code(self, identifier: str) -> str:
        return [code for ident, code in self.sent if ident == identifier][-1]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def ledger(clock) -> OtpLedger:
    return OtpLedger(clock)


@pytest.fixture
def lockouts(clock) -> LockoutRegistry:
    return LockoutRegistry(clock)


@pytest.fixture
def sessions(clock) -> SessionRegistry:
    return SessionRegistry(clock)


@pytest.fixture
def make_service(ledger, lockouts, sessions, notifier):
    """Build a service over the shared stores with the given user directory."""

    def _make(directory: UserDirectory) -> AuthService:
        return AuthService(
            ledger=ledger,
            lockouts=lockouts,
            sessions=sessions,
            notifier=notifier,
            directory=directory,
            code_generator=ScriptedCodes(),
            otp_ttl_seconds=300,
            max_attempts=3,
            lockout_seconds=600,
        )

    return _make


@pytest.fixture
def service(make_service) -> AuthService:
    return make_service(DemoUserDirectory())
