"""Errors raised by the authentication flow.

Every error carries a machine-readable ``code``, a human-readable
``message`` and the HTTP status the API layer answers with.
"""

from __future__ import annotations

import math
from typing import Any


class AuthError(Exception):
    """Base class for all expected authentication failures."""

    code = "auth_error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class InvalidInputError(AuthError):
    code = "invalid_input"


class NoPendingChallengeError(AuthError):
    code = "no_pending_challenge"

    def __init__(self) -> None:
        super().__init__("No OTP requested for this identifier.")


class ExpiredError(AuthError):
    code = "expired"

    def __init__(self) -> None:
        super().__init__("OTP has expired. Please request a new one.")


class InvalidCodeError(AuthError):
    code = "invalid_code"

    def __init__(self, attempts_left: int) -> None:
        super().__init__(f"Invalid OTP. Attempts left: {attempts_left}")
        self.attempts_left = attempts_left

    def payload(self) -> dict[str, Any]:
        return {**super().payload(), "attempts_left": self.attempts_left}


class BlockedError(AuthError):
    code = "blocked"
    status_code = 429

    def __init__(self, retry_after: int, *, just_blocked: bool = False) -> None:
        minutes = max(1, math.ceil(retry_after / 60))
        unit = "minute" if minutes == 1 else "minutes"
        if just_blocked:
            message = f"Maximum attempts exceeded. You are blocked for {minutes} {unit}."
        else:
            message = (
                f"Too many attempts. This identifier is blocked for {minutes} more {unit}."
            )
        super().__init__(message)
        self.retry_after = retry_after

    def payload(self) -> dict[str, Any]:
        return {**super().payload(), "retry_after": self.retry_after}


class UnauthorizedError(AuthError):
    code = "unauthorized"
    status_code = 401


class ServiceUnavailableError(AuthError):
    code = "service_unavailable"
    status_code = 503

    def __init__(self) -> None:
        super().__init__("Sign-in is temporarily unavailable. Please try the same code again.")
