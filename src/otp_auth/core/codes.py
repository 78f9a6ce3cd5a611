"""One-time code generation."""

from __future__ import annotations

import secrets
import string


class CodeGenerator:
    """Produces fixed-length numeric codes.

    Digits are drawn from :mod:`secrets`, so leading zeros are as likely as
    any other digit and codes are not predictable from earlier ones.
    """

    def __init__(self, length: int = 6) -> None:
        if length < 1:
            raise ValueError("code length must be positive")
        self._length = length

    @property
    def length(self) -> int:
        return self._length

    def generate(self) -> str:
        """Return a new code of ``length`` digits."""
        return "".join(secrets.choice(string.digits) for _ in range(self._length))
