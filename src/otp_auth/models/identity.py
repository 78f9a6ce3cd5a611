"""Identity value object handed out to authenticated clients."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Identity:
    """The user record bound to a session."""

    id: int
    identifier: str
    name: str

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
