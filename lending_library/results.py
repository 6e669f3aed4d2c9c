from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class FailureKind(Enum):
    """Why an operation was rejected."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    LIMIT_EXCEEDED = "limit_exceeded"
    CONFLICT = "conflict"


class CirculationError(Exception):
    """Raised by Result.unwrap() for a failed operation."""

    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class Result:
    """Outcome of a registry or loan operation.

    A failed result carries a ``kind`` and a human readable ``message``; a
    successful one may carry the created or updated record in ``value``.
    """
    ok: bool
    value: Any = None
    kind: Optional[FailureKind] = None
    message: str = ""

    @classmethod
    def success(cls, value: Any = None, message: str = "") -> "Result":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(cls, kind: FailureKind, message: str) -> "Result":
        return cls(ok=False, kind=kind, message=message)

    def __bool__(self) -> bool:
        return self.ok

    def unwrap(self) -> Any:
        """Return ``value`` or raise CirculationError if the operation failed."""
        if not self.ok:
            raise CirculationError(self.kind, self.message)
        return self.value

