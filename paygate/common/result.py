"""Success/failure envelope shared by every gateway component.

Expected failure modes travel as `OperationResult` values. Exceptions are kept
for faults nobody anticipated (transport breakage, programming errors).
"""

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Closed vocabulary of failure kinds."""

    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    UNEXPECTED = "unexpected"


# Fallback transport status when a failure carries no explicit hint.
DEFAULT_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: HTTPStatus.BAD_REQUEST,
    ErrorKind.CONFLICT: HTTPStatus.CONFLICT,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.TRANSIENT: HTTPStatus.SERVICE_UNAVAILABLE,
    ErrorKind.UNEXPECTED: HTTPStatus.INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class Error:
    """Typed failure: kind, human message and optional HTTP status hint."""

    kind: ErrorKind
    message: str
    status_code: int | None = None

    def http_status(self) -> int:
        """Status hint when present, otherwise the default for the kind."""

        if self.status_code is not None:
            return int(self.status_code)
        return int(DEFAULT_STATUS_CODES[self.kind])


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Either `data` (success) or `error` (failure), never both."""

    data: T | None = None
    error: Error | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, data: T) -> "OperationResult[T]":
        return cls(data=data)

    @classmethod
    def failure(
        cls, kind: ErrorKind, message: str, status_code: int | None = None
    ) -> "OperationResult[T]":
        return cls(error=Error(kind=kind, message=message, status_code=status_code))

    @classmethod
    def from_error(cls, error: Error) -> "OperationResult[T]":
        """Re-wrap an existing error unchanged (kind, message, status hint)."""

        return cls(error=error)
