from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar


T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    SEQUENCE = "sequence"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class WorkflowError:
    """A business-rule rejection. `message` is safe to show to the caller."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a workflow operation.

    Expected rule violations come back as `error`; only infrastructure faults
    are raised.
    """

    value: T | None = None
    error: WorkflowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error=WorkflowError(kind=kind, message=message))

    @classmethod
    def not_found(cls, message: str = "Application not found") -> "Result[T]":
        return cls.fail(ErrorKind.NOT_FOUND, message)
