from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from pool_analytics.domain.exceptions import (
    ConfigurationError,
    DecimalArithmeticError,
    InvalidInputError,
    NotFoundError,
    QueryCancelledError,
    UnavailableError,
)


T = TypeVar("T")


class ErrorKind(str, Enum):
    ARITHMETIC = "arithmetic"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INVALID_INPUT = "invalid_input"
    CONFIGURATION = "configuration"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


_KIND_BY_EXCEPTION: tuple[tuple[type[Exception], ErrorKind], ...] = (
    (DecimalArithmeticError, ErrorKind.ARITHMETIC),
    (NotFoundError, ErrorKind.NOT_FOUND),
    (UnavailableError, ErrorKind.UNAVAILABLE),
    (InvalidInputError, ErrorKind.INVALID_INPUT),
    (ConfigurationError, ErrorKind.CONFIGURATION),
    (QueryCancelledError, ErrorKind.CANCELLED),
)


def error_kind_for(exc: Exception) -> ErrorKind | None:
    """Envelope kind for an expected domain error, ``None`` for anything else."""
    for exc_type, kind in _KIND_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return kind
    return None


@dataclass(frozen=True)
class QueryError:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: QueryError | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls(error=QueryError(kind=kind, message=message))

    @classmethod
    def from_exception(cls, exc: Exception) -> "Result[T]":
        kind = error_kind_for(exc) or ErrorKind.INTERNAL
        return cls.failure(kind, str(exc) or exc.__class__.__name__)

    def unwrap(self) -> T:
        if self.error is not None:
            raise ValueError(f"Cannot access value of a failed result: [{self.error.kind.value}] {self.error.message}")
        return self.value  # type: ignore[return-value]
