"""
Result type — the success/failure railway used between trust store stages.

A Result[T] is either Success(value: T) or Failure(error: FailureDescription).
Adapters never raise into the orchestration layer: transport, storage and
parse errors are captured as Failure values and the updater decides which
fallback to take.

    fetch(url) ──Success──▶ write-through ──Success──▶ parse ──▶ list[CertificateRecord]
        │ Failure              │ Failure                 │ Failure
        └──────────────────────┴─────────────────────────┴──▶ cache fallback
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
R = TypeVar("R")


@unique
class ErrorCode(Enum):
    """Failure categories of the fetch → cache → parse pipeline."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Non-200 status, empty body, DNS/TLS/connection errors or timeouts."""

    PARSE_ERROR = "PARSE_ERROR"
    """The PEM container could not be read as certificates."""

    STORAGE_ERROR = "STORAGE_ERROR"
    """The cache slot could not be read or written."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """Immutable failure descriptor: error code, message, optional cause."""

    code: ErrorCode
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __str__(self) -> str:
        if self.exception is None:
            return f"{self.code.value}: {self.message}"
        return f"{self.code.value}: {self.message} ({self.exception})"


class Result(Generic[T]):
    """
    Success-or-failure value with short-circuiting transformations.

        >>> Result.success("pem").map(len).value()
        3
        >>> Result.failure(ErrorCode.TRANSPORT_ERROR, "HTTP 503").is_failure()
        True
    """

    # ──────────────────────── Introspection ────────────────────────

    def is_success(self) -> bool:
        return isinstance(self, Success)

    def is_failure(self) -> bool:
        return isinstance(self, Failure)

    def value(self) -> T:
        """Extract the success value. Raises ValueError on a Failure."""
        match self:
            case Success(v):
                return v
            case Failure(err):
                raise ValueError(f"Cannot get value from a Failure: {err.message}")
        raise TypeError("unreachable")  # pragma: no cover

    def error(self) -> FailureDescription:
        """Extract the failure description. Raises ValueError on a Success."""
        match self:
            case Failure(err):
                return err
            case Success(v):
                raise ValueError(f"Cannot get error from a Success: {v!r}")
        raise TypeError("unreachable")  # pragma: no cover

    # ──────────────────────── Transformations ────────────────────────

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        match self:
            case Success(v):
                return Success(mapper(v))
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def flat_map(self, mapper: Callable[[T], Result[U]]) -> Result[U]:
        """Chain a Result-returning stage. Short-circuits on failure."""
        match self:
            case Success(v):
                return mapper(v)
            case Failure(err):
                return Failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def ensure(self, predicate: Callable[[T], bool], code: ErrorCode, message: str) -> Result[T]:
        """Turn a success whose value fails `predicate` into a Failure."""
        return self.flat_map(
            lambda v: Result.success(v) if predicate(v) else Result.failure(code, message)
        )

    def peek_failure(self, action: Callable[[FailureDescription], object]) -> Result[T]:
        """Run a side effect (usually logging) on failure; pass the Result through."""
        match self:
            case Failure(err):
                action(err)
        return self

    def either(
        self,
        on_success: Callable[[T], R],
        on_failure: Callable[[FailureDescription], R],
    ) -> R:
        match self:
            case Success(v):
                return on_success(v)
            case Failure(err):
                return on_failure(err)
        raise TypeError("unreachable")  # pragma: no cover

    def get_or_else(self, default: T) -> T:
        match self:
            case Success(v):
                return v
            case _:
                return default

    # ──────────────────────── Factories ────────────────────────

    @staticmethod
    def success(value: T) -> Result[T]:
        return Success(value)

    @staticmethod
    def failure(
        code: ErrorCode,
        message: str,
        exception: BaseException | None = None,
    ) -> Result[T]:
        return Failure(FailureDescription(code=code, message=message, exception=exception))

    @staticmethod
    def from_computation(
        computation: Callable[[], T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Run a computation that may raise and capture any exception as a Failure.

            Result.from_computation(
                lambda: cache.read(),
                ErrorCode.STORAGE_ERROR,
                "Cache read failed",
            )
        """
        try:
            return Result.success(computation())
        except Exception as e:
            return Result.failure(error_code, error_message, e)

    @staticmethod
    async def from_awaitable(
        awaitable: Awaitable[T],
        error_code: ErrorCode,
        error_message: str,
    ) -> Result[T]:
        """
        Async counterpart of from_computation.

        Cancellation is not an Exception and therefore propagates to the caller.
        """
        try:
            return Result.success(await awaitable)
        except Exception as e:
            return Result.failure(error_code, error_message, e)


@dataclass(frozen=True, slots=True)
class Success(Result[T]):
    """The success track — wraps a value of type T."""

    _value: T

    def __init__(self, value: T) -> None:
        if value is None:
            raise TypeError("Success value must not be None")
        object.__setattr__(self, "_value", value)

    def __repr__(self) -> str:
        return f"Success({self._value!r})"


Success.__match_args__ = ("_value",)


@dataclass(frozen=True, slots=True)
class Failure(Result[T]):
    """The failure track — wraps a FailureDescription."""

    _error: FailureDescription

    def __init__(self, error: FailureDescription) -> None:
        if error is None:
            raise TypeError("Failure error must not be None")
        object.__setattr__(self, "_error", error)

    def __repr__(self) -> str:
        return f"Failure({self._error.code.value}: {self._error.message!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Failure):
            return self._error.code == other._error.code and self._error.message == other._error.message
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Failure", self._error.code, self._error.message))


Failure.__match_args__ = ("_error",)
