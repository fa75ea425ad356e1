"""Result values that are completed, failed, cancelled or still incomplete."""

from __future__ import annotations

import enum
from typing import Any, Generic, TypeVar

from expectedfutures.error import Error

T = TypeVar("T")
R = TypeVar("R")


class InvalidStateError(RuntimeError):
    """Raised when a result is accessed in a state that does not allow it."""


class ExpectedState(enum.Enum):
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ERROR = "error"


class Expected(Generic[T]):
    """The outcome of an asynchronous operation.

    A new instance is incomplete; use the factory class methods or the
    module-level helpers to build completed, failed or cancelled results.
    """

    __slots__ = ("_state", "_value", "_error")

    def __init__(self) -> None:
        self._state = ExpectedState.INCOMPLETE
        self._value: T | None = None
        self._error: Error | None = None

    @classmethod
    def ready(cls, value: T | None = None) -> Expected[T]:
        result = cls()
        result._state = ExpectedState.COMPLETED
        result._value = value
        return result

    @classmethod
    def failure(cls, error: Error) -> Expected[T]:
        if not isinstance(error, Error):
            raise TypeError(f"expected an Error, got {type(error).__name__}")
        result = cls()
        result._state = ExpectedState.ERROR
        result._error = error
        return result

    @classmethod
    def cancelled(cls) -> Expected[T]:
        result = cls()
        result._state = ExpectedState.CANCELLED
        return result

    @property
    def state(self) -> ExpectedState:
        return self._state

    def is_completed(self) -> bool:
        return self._state is ExpectedState.COMPLETED

    def is_error(self) -> bool:
        return self._state is ExpectedState.ERROR

    def is_cancelled(self) -> bool:
        return self._state is ExpectedState.CANCELLED

    @property
    def value(self) -> T:
        """The completed value; raises if the result is not completed."""
        if not self.is_completed():
            raise InvalidStateError(f"value requested from a {self._state.value} result")
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> Error:
        """The error; raises if the result is not an error."""
        if not self.is_error() or self._error is None:
            raise InvalidStateError(f"error requested from a {self._state.value} result")
        return self._error

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expected):
            return NotImplemented
        return (self._state, self._value, self._error) == (
            other._state,
            other._value,
            other._error,
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.is_completed():
            return f"Expected.ready({self._value!r})"
        if self.is_error():
            return f"Expected.failure({self._error!r})"
        if self.is_cancelled():
            return "Expected.cancelled()"
        return "Expected()"


def make_ready_expected(value: T | None = None) -> Expected[T]:
    """A completed result holding ``value`` (``None`` for a valueless result)."""
    return Expected.ready(value)


def make_error_expected(error: Error | Expected[Any]) -> Expected[Any]:
    """A failed result from an Error, or the non-completed part of another result."""
    if isinstance(error, Expected):
        return convert_incomplete(error)
    return Expected.failure(error)


def make_cancelled_expected() -> Expected[Any]:
    return Expected.cancelled()


def convert(other: Expected[Any], value: R | None = None) -> Expected[R]:
    """Carry the state of ``other`` over, substituting ``value`` when completed."""
    if other.is_completed():
        return Expected.ready(value)
    if other.is_cancelled():
        return Expected.cancelled()
    if other.is_error():
        return Expected.failure(other.error)
    return Expected()


def convert_incomplete(other: Expected[Any]) -> Expected[Any]:
    """Carry a cancelled, failed or incomplete state over to a new result."""
    if other.is_completed():
        raise InvalidStateError("convert_incomplete called with a completed result")
    if other.is_cancelled():
        return Expected.cancelled()
    if other.is_error():
        return Expected.failure(other.error)
    return Expected()