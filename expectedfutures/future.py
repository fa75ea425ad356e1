"""Promises and the futures that observe them."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Generic, TypeVar

from expectedfutures.cancellation import CancellablePromise
from expectedfutures.error import Error
from expectedfutures.expected import (
    Expected,
    InvalidStateError,
    make_cancelled_expected,
    make_error_expected,
    make_ready_expected,
)
from expectedfutures.options import FutureOptions
from expectedfutures.tasks import (
    ExecutionDetails,
    execution_details,
    schedule_continuation,
)

T = TypeVar("T")

logger = logging.getLogger("expectedfutures")


class _SharedState:
    """The result slot shared by a promise and its futures.

    The first value set wins; later attempts are ignored, which makes
    cancellation a best-effort race with normal completion.
    """

    def __init__(self, details: ExecutionDetails) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._result: Expected[Any] = Expected()
        self._callbacks: list[Callable[[], None]] = []
        self.execution_details = details

    def is_set(self) -> bool:
        return self._event.is_set()

    def get(self) -> Expected[Any]:
        with self._lock:
            return self._result

    def set(self, expected: Expected[Any]) -> bool:
        with self._lock:
            if self._event.is_set():
                return False
            self._result = expected
            callbacks, self._callbacks = self._callbacks, []
            self._event.set()
        self._run(callbacks)
        return True

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._run([callback])

    def wait(self, timeout: float | None) -> bool:
        return self._event.wait(timeout)

    @staticmethod
    def _run(callbacks: list[Callable[[], None]]) -> None:
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("error in a future completion callback")


def _as_expected(result: Any) -> Expected[Any]:
    if isinstance(result, Expected):
        return result
    if isinstance(result, Error):
        return Expected.failure(result)
    return make_ready_expected(result)


class ExpectedPromise(CancellablePromise, Generic[T]):
    """The writing side of a future: set once, observed by every future."""

    def __init__(self, details: ExecutionDetails | None = None) -> None:
        self._state = _SharedState(details if details is not None else ExecutionDetails())

    @property
    def execution_details(self) -> ExecutionDetails:
        return self._state.execution_details

    def get_future(self) -> ExpectedFuture[T]:
        return ExpectedFuture(self._state)

    def is_set(self) -> bool:
        return self._state.is_set()

    def set_value(self, result: Any = None) -> bool:
        """Resolve the promise; returns False if it was already resolved.

        An Expected is used as is, an Error becomes a failed result and any
        other value (None included) becomes a completed result.
        """
        return self._state.set(_as_expected(result))

    def cancel(self) -> None:
        self._state.set(make_cancelled_expected())

    def __repr__(self) -> str:
        return f"ExpectedPromise({self._state.get()!r})"


class ExpectedFuture(Generic[T]):
    """The reading side of a promise, to which continuations can be chained.

    A future created without a state is invalid: it never becomes ready
    and most operations on it raise InvalidStateError.
    """

    def __init__(self, state: _SharedState | None = None) -> None:
        self._state = state

    def _require(self) -> _SharedState:
        if self._state is None:
            raise InvalidStateError("operation on an invalid future")
        return self._state

    @property
    def execution_details(self) -> ExecutionDetails:
        return self._require().execution_details

    def then(
        self,
        func: Callable[..., Any],
        options: FutureOptions | None = None,
        owner: object | None = None,
    ) -> ExpectedFuture[Any]:
        """Chain ``func`` to run once this future is resolved.

        A function taking an Expected always runs; one taking a plain value
        or nothing runs only on completion, otherwise the failure or
        cancellation is passed on. A returned future is unwrapped. With an
        ``owner``, the continuation fails with ERROR_OBJECT_DESTROYED if the
        owner no longer exists when it is due to run.
        """
        self._require()
        promise: ExpectedPromise[Any] = ExpectedPromise(execution_details(options, self))
        schedule_continuation(func, self, promise, options, owner)
        return promise.get_future()

    def is_ready(self) -> bool:
        return self._state is not None and self._state.is_set()

    def is_valid(self) -> bool:
        return self._state is not None

    def get(self) -> Expected[T]:
        """The current result; incomplete if the future is not ready yet."""
        return self._require().get()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until ready or until ``timeout`` passes; return readiness."""
        if self._state is None:
            return False
        return self._state.wait(timeout)

    def _add_done_callback(self, callback: Callable[[], None]) -> None:
        self._require().add_done_callback(callback)

    def __repr__(self) -> str:
        if self._state is None:
            return "ExpectedFuture(<invalid>)"
        return f"ExpectedFuture({self._state.get()!r})"


def make_ready_future(value: Any = None) -> ExpectedFuture[Any]:
    """A resolved future holding ``value``; an Expected is used as is."""
    promise: ExpectedPromise[Any] = ExpectedPromise()
    promise.set_value(value if isinstance(value, Expected) else make_ready_expected(value))
    return promise.get_future()


def make_ready_future_from_expected(expected: Expected[Any]) -> ExpectedFuture[Any]:
    """A future resolved with exactly ``expected``."""
    if not isinstance(expected, Expected):
        raise TypeError(f"expected an Expected, got {type(expected).__name__}")
    promise: ExpectedPromise[Any] = ExpectedPromise()
    promise.set_value(expected)
    return promise.get_future()


def make_error_future(error: Error | Expected[Any]) -> ExpectedFuture[Any]:
    """A future resolved with an Error, or with the failed part of an Expected."""
    promise: ExpectedPromise[Any] = ExpectedPromise()
    promise.set_value(make_error_expected(error))
    return promise.get_future()