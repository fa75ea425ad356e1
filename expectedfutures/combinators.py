"""Starting asynchronous work and combining several futures into one."""

from __future__ import annotations

import enum
import threading
from typing import Any, Callable, Iterable

from expectedfutures.error import ERROR_INVALID_ARGUMENT, Error
from expectedfutures.expected import Expected, convert
from expectedfutures.future import (
    ExpectedFuture,
    ExpectedPromise,
    make_error_future,
    make_ready_future,
)
from expectedfutures.options import FutureOptions
from expectedfutures.tasks import execution_details, schedule_initial


class FailMode(enum.Enum):
    """When a combined future reports a failure of one of its inputs."""

    #: Wait for every input, then report the first failure.
    FULL = "full"
    #: Report the first failure as soon as it happens.
    FAST = "fast"


def run_async(
    func: Callable[[], Any], options: FutureOptions | None = None
) -> ExpectedFuture[Any]:
    """Run ``func`` as ``options`` direct and return a future of its result.

    A returned future is unwrapped, a returned Expected is used as is and
    any other value becomes a completed result.
    """
    if options is None:
        options = FutureOptions()
    promise: ExpectedPromise[Any] = ExpectedPromise(execution_details(options))
    future = promise.get_future()
    schedule_initial(func, promise, options)
    return future


def when_all(
    futures: Iterable[ExpectedFuture[Any]], fail_mode: FailMode = FailMode.FULL
) -> ExpectedFuture[list[Any]]:
    """A future of the values of all ``futures``, in the order they complete.

    If any input fails or is cancelled, the combined future carries the
    first such state: at once with FailMode.FAST, or once every input is
    resolved with FailMode.FULL. No inputs give a ready empty list.
    """
    futures = list(futures)
    if not futures:
        return make_ready_future([])
    fail_mode = FailMode(fail_mode)

    lock = threading.Lock()
    remaining = len(futures)
    values: list[Any] = []
    promise: ExpectedPromise[list[Any]] = ExpectedPromise()
    first_error: ExpectedPromise[list[Any]] = ExpectedPromise()

    def forward_outcome() -> None:
        def forward(result: Expected) -> None:
            promise.set_value(result)

        first_error.get_future().then(forward)

    if fail_mode is FailMode.FAST:
        forward_outcome()

    def on_result(result: Expected) -> None:
        nonlocal remaining
        if not result.is_completed():
            first_error.set_value(convert(result, []))
        with lock:
            if result.is_completed():
                values.append(result.value)
            remaining -= 1
            finished = remaining == 0
            collected = list(values)
        if finished:
            first_error.set_value(Expected.ready(collected))
            if fail_mode is not FailMode.FAST:
                forward_outcome()

    for future in futures:
        future.then(on_result)
    return promise.get_future()


def when_any(futures: Iterable[ExpectedFuture[Any]]) -> ExpectedFuture[Any]:
    """A future resolved with the first result of any of ``futures``.

    No inputs give a future failed with ERROR_INVALID_ARGUMENT.
    """
    futures = list(futures)
    if not futures:
        return make_error_future(
            Error(
                ERROR_INVALID_ARGUMENT,
                info="when_any - Must have at least one element in the array.",
            )
        )
    promise: ExpectedPromise[Any] = ExpectedPromise()

    def forward(result: Expected) -> None:
        promise.set_value(result)

    for future in futures:
        future.then(forward)
    return promise.get_future()


def wait_async(delay: float) -> ExpectedFuture[None]:
    """A future that completes, without a value, after ``delay`` seconds."""
    promise: ExpectedPromise[None] = ExpectedPromise()
    timer = threading.Timer(max(0.0, float(delay)), promise.set_value)
    timer.daemon = True
    timer.start()
    return promise.get_future()