from __future__ import annotations

import gc

import pytest

from expectedfutures.cancellation import create_cancellation_handle
from expectedfutures.error import ERROR_OBJECT_DESTROYED, Error
from expectedfutures.expected import (
    Expected,
    InvalidStateError,
    make_cancelled_expected,
    make_error_expected,
    make_ready_expected,
)
from expectedfutures.future import (
    ExpectedFuture,
    ExpectedPromise,
    make_error_future,
    make_ready_future,
    make_ready_future_from_expected,
)
from expectedfutures.options import FutureOptions
from expectedfutures.tasks import execution_details, schedule_initial

ERROR_CONTEXT = 0xBAADF00D
ERROR_CODE = 0xDEADBEEF
TIMEOUT = 5.0


def start(func, options=None):
    promise = ExpectedPromise(execution_details(options))
    schedule_initial(func, promise, options)
    return promise.get_future()


def resolve(future):
    assert future.wait(TIMEOUT)
    return future.get()


def async_add_ten(value):
    return start(lambda: str(value + 10))


def test_can_run_future():
    future = make_ready_future()
    assert future.is_ready()

    def check(expected: Expected) -> bool:
        return expected.is_completed()

    assert resolve(future.then(check)).value is True


def test_will_run_future_on_then():
    result = resolve(start(lambda: 10).then(lambda value: value))
    assert result.value == 10


def test_can_pass_expected_directly_to_next_step():
    def passthrough(expected: Expected) -> Expected:
        return expected

    result = resolve(start(lambda: 10).then(passthrough))
    assert result.is_completed()
    assert result.value == 10


def test_raw_value_capture():
    assert resolve(make_ready_future(13).then(lambda v: v)).value == 13


def test_raw_value_concatenate_then():
    seen = []

    def first(value):
        seen.append(value)
        return value + 7

    result = resolve(make_ready_future(13).then(first).then(lambda v: v))
    assert seen == [13]
    assert result.value == 20


def test_raw_value_then_void():
    seen = []
    future = make_ready_future(13).then(lambda v: seen.append(v)).then(lambda: "done")
    assert resolve(future).value == "done"
    assert seen == [13]


def test_no_capture_then_capture():
    result = resolve(make_ready_future().then(lambda: 20).then(lambda v: v))
    assert result.value == 20


def test_expected_value_capture():
    def check(expected: Expected[int]) -> int:
        assert expected.is_completed()
        return expected.value

    assert resolve(make_ready_future(13).then(check)).value == 13


def test_expected_value_concatenate():
    def first(result: Expected[int]) -> int:
        return result.value + 7

    def second(result: Expected[int]) -> Expected[int]:
        return result

    result = resolve(make_ready_future(13).then(first).then(second))
    assert result.is_completed()
    assert result.value == 20


def test_expected_then_void_expected():
    seen = []

    def first(result: Expected[int]) -> None:
        seen.append(result.value)

    def second(result: Expected) -> bool:
        return result.is_completed()

    assert resolve(make_ready_future(13).then(first).then(second)).value is True
    assert seen == [13]


def test_can_change_future_captured_type():
    def second(result: Expected[int]) -> Expected[int]:
        return result

    future = make_ready_future().then(lambda: make_ready_expected(10)).then(second)
    result = resolve(future)
    assert result.is_completed()
    assert result.value == 10


def test_async_without_return():
    captured = {"value": 0}

    def body():
        captured["value"] = 23

    future = start(body).then(lambda: captured["value"])
    assert resolve(future).value == 23


def test_async_with_return():
    assert resolve(start(lambda: 5).then(lambda v: v)).value == 5


def test_unwrap_async_inside_then():
    future = make_ready_future().then(lambda: async_add_ten(10)).then(lambda v: v)
    assert resolve(future).value == "20"


def test_unwrap_inside_unwrapped_async():
    future = (
        make_ready_future()
        .then(lambda: start(lambda: make_ready_expected(5)))
        .then(lambda v: v)
    )
    assert resolve(future).value == 5


def test_unwrap_async_inside_async():
    future = start(lambda: async_add_ten(20)).then(lambda v: v)
    assert resolve(future).value == "30"


def test_error_received_in_expected_then():
    future = start(
        lambda: make_error_expected(Error(ERROR_CODE, ERROR_CONTEXT, "Bad times!"))
    )

    def check(expected: Expected) -> Expected:
        return expected

    result = resolve(future.then(check))
    assert result.is_error()
    assert result.error.code == ERROR_CODE
    assert result.error.context == ERROR_CONTEXT
    assert result.error.info == "Bad times!"


def test_value_then_not_called_on_error():
    called = []

    def on_value(value):
        called.append(value)
        return value

    future = start(lambda: make_error_expected(Error(ERROR_CODE, ERROR_CONTEXT)))
    result = resolve(future.then(on_value))
    assert result.is_error()
    assert result.error.code == ERROR_CODE
    assert result.error.context == ERROR_CONTEXT
    assert called == []


def test_error_passed_through_type_change():
    future = start(lambda: make_error_expected(Error(ERROR_CODE, ERROR_CONTEXT)))
    result = resolve(future.then(lambda value: ""))
    assert result.is_error()
    assert result.error == Error(ERROR_CODE, ERROR_CONTEXT)


def test_can_handle_error():
    def handle(expected: Expected[int]) -> str:
        if expected.is_error():
            return expected.error.info
        return ""

    future = start(
        lambda: make_error_expected(Error(ERROR_CODE, ERROR_CONTEXT, "Bad times!"))
    ).then(handle)
    result = resolve(future)
    assert not result.is_error()
    assert result.is_completed()
    assert result.value == "Bad times!"


def test_promise_first_value_wins():
    promise = ExpectedPromise()
    assert not promise.is_set()
    assert promise.set_value(1) is True
    assert promise.set_value(2) is False
    promise.cancel()
    assert promise.is_set()
    assert promise.get_future().get() == make_ready_expected(1)


def test_promise_set_value_with_error():
    promise = ExpectedPromise()
    promise.set_value(Error(7, info="nope"))
    result = promise.get_future().get()
    assert result.is_error()
    assert result.error == Error(7, info="nope")


def test_promise_cancel():
    promise = ExpectedPromise()
    promise.cancel()
    assert promise.get_future().get().is_cancelled()


def test_cancellation_handle_cancels_promise():
    handle = create_cancellation_handle()
    promise = ExpectedPromise()
    handle.add_promise(promise)
    handle.cancel()
    assert promise.get_future().get().is_cancelled()


def test_continuation_runs_after_promise_set_later():
    promise = ExpectedPromise()
    future = promise.get_future().then(lambda v: v * 2)
    assert not future.is_ready()
    promise.set_value(21)
    assert resolve(future).value == 42


def test_pending_future_get_is_incomplete():
    future = ExpectedPromise().get_future()
    assert not future.is_ready()
    assert future.get() == Expected()
    assert future.wait(0.01) is False


def test_invalid_future():
    future = ExpectedFuture()
    assert not future.is_valid()
    assert not future.is_ready()
    assert future.wait(0) is False
    with pytest.raises(InvalidStateError):
        future.get()
    with pytest.raises(InvalidStateError):
        future.then(lambda: None)


def test_make_ready_future_with_expected():
    assert make_ready_future(make_cancelled_expected()).get().is_cancelled()


def test_make_ready_future_from_expected():
    assert make_ready_future_from_expected(make_ready_expected(3)).get().value == 3
    assert make_ready_future_from_expected(make_cancelled_expected()).get().is_cancelled()
    with pytest.raises(TypeError):
        make_ready_future_from_expected(3)


def test_make_error_future():
    future = make_error_future(Error(ERROR_CODE, ERROR_CONTEXT, "Bad times!"))
    assert future.is_ready()
    assert future.get().error.info == "Bad times!"
    assert make_error_future(make_cancelled_expected()).get().is_cancelled()
    with pytest.raises(InvalidStateError):
        make_error_future(make_ready_expected(1))


def test_owner_destroyed_fails_continuation():
    class Owner:
        pass

    owner = Owner()
    promise = ExpectedPromise()
    future = promise.get_future().then(lambda v: v, owner=owner)
    del owner
    gc.collect()
    promise.set_value(1)
    result = resolve(future)
    assert result.is_error()
    assert result.error.code == ERROR_OBJECT_DESTROYED


def test_owner_alive_runs_continuation():
    class Owner:
        pass

    owner = Owner()
    future = make_ready_future(4).then(lambda v: v + 1, owner=owner)
    assert resolve(future).value == 5
    assert owner is not None


def test_cancelled_handle_cancels_continuation():
    handle = create_cancellation_handle()
    handle.cancel()
    called = []
    future = make_ready_future(1).then(
        lambda v: called.append(v), FutureOptions(cancellation_handle=handle)
    )
    assert resolve(future).is_cancelled()
    assert called == []