# expectedfutures

Chainable, thread-based futures whose results are never bare values or raised
exceptions, but an `Expected` (from `expectedfutures.expected`): a result that
is **completed** with a value, an **error** carrying an `Error`, **cancelled**,
or still **incomplete**.

## Installing

```
pip install expectedfutures
```

## Results

`Expected` has `is_completed()`, `is_error()`, `is_cancelled()` and a `state`
(an `ExpectedState`). `value` and `error` raise `InvalidStateError` when the
result is not in the matching state. Build results with
`make_ready_expected(value)`, `make_error_expected(error)` and
`make_cancelled_expected()`, or `Expected.ready`, `Expected.failure` and
`Expected.cancelled`.

`convert(other, value)` carries the state of one result over to a new one,
substituting `value` if it completed; `convert_incomplete(other)` does the same
for results that did not complete, and raises `InvalidStateError` for a
completed one.

`Error` (in `expectedfutures.error`) is a frozen dataclass with `code`,
`context` (default `0`) and `info` (default `None`). The module also defines
`ERROR_INVALID_ARGUMENT` and `ERROR_OBJECT_DESTROYED`.

## Chaining continuations

Continuations are attached with `ExpectedFuture.then(func, options=None, owner=None)`.
What a continuation receives depends on its signature:

* a function whose first parameter is annotated as `Expected` is always called
  with the previous result, whatever its state;
* a function taking one other parameter receives the plain value, and is only
  called when the previous step completed; errors and cancellations pass
  straight through to the next step;
* a function taking no arguments is also only called on completion.

A function needing more than one argument is rejected with `TypeError`.
A continuation may return a plain value (a function returning nothing gives a
completed result holding `None`), an `Expected`, an `Error`-free value of any
kind, or another future; returned futures are unwrapped, so chains stay flat.
If a function raises, the exception is logged and its promise is cancelled.

```python
from expectedfutures.combinators import run_async
from expectedfutures.expected import Expected

def report(result: Expected) -> None:
    if result.is_completed():
        print("total:", result.value)
    elif result.is_error():
        print("failed:", result.error.info)
    else:
        print("cancelled")

(
    run_async(lambda: 13)
    .then(lambda value: value + 7)
    .then(report)
    .wait()
)
```

`ExpectedFuture` also offers `is_ready()`, `is_valid()`, `get()` (the current
result, incomplete if not ready) and `wait(timeout=None)`, which blocks and
returns whether the future is ready.

With an `owner`, the owner is held weakly; if it no longer exists when the
continuation is due to run, the resulting future fails with
`ERROR_OBJECT_DESTROYED` instead.

## Errors

```python
from expectedfutures.combinators import run_async
from expectedfutures.error import Error
from expectedfutures.expected import make_error_expected

future = (
    run_async(lambda: make_error_expected(Error(42, info="Bad times!")))
    .then(lambda value: value * 2)          # skipped: previous step failed
)
future.wait()
assert future.get().is_error()
assert future.get().error.info == "Bad times!"
```

## Promises

`ExpectedPromise` (in `expectedfutures.future`) is the writing end of a
future. `set_value` takes an `Expected` as is, turns an `Error` into a failed
result and any other value into a completed one. The first value set wins;
later calls are ignored and return `False`.

```python
from expectedfutures.future import ExpectedPromise

promise = ExpectedPromise()
future = promise.get_future()
promise.set_value(5)
promise.set_value(6)        # ignored
assert future.get().value == 5
```

`make_ready_future(value)`, `make_ready_future_from_expected(expected)` and
`make_error_future(error)` build futures that are already resolved.

## Cancellation

A `CancellationHandle` (from `create_cancellation_handle()` in
`expectedfutures.cancellation`) cancels every pending promise registered with
it; promises registered after it was cancelled are cancelled at once. It holds
promises weakly, and `FutureOptions` holds the handle weakly, so keep a
reference to the handle yourself. Cancellation is best effort: a step that has
already produced its value keeps it.

```python
from expectedfutures.cancellation import create_cancellation_handle
from expectedfutures.combinators import run_async
from expectedfutures.options import FutureOptions

handle = create_cancellation_handle()
handle.cancel()
future = run_async(lambda: 5, FutureOptions(cancellation_handle=handle))
future.wait()
assert future.get().is_cancelled()
```

## Where work runs

`FutureOptions(cancellation_handle, execution_policy, desired_thread)` and
`FutureOptionsBuilder` (in `expectedfutures.options`) choose an
`ExecutionPolicy`:

* `CURRENT` – target the named thread of the caller, or a shared task worker if
  the caller is not on a named thread;
* `INLINE` – run where the previous step was directed; with no previous step
  this is `CURRENT`;
* `NAMED_THREAD` – run on a given `NamedThread` (`GAME_THREAD`,
  `RENDERING_THREAD`, `RHI_THREAD`, or `ANY_THREAD`), each served by its own
  dedicated thread;
* `THREAD_POOL` – run on a separate worker pool.

Giving a `desired_thread` selects `NAMED_THREAD`; asking for `NAMED_THREAD`
without a thread logs an error and falls back to `CURRENT`.
`expectedfutures.tasks.current_named_thread()` tells a function which named
thread it is running on.

```python
from expectedfutures.options import ExecutionPolicy, FutureOptionsBuilder, NamedThread

pool = FutureOptionsBuilder().set_execution_policy(ExecutionPolicy.THREAD_POOL).build()
game = FutureOptionsBuilder().set_desired_execution_thread(NamedThread.GAME_THREAD).build()
```

## Combining futures

The `expectedfutures.combinators` module provides:

* `run_async(func, options=None)` – run a function that takes no arguments and
  return a future of its result;
* `when_all(futures, fail_mode=FailMode.FULL)` – resolves to the list of
  values, in the order the inputs complete, or to the first failure or
  cancellation. With `FailMode.FULL` it waits for every input first; with
  `FailMode.FAST` it resolves as soon as one fails. No inputs give a ready
  empty list;
* `when_any(futures)` – resolves with whichever input finishes first; no inputs
  give a future failed with `ERROR_INVALID_ARGUMENT`;
* `wait_async(delay)` – completes, without a value, after `delay` seconds.

```python
from expectedfutures.combinators import when_all
from expectedfutures.future import make_ready_future

total = when_all([make_ready_future(1), make_ready_future(2), make_ready_future(4)]).then(sum)
total.wait()
assert total.get().value == 7
```

## What it does not do

This is a library only: it has no command-line tool, does not integrate with
`asyncio` event loops, and its worker threads are daemon threads that are not
shut down explicitly.

## Running the tests

```
pip install -e ".[test]"
pytest
```