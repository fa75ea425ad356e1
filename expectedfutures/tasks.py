"""Scheduling and running the functions attached to futures and promises.

Promises handed to this module are expected to be ``CancellablePromise``
objects with ``set_value(expected)`` and ``is_set()``. Previous futures are
expected to provide ``get()``, ``is_ready()``, ``wait()``, an
``execution_details`` attribute and ``_add_done_callback(callback)``,
which calls ``callback()`` once the future is resolved (at once if it
already is).
"""

from __future__ import annotations

import logging
import queue
import threading
import weakref
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable

from expectedfutures.cancellation import (
    CancellablePromise,
    CancellationHandle,
    create_cancellation_handle,
)
from expectedfutures.error import ERROR_OBJECT_DESTROYED, Error
from expectedfutures.expected import (
    Expected,
    InvalidStateError,
    convert_incomplete,
    make_ready_expected,
)
from expectedfutures.options import ExecutionPolicy, FutureOptions, NamedThread
from expectedfutures.signatures import (
    ParamKind,
    is_future_like,
    param_kind,
    validate_initial,
)

logger = logging.getLogger("expectedfutures")

_local = threading.local()


@dataclass(frozen=True)
class ExecutionDetails:
    """The policy a future's function runs under and the thread it targets."""

    policy: ExecutionPolicy = ExecutionPolicy.CURRENT
    thread: NamedThread = NamedThread.ANY_THREAD


def current_named_thread() -> NamedThread:
    """The named thread the caller runs on, or ANY_THREAD if it has none."""
    return getattr(_local, "named_thread", NamedThread.ANY_THREAD)


def execution_details(
    options: FutureOptions | None = None, antecedent: Any = None
) -> ExecutionDetails:
    """Resolve options into concrete execution details.

    With the INLINE policy and an antecedent future, the antecedent's
    details are reused; without an antecedent INLINE behaves as CURRENT.
    """
    if options is None:
        options = FutureOptions()
    policy = options.execution_policy
    if policy is ExecutionPolicy.INLINE and antecedent is not None:
        return antecedent.execution_details
    if policy is ExecutionPolicy.THREAD_POOL:
        return ExecutionDetails(ExecutionPolicy.THREAD_POOL, NamedThread.ANY_THREAD)
    if policy is ExecutionPolicy.NAMED_THREAD and options.desired_thread is not None:
        return ExecutionDetails(ExecutionPolicy.NAMED_THREAD, options.desired_thread)
    return ExecutionDetails(ExecutionPolicy.CURRENT, current_named_thread())


def try_add_promise_to_cancellation_handle(
    handle: CancellationHandle | None, promise: CancellablePromise
) -> None:
    """Register ``promise`` with ``handle`` if there is a handle."""
    if handle is not None:
        handle.add_promise(promise)


def _resolve(result: Any, promise: Any) -> None:
    if is_future_like(result):

        def _forward(expected: Expected) -> None:
            promise.set_value(expected)

        result.then(_forward)
    elif isinstance(result, Expected):
        promise.set_value(result)
    else:
        promise.set_value(make_ready_expected(result))


def execute_initial(func: Callable[[], Any], promise: Any) -> None:
    """Call an initial function and resolve ``promise`` with what it gives.

    A returned future is unwrapped, a returned Expected is used as is and
    any other value (None included) becomes a completed result.
    """
    validate_initial(func)
    _resolve(func(), promise)


def execute_continuation(func: Callable[..., Any], previous: Any, promise: Any) -> None:
    """Call a continuation on a resolved previous future.

    Continuations taking an Expected always run; those taking a plain
    value or nothing run only if the previous result completed, otherwise
    its cancelled or failed state is carried over to ``promise``.
    """
    if not previous.is_ready():
        raise InvalidStateError("continuation executed before the previous future was ready")
    kind = param_kind(func)
    prev_expected = previous.get()
    if kind is ParamKind.EXPECTED:
        _resolve(func(prev_expected), promise)
    elif prev_expected.is_completed():
        result = func(prev_expected.value) if kind is ParamKind.VALUE else func()
        _resolve(result, promise)
    else:
        promise.set_value(convert_incomplete(prev_expected))


class _NamedThreadWorker:
    """A dedicated thread that runs jobs queued for one named thread."""

    def __init__(self, named: NamedThread) -> None:
        self._named = named
        self._jobs: queue.SimpleQueue[Callable[[], None]] = queue.SimpleQueue()
        self._thread = threading.Thread(
            target=self._run, name=f"expectedfutures-{named.value}", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        _local.named_thread = self._named
        while True:
            job = self._jobs.get()
            try:
                job()
            except Exception:
                logger.exception("unhandled error on %s", self._named.value)

    def submit(self, job: Callable[[], None]) -> None:
        self._jobs.put(job)


class _Scheduler:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._named: dict[NamedThread, _NamedThreadWorker] = {}
        self._workers: ThreadPoolExecutor | None = None
        self._pool: ThreadPoolExecutor | None = None

    def _worker_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._workers is None:
                self._workers = ThreadPoolExecutor(thread_name_prefix="expectedfutures-task")
            return self._workers

    def _pool_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(thread_name_prefix="expectedfutures-pool")
            return self._pool

    def _named_worker(self, named: NamedThread) -> _NamedThreadWorker:
        with self._lock:
            worker = self._named.get(named)
            if worker is None:
                worker = self._named[named] = _NamedThreadWorker(named)
            return worker

    def dispatch(self, details: ExecutionDetails, job: Callable[[], None]) -> None:
        """Queue ``job``; raises RuntimeError if it can no longer be queued."""
        if details.policy is ExecutionPolicy.THREAD_POOL:
            self._pool_executor().submit(job)
        elif details.thread is NamedThread.ANY_THREAD:
            self._worker_executor().submit(job)
        else:
            self._named_worker(details.thread).submit(job)


_scheduler = _Scheduler()


def _guarded(promise: Any, job: Callable[[], None]) -> Callable[[], None]:
    def run() -> None:
        try:
            job()
        except Exception:
            # An abandoned promise resolves as cancelled.
            logger.exception("future function raised; cancelling its promise")
            promise.cancel()

    return run


def _work_handle(
    details: ExecutionDetails, options: FutureOptions
) -> CancellationHandle | None:
    handle = options.cancellation_handle
    if handle is None and details.policy is ExecutionPolicy.THREAD_POOL:
        # Pool work can be abandoned, which is treated as cancellation.
        handle = create_cancellation_handle()
    return handle


def _dispatch(
    details: ExecutionDetails,
    job: Callable[[], None],
    promise: Any,
    handle: CancellationHandle | None,
) -> None:
    try:
        _scheduler.dispatch(details, job)
    except RuntimeError:
        logger.error("work could not be scheduled; cancelling it")
        if handle is not None:
            handle.cancel()
        promise.cancel()


def schedule_initial(
    func: Callable[[], Any], promise: Any, options: FutureOptions | None = None
) -> None:
    """Queue an initial function to resolve ``promise`` as ``options`` direct."""
    if options is None:
        options = FutureOptions()
    validate_initial(func)
    details = execution_details(options)
    handle = _work_handle(details, options)
    try_add_promise_to_cancellation_handle(handle, promise)

    def run() -> None:
        _keep_alive = handle  # noqa: F841
        if not promise.is_set():
            execute_initial(func, promise)

    _dispatch(details, _guarded(promise, run), promise, handle)


def schedule_continuation(
    func: Callable[..., Any],
    previous: Any,
    promise: Any,
    options: FutureOptions | None = None,
    owner: object | None = None,
) -> None:
    """Queue a continuation to run once ``previous`` is resolved.

    If ``owner`` is given it is held weakly; should it be gone by the time
    the continuation runs, ``promise`` fails with ERROR_OBJECT_DESTROYED.
    """
    if options is None:
        options = FutureOptions()
    param_kind(func)
    monitor = weakref.ref(owner) if owner is not None else None
    details = execution_details(options, previous)
    handle = _work_handle(details, options)
    try_add_promise_to_cancellation_handle(handle, promise)
    on_pool = details.policy is ExecutionPolicy.THREAD_POOL

    def run() -> None:
        _keep_alive = handle  # noqa: F841
        if promise.is_set():
            return
        if on_pool:
            previous.wait()
            if promise.is_set():
                return
        pinned = monitor() if monitor is not None else True
        if pinned is None:
            promise.set_value(
                Expected.failure(
                    Error(
                        ERROR_OBJECT_DESTROYED,
                        info="Lifetime Monitor Object could not be pinned",
                    )
                )
            )
            return
        execute_continuation(func, previous, promise)

    job = _guarded(promise, run)
    if on_pool:
        _dispatch(details, job, promise, handle)
    else:
        previous._add_done_callback(lambda: _dispatch(details, job, promise, handle))