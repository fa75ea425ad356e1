"""Options that control where and how a future's function is run."""

from __future__ import annotations

import enum
import logging
import weakref

from expectedfutures.cancellation import CancellationHandle

logger = logging.getLogger("expectedfutures")


class ExecutionPolicy(enum.Enum):
    """Where the function attached to a future is run."""

    #: On whatever thread the future is scheduled from.
    CURRENT = "current"
    #: On the thread the antecedent future ran on; CURRENT when there is none.
    INLINE = "inline"
    #: On a specific named thread.
    NAMED_THREAD = "named_thread"
    #: On the shared worker pool.
    THREAD_POOL = "thread_pool"


class NamedThread(enum.Enum):
    """Threads that work can be explicitly directed to."""

    ANY_THREAD = "any_thread"
    GAME_THREAD = "game_thread"
    RENDERING_THREAD = "rendering_thread"
    RHI_THREAD = "rhi_thread"


class FutureOptions:
    """Immutable scheduling options for a future.

    Giving ``desired_thread`` without an explicit ``execution_policy``
    selects ``ExecutionPolicy.NAMED_THREAD``. A NAMED_THREAD policy without
    a thread falls back to CURRENT and logs an error. The cancellation
    handle is held weakly.
    """

    __slots__ = ("_handle_ref", "_execution_policy", "_desired_thread")

    def __init__(
        self,
        cancellation_handle: CancellationHandle | None = None,
        execution_policy: ExecutionPolicy | None = None,
        desired_thread: NamedThread | None = None,
    ) -> None:
        if desired_thread is not None:
            desired_thread = NamedThread(desired_thread)
        if execution_policy is None:
            execution_policy = (
                ExecutionPolicy.NAMED_THREAD
                if desired_thread is not None
                else ExecutionPolicy.CURRENT
            )
        else:
            execution_policy = ExecutionPolicy(execution_policy)

        if execution_policy is ExecutionPolicy.NAMED_THREAD and desired_thread is None:
            logger.error(
                "NamedThread execution policy specified but no NamedThread specified; "
                "setting execution policy to Current"
            )
            execution_policy = ExecutionPolicy.CURRENT

        self._handle_ref = (
            weakref.ref(cancellation_handle) if cancellation_handle is not None else None
        )
        self._execution_policy = execution_policy
        self._desired_thread = desired_thread

    @property
    def cancellation_handle(self) -> CancellationHandle | None:
        """The handle, or None if none was given or it no longer exists."""
        if self._handle_ref is None:
            return None
        return self._handle_ref()

    @property
    def execution_policy(self) -> ExecutionPolicy:
        return self._execution_policy

    @property
    def desired_thread(self) -> NamedThread | None:
        return self._desired_thread

    def __repr__(self) -> str:
        return (
            f"FutureOptions(cancellation_handle={self.cancellation_handle!r}, "
            f"execution_policy={self._execution_policy}, "
            f"desired_thread={self._desired_thread})"
        )


class FutureOptionsBuilder:
    """Fluent construction of FutureOptions."""

    def __init__(self) -> None:
        self._handle: CancellationHandle | None = None
        self._policy = ExecutionPolicy.CURRENT
        self._thread: NamedThread | None = None

    def set_cancellation_handle(self, handle: CancellationHandle) -> FutureOptionsBuilder:
        self._handle = handle
        return self

    def set_execution_policy(self, policy: ExecutionPolicy) -> FutureOptionsBuilder:
        self._policy = ExecutionPolicy(policy)
        return self

    def set_desired_execution_thread(self, thread: NamedThread) -> FutureOptionsBuilder:
        """Select a named thread; this also selects the NAMED_THREAD policy."""
        self._policy = ExecutionPolicy.NAMED_THREAD
        self._thread = NamedThread(thread)
        return self

    def build(self) -> FutureOptions:
        return FutureOptions(self._handle, self._policy, self._thread)