"""Best-effort cancellation of pending promises."""

from __future__ import annotations

import abc
import threading
import weakref


class CancellablePromise(abc.ABC):
    """Something that can be resolved as cancelled by a CancellationHandle."""

    @abc.abstractmethod
    def cancel(self) -> None:
        """Resolve as cancelled, if not already resolved."""


class CancellationHandle:
    """Cancels every promise registered with it.

    Promises are held weakly, so registering a promise does not keep it
    alive. Promises added after cancellation are cancelled at once.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._promises: list[weakref.ref[CancellablePromise]] = []
        self._cancelled = False

    @property
    def is_cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def add_promise(self, promise: CancellablePromise) -> None:
        with self._lock:
            if self._cancelled:
                promise.cancel()
            else:
                self._promises.append(weakref.ref(promise))

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            pending, self._promises = self._promises, []
            for ref in pending:
                promise = ref()
                if promise is not None:
                    promise.cancel()


def create_cancellation_handle() -> CancellationHandle:
    return CancellationHandle()