"""Where: src/qacbatch/shared/cancellation.py
What: Thread-safe cancellation token passed through every blocking call.
Why: Let callers stop long waits deterministically instead of unwinding via exceptions.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Final


def _noop() -> None:
    return None


class OperationCancelledError(Exception):
    """Raised when a blocking call observes a cancelled token."""


class CancellationToken:
    """One-shot cancellation flag with wait support and linked children.

    A token created with ``parent`` is cancelled whenever the parent is, but
    cancelling the child never touches the parent. A cancelled or detached
    child no longer holds a callback on its parent.
    """

    def __init__(self, parent: CancellationToken | None = None) -> None:
        self._event: Final[threading.Event] = threading.Event()
        self._lock: Final[threading.Lock] = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._unlink: Callable[[], None] = _noop
        if parent is not None:
            self._unlink = parent.register(self.cancel)

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel the token and run registered callbacks once."""

        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        self.detach()
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` on cancellation; returns an unregister function.

        Registering on an already-cancelled token runs the callback immediately.
        """

        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)

                def _unregister() -> None:
                    with self._lock:
                        if callback in self._callbacks:
                            self._callbacks.remove(callback)

                return _unregister
        callback()
        return _noop

    def wait(self, timeout: float | None = None) -> bool:
        """Block up to ``timeout`` seconds; True when cancelled."""

        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation cancelled")

    def linked(self) -> CancellationToken:
        """Return a child token cancelled together with this one."""

        return CancellationToken(parent=self)

    def detach(self) -> None:
        """Stop following the parent token, if any."""

        unlink, self._unlink = self._unlink, _noop
        unlink()


__all__ = ["CancellationToken", "OperationCancelledError"]
