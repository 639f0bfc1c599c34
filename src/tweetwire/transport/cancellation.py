"""Cancellation signal shared by blocking and asyncio callers."""
from __future__ import annotations

import threading
from collections.abc import Callable

from tweetwire.core.errors import RequestCancelled


class CancelToken:
    """A one-shot, thread-safe cancellation signal.

    ``cancel()`` may be called from any thread (or from a signal handler of
    an event loop); the callbacks registered by the transport run once, in
    the thread that calls ``cancel()``.
    """

    __slots__ = ("_lock", "_cancelled", "_callbacks")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self._cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Signal cancellation; later calls have no effect."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run *callback* on cancellation and return a function that unregisters it.

        If the token is already cancelled, *callback* runs immediately.
        """
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return _noop

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def raise_if_cancelled(self) -> None:
        """Raise :class:`RequestCancelled` if cancellation was requested."""
        if self._cancelled:
            raise RequestCancelled()


def _noop() -> None:
    return None
