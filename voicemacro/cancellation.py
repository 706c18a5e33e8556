"""Cooperative cancellation shared between callers, the audio thread and asyncio."""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, List, Optional, TypeVar

from .errors import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """Thread-safe cancel flag checked at loop granularity.

    The same token is handed to the capture loop (which runs on a worker
    thread) and to asyncio code, so it is backed by a ``threading.Event``
    rather than an ``asyncio.Event``.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Safe to call more than once."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in cancellation callback: {e}")

    def register(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` on cancellation, immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError("Operation cancelled")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or ``timeout`` elapses."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"


async def run_cancellable(awaitable: Awaitable[T], token: Optional[CancellationToken],
                          poll_interval: float = 0.05) -> T:
    """Await ``awaitable`` but abort it as soon as ``token`` is cancelled.

    Raises:
        OperationCancelledError: if the token fired before completion
    """
    if token is None:
        return await awaitable

    token.raise_if_cancelled()
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if token.is_cancelled:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                raise OperationCancelledError("Operation cancelled")
    finally:
        if not task.done():
            task.cancel()
