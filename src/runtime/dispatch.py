"""
UI execution context.

UI-facing state (the tracked region and the overlay) is owned by one thread.
Work produced elsewhere, such as tracking completions computed on the frame
delivery thread, is posted here and executed when the UI loop drains the
queue.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ContextViolation(RuntimeError):
    """UI-owned state was touched from a thread other than the UI thread."""


class UIDispatcher:
    """
    Single-consumer task queue bound to the UI thread.

    The dispatcher binds to the thread that creates it; call
    bind_current_thread() if the UI loop runs elsewhere.
    """

    def __init__(self):
        self._queue: "queue.Queue[tuple[Callable[..., Any], tuple]]" = queue.Queue()
        self._ui_thread: threading.Thread = threading.current_thread()

    def bind_current_thread(self) -> None:
        self._ui_thread = threading.current_thread()

    @property
    def ui_thread(self) -> threading.Thread:
        return self._ui_thread

    def is_ui_thread(self) -> bool:
        return threading.current_thread() is self._ui_thread

    def require_ui_thread(self, what: str = "UI state") -> None:
        if not self.is_ui_thread():
            raise ContextViolation(
                f"{what} must be mutated on {self._ui_thread.name}, "
                f"not {threading.current_thread().name}"
            )

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Schedule fn(*args) on the UI thread. Safe from any thread."""
        self._queue.put((fn, args))

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self, max_items: Optional[int] = None, timeout: Optional[float] = None) -> int:
        """
        Run queued tasks on the calling (UI) thread.

        Args:
            max_items: Stop after this many tasks. None = until the queue is empty.
            timeout: Wait up to this long for the first task when the queue is empty.

        Returns:
            Number of tasks executed.
        """
        self.require_ui_thread("dispatcher queue")
        executed = 0
        block = timeout is not None
        while max_items is None or executed < max_items:
            try:
                fn, args = self._queue.get(block=block, timeout=timeout)
            except queue.Empty:
                break
            block = False
            try:
                fn(*args)
            except ContextViolation:
                raise
            except Exception as e:
                logger.error(f"UI task {getattr(fn, '__name__', fn)} failed: {e}")
            finally:
                executed += 1
        return executed
