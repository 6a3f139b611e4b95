"""Background execution primitives for the bootstrap actors.

All state of a bootstrap is owned by one logical thread of control.
:class:`SerialExecutor` provides it: a mailbox drained in order by a
single daemon worker thread.  :class:`RepeatingTimer` delivers interval
ticks from its own daemon thread; the bootstrap forwards each tick to
its executor rather than touching state from the timer thread.

Daemon threads never keep the interpreter alive, so a bootstrap that is
the only thing left running does not block process shutdown.

Usage::

    executor = SerialExecutor(name="chat-bootstrap")
    timer = RepeatingTimer(5.0, lambda: executor.submit(poll))
    timer.start()
    ...
    timer.cancel()
    executor.shutdown()
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger()

_SHUTDOWN = object()


class SerialExecutor:
    """Run submitted callables one at a time on a daemon worker thread.

    Exceptions raised by a task are logged and swallowed so one bad
    event cannot kill the worker.
    """

    def __init__(self, name: str = "peerseed-actor") -> None:
        self._name = name
        self._queue: queue.SimpleQueue[Any] = queue.SimpleQueue()
        self._closed = False
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, daemon=True, name=name)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def in_worker(self) -> bool:
        """Return ``True`` when called from the worker thread itself."""
        return threading.current_thread() is self._thread

    def submit(self, fn: Callable[..., object], *args: object) -> bool:
        """Queue ``fn(*args)``.  Returns ``False`` once shut down."""
        with self._lock:
            if self._closed:
                return False
            self._queue.put((fn, args))
        return True

    def shutdown(self, timeout: float = 2.0) -> None:
        """Stop accepting work and wait for queued tasks to drain.

        Safe to call from a task running on the worker; in that case
        the worker exits after the current task without a join.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_SHUTDOWN)
        if not self.in_worker() and self._thread.is_alive():
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _SHUTDOWN:
                break
            fn, args = item
            try:
                fn(*args)
            except Exception:
                logger.exception("executor_task_failed", executor=self._name)


class InlineExecutor:
    """Run submitted callables immediately on the caller's thread.

    For single-threaded hosts and tests: the caller is the actor.
    """

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def in_worker(self) -> bool:
        return True

    def submit(self, fn: Callable[..., object], *args: object) -> bool:
        if self._closed:
            return False
        fn(*args)
        return True

    def shutdown(self, timeout: float = 2.0) -> None:
        self._closed = True


class RepeatingTimer:
    """Call *callback* every *interval* seconds on a daemon thread.

    The first call happens one interval after :meth:`start`.  Cancelling
    is idempotent and takes effect immediately: no tick fires after
    :meth:`cancel` returns, except one already executing.
    """

    def __init__(
        self,
        interval: float,
        callback: Callable[[], object],
        name: str = "peerseed-timer",
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._interval = interval
        self._callback = callback
        self._name = name
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def active(self) -> bool:
        return self._thread is not None and not self._cancelled.is_set()

    def start(self) -> None:
        if self._thread is not None or self._cancelled.is_set():
            return
        self._thread = threading.Thread(target=self._run, daemon=True, name=self._name)
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    def _run(self) -> None:
        # Event.wait returns True as soon as cancel() is called
        while not self._cancelled.wait(self._interval):
            try:
                self._callback()
            except Exception:
                logger.exception("timer_callback_failed", timer=self._name)


def start_timer(interval: float, callback: Callable[[], object]) -> RepeatingTimer:
    """Create and start a :class:`RepeatingTimer`."""
    timer = RepeatingTimer(interval, callback)
    timer.start()
    return timer
