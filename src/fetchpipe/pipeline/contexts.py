"""Execution contexts the pipeline hops through.

Every context implements ``schedule(work)``: enqueue and return. None of them
runs work on the caller's stack, even when the caller is already executing on
that same context. While a context runs a piece of work, `current_context()`
returns it, so tests and callers can check where code executed.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from contextvars import ContextVar
import logging
import threading

logger = logging.getLogger(__name__)

_current_context_var: ContextVar[object | None] = ContextVar(
    "current_execution_context", default=None
)


def current_context() -> object | None:
    """Return the execution context whose work is running, if any."""
    return _current_context_var.get()


def _run_as(context: object, work: Callable[[], None]) -> None:
    token = _current_context_var.set(context)
    try:
        work()
    finally:
        _current_context_var.reset(token)


class AsyncioContext:
    """Runs work on an asyncio event loop via ``call_soon_threadsafe``.

    Safe to schedule from any thread. When no loop is given, the running
    loop at construction time is used.
    """

    __slots__ = ("__weakref__", "_loop", "name")

    def __init__(
        self, loop: asyncio.AbstractEventLoop | None = None, *, name: str = "asyncio"
    ) -> None:
        """Bind to ``loop`` (or the running loop)."""
        self._loop = loop or asyncio.get_running_loop()
        self.name = name

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The loop work is scheduled on."""
        return self._loop

    def schedule(self, work: Callable[[], None]) -> None:
        """Queue ``work`` for the next loop iteration."""
        self._loop.call_soon_threadsafe(_run_as, self, work)

    def __repr__(self) -> str:
        return f"AsyncioContext(name={self.name!r})"


class ThreadPoolContext:
    """Runs work on a thread pool; serial when ``max_workers`` is 1.

    Exceptions raised by work are logged, since nothing waits on the
    returned futures.
    """

    __slots__ = ("__weakref__", "_executor", "name")

    def __init__(self, max_workers: int = 1, *, name: str = "fetchpipe") -> None:
        """Create the underlying executor."""
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.name = name
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=name
        )

    def schedule(self, work: Callable[[], None]) -> None:
        """Submit ``work`` to the pool."""
        future = self._executor.submit(_run_as, self, work)
        future.add_done_callback(self._report_failure)

    def shutdown(self, *, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for queued work."""
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> ThreadPoolContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _report_failure(self, future: Future[None]) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Work on context '%s' raised: %s", self.name, exc, exc_info=exc
            )

    def __repr__(self) -> str:
        return f"ThreadPoolContext(name={self.name!r})"


class ManualContext:
    """A queue of work drained explicitly by its owner.

    Nothing runs until `run_pending` is called, which makes stage ordering
    fully deterministic. Work scheduled while draining is queued behind the
    current batch and is run by the same call.
    """

    __slots__ = ("__weakref__", "_lock", "_queue", "name", "ran")

    def __init__(self, name: str = "manual") -> None:
        """Create an empty queue."""
        self.name = name
        self._queue: deque[Callable[[], None]] = deque()
        self._lock = threading.Lock()
        self.ran = 0

    @property
    def pending(self) -> int:
        """Number of queued work items."""
        with self._lock:
            return len(self._queue)

    def schedule(self, work: Callable[[], None]) -> None:
        """Append ``work`` to the queue."""
        with self._lock:
            self._queue.append(work)

    def run_next(self) -> bool:
        """Run a single queued item; return False when the queue was empty."""
        with self._lock:
            if not self._queue:
                return False
            work = self._queue.popleft()
        _run_as(self, work)
        with self._lock:
            self.ran += 1
        return True

    def run_pending(self) -> int:
        """Run queued work until the queue is empty; return how many ran."""
        count = 0
        while self.run_next():
            count += 1
        return count

    def __repr__(self) -> str:
        return f"ManualContext(name={self.name!r}, pending={self.pending})"
