"""watch() — run blocking I/O in a managed daemon thread.

Nothing blocks inside the reactive graph: file reads, downloads and other
slow work happen here, and results enter the graph through ``Session.set``.
Bind the session's scheduler first (``session.bind_scheduler``) so those
writes are marshaled back onto the session's thread.
"""

from __future__ import annotations

import logging
from threading import Thread
from typing import Callable

logger = logging.getLogger("rxgraph.watch")


class WatchHandle:
    """Disposable handle for a managed daemon thread."""

    __slots__ = ("_disposed", "_thread")

    def __init__(self) -> None:
        self._disposed = False
        self._thread: Thread | None = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Signal the thread to stop. Check .disposed in your loop."""
        self._disposed = True

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)


def watch(fn: Callable[[WatchHandle], None], *, name: str | None = None) -> WatchHandle:
    """Run fn(handle) in a daemon thread. Returns the handle.

    Exceptions are logged, not raised; the thread just ends.

    Usage:
        session.bind_scheduler(loop_call_soon)

        def load(handle):
            rows = read_csv(path)
            if not handle.disposed:
                session.set("dataset", rows)

        handle = watch(load)
    """
    handle = WatchHandle()

    def _target() -> None:
        try:
            fn(handle)
        except Exception:
            logger.exception("Watched function %r failed", getattr(fn, "__name__", fn))

    handle._thread = Thread(target=_target, name=name, daemon=True)
    handle._thread.start()
    return handle
