"""Textual render target for rxgraph. Opt-in — requires textual.

Output slot names are widget ids: ``write("total", payload)`` calls
``app.query_one("#total").update(payload.value)``. Guard, NoMatches and
thread marshaling are all handled here, never at callsites.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from rxgraph.targets import Rendered

logger = logging.getLogger("rxgraph.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend widget updates during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


class TextualTarget:
    """Render target that pushes output payloads into Textual widgets.

    Create it on the app's thread; updates from other threads go through
    ``app.call_from_thread``.
    """

    def __init__(self, app, *, empty: object = "") -> None:
        self._app = app
        self._empty = empty
        self._main = threading.get_ident()

    def write(self, name: str, payload: Rendered) -> None:
        self._dispatch(name, payload.value)

    def clear(self, name: str) -> None:
        self._dispatch(name, self._empty)

    def _dispatch(self, name: str, value: object) -> None:
        if not is_safe(self._app):
            return
        if threading.get_ident() != self._main:
            self._app.call_from_thread(self._update, name, value)
        else:
            self._update(name, value)

    def _update(self, name: str, value: object) -> None:
        try:
            widget = self._app.query_one(f"#{name}")
        except NoMatches:
            logger.debug("No widget for output %r", name)
            return
        widget.update(value)
