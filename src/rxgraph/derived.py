"""Derived expressions — cached values with automatic dependency tracking.

A Derived wraps a function. When evaluated, it tracks which signals and
derived values the function reads and caches the result. When any dependency
changes, the cached value goes stale; on next read, it re-evaluates.

Derived values are lazy — they only recompute when read. An exception raised
by the body (including a guarded-read halt) is cached like a value and
re-raised to every reader until the next successful recompute.

All state lives in the session arena — instances are thin handles holding
a session and an id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

from rxgraph._arena import MISSING, NodeState
from rxgraph._tracking import evaluating, invalidate, mark, refresh, track
from rxgraph.errors import CyclicDependency

if TYPE_CHECKING:
    from rxgraph.session import Session

T = TypeVar("T")


class Derived(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_session", "_id")

    def __init__(self, session: Session, node_id: int) -> None:
        self._session = session
        self._id = node_id

    @property
    def name(self) -> str:
        return self._session._arena.label(self._id)

    @property
    def state(self) -> NodeState:
        return self._session._arena.states[self._id]

    def value(self) -> T:
        """Read the derived value. Recomputes if stale."""
        session = self._session
        session._check_open()
        arena = session._arena
        track(session, self._id)
        self._update()
        poisoned = arena.errors.get(self._id)
        if poisoned is not None:
            error, origin = poisoned
            # every read starts from the body's own traceback
            raise error.with_traceback(origin)
        return arena.values[self._id]

    __call__ = value

    def invalidate(self) -> None:
        """Mark stale by hand; readers are notified as for a dependency write."""
        session = self._session
        session._check_open()
        with session.batch():
            mark(session._arena, self._id, NodeState.DIRTY)

    def _update(self) -> None:
        arena = self._session._arena
        if self._id in arena.evaluating:
            raise CyclicDependency(f"{self.name!r} depends on itself")
        if arena.states[self._id] is NodeState.CHECK:
            refresh(self._session, self._id)
        if arena.states[self._id] in (NodeState.DIRTY, NodeState.UNINITIALIZED):
            self._recompute()

    def _recompute(self) -> None:
        """Re-evaluate the function, tracking dependencies."""
        session = self._session
        arena = session._arena
        fn = arena.fns[self._id]
        was_cyclic = _is_cyclic(arena.errors.get(self._id))
        with evaluating(session, self._id):
            try:
                arena.values[self._id] = fn()
                arena.errors.pop(self._id, None)
            except Exception as exc:
                arena.values[self._id] = MISSING
                arena.errors[self._id] = (exc, exc.__traceback__)
        if arena.states[self._id] is NodeState.DISPOSED:
            return
        arena.states[self._id] = NodeState.CLEAN
        if was_cyclic and _is_cyclic(arena.errors.get(self._id)):
            # members of a cycle would otherwise keep dirtying each other
            return
        # readers were marked CHECK when this went stale; now they are dirty
        invalidate(arena, self._id)

    def dispose(self) -> None:
        """Disconnect from all dependencies and readers."""
        self._session._arena.dispose(self._id)

    def __repr__(self) -> str:
        arena = self._session._arena
        state = arena.states.get(self._id, NodeState.DISPOSED)
        if state is NodeState.CLEAN:
            if self._id in arena.errors:
                shown = f"error={arena.errors[self._id][0]!r}"
            else:
                shown = f"cached={arena.values[self._id]!r}"
        else:
            shown = state.name.lower()
        return f"Derived({self.name!r}, {shown})"


def _is_cyclic(poisoned: tuple[Exception, object] | None) -> bool:
    return poisoned is not None and isinstance(poisoned[0], CyclicDependency)
