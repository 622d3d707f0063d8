"""Dependency tracking engine — the heart of rxgraph.

Uses a contextvar to hold the frame of the currently-evaluating derived
expression or effect. Every read of a signal or derived value inside that
frame is recorded; when the frame closes the consumer's edge set is replaced
wholesale, so branches not taken this run stop being tracked.

Invalidation is lazy through derived expressions: a signal write dirties its
direct readers, while readers further downstream are only marked CHECK until
the dirty derived actually recomputes.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from rxgraph._arena import Arena, NodeKind, NodeState
from rxgraph.errors import CrossSessionAccess, OutOfContextAccess

if TYPE_CHECKING:
    from rxgraph.session import Session


class Frame:
    """One level of the evaluation stack.

    ``consumer`` is None for an isolated (untracked) frame; ``session`` is
    None for an isolated frame opened outside any session.
    """

    __slots__ = ("session", "consumer", "reads")

    def __init__(self, session: Session | None, consumer: int | None) -> None:
        self.session = session
        self.consumer = consumer
        self.reads: dict[int, None] = {}  # ordered set


current_frame: contextvars.ContextVar[Frame | None] = contextvars.ContextVar(
    "rxgraph_current_frame", default=None
)


def track(session: Session, node_id: int) -> None:
    """Register a read of node_id with the current frame."""
    frame = current_frame.get()
    if frame is None:
        raise OutOfContextAccess(
            f"{session._arena.label(node_id)!r} was read outside a reactive context"
        )
    if frame.session is not None and frame.session is not session:
        raise CrossSessionAccess(
            f"{session._arena.label(node_id)!r} belongs to {session.name!r}, "
            f"not {frame.session.name!r}"
        )
    if frame.consumer is not None:
        frame.reads[node_id] = None


@contextmanager
def evaluating(session: Session, consumer: int) -> Iterator[Frame]:
    """Evaluate consumer under a fresh frame, committing its edges on exit.

    Edges are committed even when the body raises or halts, so a computation
    stopped by a guarded read still wakes up when the missing value arrives.
    """
    arena = session._arena
    arena.unsubscribe(consumer)
    frame = Frame(session, consumer)
    arena.evaluating.add(consumer)
    token = current_frame.set(frame)
    try:
        yield frame
    finally:
        current_frame.reset(token)
        arena.evaluating.discard(consumer)
        if arena.states.get(consumer) is not NodeState.DISPOSED:
            arena.subscribe(consumer, tuple(frame.reads))


@contextmanager
def isolated(session: Session | None = None) -> Iterator[None]:
    """Read reactive values without subscribing to them."""
    if session is None:
        outer = current_frame.get()
        session = outer.session if outer is not None else None
    token = current_frame.set(Frame(session, None))
    try:
        yield
    finally:
        current_frame.reset(token)


def mark(arena: Arena, node_id: int, state: NodeState) -> None:
    """Raise node_id to at least ``state`` (CHECK or DIRTY).

    Effects join the pending set the first time they go stale. A derived
    going stale passes CHECK, never DIRTY, on to its own readers.
    """
    current = arena.states.get(node_id)
    if current is None or current > NodeState.DIRTY or current >= state:
        return
    arena.states[node_id] = state
    if current is not NodeState.CLEAN:
        return
    if arena.kinds[node_id] is NodeKind.EFFECT:
        arena.pending.add(node_id)
    else:
        for observer in sorted(arena.observers[node_id]):
            mark(arena, observer, NodeState.CHECK)


def invalidate(arena: Arena, producer: int) -> None:
    """A producer changed: its direct readers are dirty."""
    for observer in sorted(arena.observers.get(producer, ())):
        mark(arena, observer, NodeState.DIRTY)


def refresh(session: Session, node_id: int) -> None:
    """Settle a CHECK node into DIRTY or CLEAN by pulling its derived producers."""
    arena = session._arena
    if arena.states.get(node_id) is not NodeState.CHECK:
        return
    # a producer reaching back to node_id while it settles is a cycle
    arena.evaluating.add(node_id)
    try:
        for producer in arena.dependencies.get(node_id, ()):
            if arena.kinds[producer] is NodeKind.DERIVED:
                session._derived(producer)._update()
            if arena.states[node_id] is not NodeState.CHECK:
                return
    finally:
        arena.evaluating.discard(node_id)
    arena.states[node_id] = NodeState.CLEAN

