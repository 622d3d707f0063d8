"""Effects — side effects triggered by reactive state changes.

Unlike Derived (which is lazy and only evaluates on read), an Effect eagerly
re-runs at the end of every invalidation pass in which something it read
changed. It keeps no value.

Three flavors, all the same node kind underneath:
- plain effects: run a body, re-run when anything it read changes.
- output effects: the body's return value is written to a named slot of the
  session's render target.
- event-gated effects: only a designated trigger is tracked; the body runs
  isolated, so other reads never cause a re-run.

All state lives in the session arena — instances are thin handles holding
a session and an id.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from rxgraph._arena import MISSING, NodeState
from rxgraph._tracking import evaluating, isolated, refresh
from rxgraph.errors import CyclicDependency, MissingValue, SilentException
from rxgraph.targets import Rendered

if TYPE_CHECKING:
    from rxgraph.session import Session

logger = logging.getLogger("rxgraph.effect")


class Effect:
    """A reactive side effect that re-runs when its dependencies change."""

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

    @property
    def disposed(self) -> bool:
        return self.state is NodeState.DISPOSED

    def _run(self) -> bool:
        """Re-evaluate if stale. Returns whether the body ran."""
        session = self._session
        arena = session._arena
        if arena.states[self._id] is NodeState.CHECK:
            try:
                refresh(session, self._id)
            except CyclicDependency:
                # let the body hit the cycle and report it like any failure
                arena.states[self._id] = NodeState.DIRTY
        if arena.states[self._id] not in (NodeState.DIRTY, NodeState.UNINITIALIZED):
            return False

        arena.states[self._id] = NodeState.CLEAN
        fn = arena.fns[self._id]
        with evaluating(session, self._id):
            try:
                fn()
            except SilentException:
                logger.debug("Effect %r halted", self.name)
            except Exception:
                # stays registered; the next triggering write retries it
                if session.config.log_effect_errors:
                    logger.exception("Effect %r failed in session %r", self.name, session.name)
        return True

    def dispose(self) -> None:
        """Stop this effect. Disconnects from all dependencies."""
        self._session._arena.dispose(self._id)

    def __repr__(self) -> str:
        state = self._session._arena.states.get(self._id, NodeState.DISPOSED)
        return f"Effect({self.name!r}, {state.name.lower()})"


def render_output(session: Session, name: str, kind: str, body: Callable[[], object]) -> Callable[[], None]:
    """Wrap body so its result lands in the render target slot ``name``.

    A failing body clears the slot; a halted body leaves it untouched.
    """

    def _render() -> None:
        try:
            payload = body()
        except SilentException:
            raise
        except Exception:
            session.target.clear(name)
            raise
        session.target.write(name, Rendered(kind, payload))

    _render.__name__ = f"output_{name}"
    return _render


def trigger_reader(session: Session, trigger) -> Callable[[], object]:
    """Normalize a trigger (name, Signal, Derived or callable) into a reader."""
    if isinstance(trigger, str):
        return session.inputs.signal(trigger).get
    if callable(trigger):
        return trigger
    raise TypeError(f"Cannot use {trigger!r} as an event trigger")


def gate(
    read_trigger: Callable[[], object],
    body: Callable[[], object],
    *,
    ignore_init: bool = False,
    ignore_none: bool = True,
) -> Callable[[], object]:
    """Track only read_trigger; run body isolated from its own reads.

    Skipped runs halt like a failed guarded read, so gated derived values
    leave their readers halted too.
    """
    first = True

    def _gated():
        nonlocal first
        value = read_trigger()
        skip = first and ignore_init
        first = False
        if skip or (ignore_none and (value is None or value is MISSING)):
            raise MissingValue()
        with isolated():
            return body()

    _gated.__name__ = getattr(body, "__name__", "gated")
    return _gated
