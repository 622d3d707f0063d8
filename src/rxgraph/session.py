"""Session — one user's signal store and reactive graph.

A Session owns an arena of nodes, the input SignalStore, the output bindings
and the effect scheduler. Sessions share nothing; any number may live side by
side, one per connected client.

Every external event (a single ``set``, ``apply`` of several inputs, or any
``with session.batch()`` block) applies all its writes first and then flushes:
each pending effect runs once, in registration order.

Thread safety: call ``bind_scheduler()`` once from the session's own thread.
After that, any ``set`` from another thread is marshaled through the
scheduler; same-thread writes stay synchronous.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import Counter
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from rxgraph._arena import MISSING, Arena, NodeKind, NodeState
from rxgraph._tracking import invalidate, isolated
from rxgraph.config import SessionConfig
from rxgraph.derived import Derived
from rxgraph.effect import Effect, gate, render_output, trigger_reader
from rxgraph.errors import ReactiveError, SessionClosed
from rxgraph.signal import Signal, SignalStore
from rxgraph.targets import NullTarget, RenderTarget

T = TypeVar("T")

logger = logging.getLogger("rxgraph.session")

_session_ids = itertools.count(1)


class Session:
    """Top-level reactive scope for one user."""

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        target: RenderTarget | None = None,
        name: str | None = None,
    ) -> None:
        self.config = config or SessionConfig()
        self.name = name or f"session-{next(_session_ids)}"
        self.target: RenderTarget = target if target is not None else NullTarget()
        self._arena = Arena()
        self.inputs = SignalStore(self)
        self._outputs: dict[str, Effect] = {}
        self._batch_depth = 0
        self._flushing = False
        self._closed = False
        self._scheduler: Callable[[Callable[[], None]], None] | None = None
        self._scheduler_thread: threading.Thread | None = None
        logger.debug("Opened %s", self.name)

    # ─── Inputs ──────────────────────────────────────────────────────────────

    def signal(
        self,
        name: str,
        initial: object = MISSING,
        *,
        equals: Callable[[object, object], bool] | None = None,
    ) -> Signal:
        return self.inputs.signal(name, initial, equals=equals)

    def get(self, name: str) -> object:
        return self.inputs.get(name)

    def set(self, name: str, value: object) -> None:
        self.inputs.set(name, value)

    def apply(self, values: dict[str, object]) -> None:
        """Apply one external event's ``(name, value)`` pairs."""
        self.inputs.update(values)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group writes into one event. Nested batches flush once, at the end.

        Usage:
            with session.batch():
                session.set("x", 1)
                session.set("y", 2)
                # effects reading both run here, once
        """
        self._check_open()
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and not self._flushing and not self._closed:
                self._flush()

    @contextmanager
    def isolate(self) -> Iterator[None]:
        """Read this session's values without subscribing to them."""
        self._check_open()
        with isolated(self):
            yield

    def bind_scheduler(self, scheduler: Callable[[Callable[[], None]], None]) -> None:
        """Marshal writes from other threads through scheduler.

        Call once from the session's thread:
            session.bind_scheduler(app.call_from_thread)
        """
        self._scheduler = scheduler
        self._scheduler_thread = threading.current_thread()

    def _write(self, node_id: int, value: object) -> None:
        self._check_open()
        if self._scheduler is not None and threading.current_thread() is not self._scheduler_thread:
            self._scheduler(lambda v=value: self._write(node_id, v))
            return
        arena = self._arena
        old = arena.values[node_id]
        equals = arena.equals.get(node_id, self.config.equals)
        if old is value or (old is not MISSING and equals(old, value)):
            return
        with self.batch():
            arena.values[node_id] = value
            invalidate(arena, node_id)

    # ─── Graph construction ──────────────────────────────────────────────────

    def derived(self, fn: Callable[[], T], *, name: str | None = None) -> Derived[T]:
        """Create a lazily evaluated, cached derived expression.

        Usage:
            @session.derived
            def doubled():
                return session.get("n") * 2
        """
        self._check_open()
        node_id = self._arena.add(
            NodeKind.DERIVED, name or _name_of(fn), state=NodeState.UNINITIALIZED, fn=fn
        )
        return Derived(self, node_id)

    def effect(self, fn: Callable[[], object], *, name: str | None = None) -> Effect:
        """Run fn now, then again whenever anything it read changes."""
        self._check_open()
        node_id = self._arena.add(
            NodeKind.EFFECT, name or _name_of(fn), state=NodeState.UNINITIALIZED, fn=fn
        )
        effect = Effect(self, node_id)
        # writes made by the first run flush after it, not inside it
        with self.batch():
            effect._run()
        return effect

    def output(self, name: str, kind: str = "text") -> Callable[[Callable[[], object]], Effect]:
        """Decorator binding a render function to the target slot ``name``.

        Re-registering a name replaces the earlier binding.
        """

        def _register(fn: Callable[[], object]) -> Effect:
            self._check_open()
            previous = self._outputs.pop(name, None)
            if previous is not None:
                logger.debug("Replacing output %r in %s", name, self.name)
                previous.dispose()
            effect = self.effect(render_output(self, name, kind, fn), name=f"output:{name}")
            self._outputs[name] = effect
            return effect

        return _register

    def event_effect(self, trigger, fn=None, *, ignore_init=False, ignore_none=True):
        """Run fn only when trigger changes. Nothing fn reads is tracked."""

        def _register(body: Callable[[], object]) -> Effect:
            gated = gate(
                trigger_reader(self, trigger), body, ignore_init=ignore_init, ignore_none=ignore_none
            )
            return self.effect(gated, name=_name_of(body))

        return _register if fn is None else _register(fn)

    def event_derived(self, trigger, fn=None, *, ignore_init=False, ignore_none=True):
        """Derived value recomputed only when trigger changes."""

        def _register(body: Callable[[], T]) -> Derived[T]:
            gated = gate(
                trigger_reader(self, trigger), body, ignore_init=ignore_init, ignore_none=ignore_none
            )
            return self.derived(gated, name=_name_of(body))

        return _register if fn is None else _register(fn)

    def outputs(self) -> list[str]:
        return list(self._outputs)

    def _derived(self, node_id: int) -> Derived:
        return Derived(self, node_id)

    # ─── Scheduler ───────────────────────────────────────────────────────────

    def _flush(self) -> None:
        """Run pending effects once each, lowest id (earliest registered) first.

        Effects that write signals during the flush add to the same flush.
        """
        arena = self._arena
        runs: Counter[int] = Counter()
        self._flushing = True
        try:
            while arena.pending and not self._closed:
                effect_id = min(arena.pending)
                arena.pending.discard(effect_id)
                if Effect(self, effect_id)._run():
                    runs[effect_id] += 1
                    if runs[effect_id] > self.config.max_flush_rounds:
                        # drop the backlog; the effects stay subscribed
                        for stale in arena.pending:
                            arena.states[stale] = NodeState.CLEAN
                        arena.pending.clear()
                        raise ReactiveError(
                            f"Effect {arena.label(effect_id)!r} re-ran more than "
                            f"{self.config.max_flush_rounds} times in one flush"
                        )
        finally:
            self._flushing = False

    def pending_count(self) -> int:
        """Number of effects waiting to run. Useful for testing."""
        return len(self._arena.pending)

    # ─── Lifecycle ───────────────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise SessionClosed(f"{self.name} is closed")

    def close(self) -> None:
        """Tear down the whole graph. Idempotent."""
        if self._closed:
            return
        nodes = len(self._arena.kinds)
        self._closed = True
        self._outputs.clear()
        self._arena.clear()
        logger.info("Closed %s (%d nodes)", self.name, nodes)

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._arena.kinds)} nodes"
        return f"Session({self.name!r}, {state})"


def _name_of(fn: Callable) -> str:
    return getattr(fn, "__name__", None) or repr(fn)
