"""Node arena — plain Python structures that hold one session's reactive graph.

Signals, derived expressions and effects are rows keyed by an integer node id.
Handles (Signal, Derived, Effect) are thin views holding a session and an id;
all state lives here, so a whole session tears down in one step.
"""

from __future__ import annotations

import enum
import itertools
from types import TracebackType
from typing import Callable


class _Missing:
    """Sentinel for a cell that has never been given a value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


class NodeKind(enum.Enum):
    SIGNAL = "signal"
    DERIVED = "derived"
    EFFECT = "effect"


class NodeState(enum.IntEnum):
    """Freshness of a derived or effect node. Higher means staler."""

    CLEAN = 0
    CHECK = 1  # an upstream derived is dirty; may or may not need a re-run
    DIRTY = 2
    UNINITIALIZED = 3
    DISPOSED = 4


class Arena:
    """All per-session graph state, indexed by node id."""

    __slots__ = (
        "kinds",
        "labels",
        "values",
        "errors",
        "states",
        "fns",
        "equals",
        "observers",
        "dependencies",
        "evaluating",
        "pending",
        "_ids",
    )

    def __init__(self) -> None:
        self.kinds: dict[int, NodeKind] = {}
        self.labels: dict[int, str] = {}
        # signal value, or derived cache
        self.values: dict[int, object] = {}
        # poisoned derived results (errors and guarded-read halts)
        self.errors: dict[int, tuple[Exception, TracebackType | None]] = {}
        self.states: dict[int, NodeState] = {}
        self.fns: dict[int, Callable] = {}
        self.equals: dict[int, Callable[[object, object], bool]] = {}
        self.observers: dict[int, set[int]] = {}  # producer -> consumers
        self.dependencies: dict[int, tuple[int, ...]] = {}  # consumer -> producers, read order
        self.evaluating: set[int] = set()
        self.pending: set[int] = set()  # effect ids awaiting the next flush
        self._ids = itertools.count(1)

    def add(
        self,
        kind: NodeKind,
        label: str,
        *,
        state: NodeState,
        fn: Callable | None = None,
        value: object = MISSING,
    ) -> int:
        node_id = next(self._ids)
        self.kinds[node_id] = kind
        self.labels[node_id] = label
        self.states[node_id] = state
        self.values[node_id] = value
        self.observers[node_id] = set()
        if fn is not None:
            self.fns[node_id] = fn
            self.dependencies[node_id] = ()
        return node_id

    def subscribe(self, consumer: int, producers: tuple[int, ...]) -> None:
        """Replace consumer's edge set wholesale with producers."""
        self.unsubscribe(consumer)
        live = tuple(p for p in producers if p in self.observers)
        for producer in live:
            self.observers[producer].add(consumer)
        self.dependencies[consumer] = live

    def unsubscribe(self, consumer: int) -> None:
        for producer in self.dependencies.get(consumer, ()):
            observers = self.observers.get(producer)
            if observers is not None:
                observers.discard(consumer)
        if consumer in self.dependencies:
            self.dependencies[consumer] = ()

    def dispose(self, node_id: int) -> None:
        """Detach a derived or effect node. Its row stays, marked DISPOSED."""
        self.unsubscribe(node_id)
        for consumer in self.observers.get(node_id, set()):
            deps = self.dependencies.get(consumer, ())
            self.dependencies[consumer] = tuple(d for d in deps if d != node_id)
        self.observers[node_id] = set()
        self.states[node_id] = NodeState.DISPOSED
        self.values[node_id] = MISSING
        self.errors.pop(node_id, None)
        self.pending.discard(node_id)

    def clear(self) -> None:
        for node_id in self.states:
            self.states[node_id] = NodeState.DISPOSED
        self.values.clear()
        self.errors.clear()
        self.fns.clear()
        self.equals.clear()
        self.observers.clear()
        self.dependencies.clear()
        self.evaluating.clear()
        self.pending.clear()

    def label(self, node_id: int) -> str:
        return self.labels.get(node_id, f"#{node_id}")
