"""Signals — externally-written values that track their readers.

When a Signal is read inside a derived expression or effect, the dependency
is registered automatically. When the Signal changes, its readers go stale.

All state lives in the session arena — instances are thin handles holding
a session and an id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, Iterator, TypeVar

from rxgraph._arena import MISSING, NodeKind, NodeState
from rxgraph._tracking import track

if TYPE_CHECKING:
    from rxgraph.session import Session

T = TypeVar("T")


class Signal(Generic[T]):
    """A named input cell with automatic dependency tracking."""

    __slots__ = ("_session", "_id")

    def __init__(self, session: Session, node_id: int) -> None:
        self._session = session
        self._id = node_id

    @property
    def name(self) -> str:
        return self._session._arena.label(self._id)

    def get(self) -> T:
        """Read the value. Registers the dependency with the current frame."""
        self._session._check_open()
        track(self._session, self._id)
        return self._session._arena.values[self._id]

    __call__ = get

    def set(self, value: T) -> None:
        """Write a new value. Readers go stale only if the value changed."""
        self._session._write(self._id, value)

    def is_set(self) -> bool:
        """Whether the signal holds a value. Does not register a dependency."""
        self._session._check_open()
        return self._session._arena.values[self._id] is not MISSING

    def __repr__(self) -> str:
        value = self._session._arena.values.get(self._id, MISSING)
        return f"Signal({self.name!r}, {value!r})"


class SignalStore:
    """Name-keyed Signal container for one session's inputs."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._signals: dict[str, Signal] = {}

    def signal(
        self,
        name: str,
        initial: object = MISSING,
        *,
        equals: Callable[[object, object], bool] | None = None,
    ) -> Signal:
        """Declare (or fetch) the signal called name.

        Redeclaring an existing name returns the same handle; ``initial`` is
        ignored then, and ``equals`` replaces the previous check if given.
        """
        self._session._check_open()
        arena = self._session._arena
        sig = self._signals.get(name)
        if sig is None:
            node_id = arena.add(NodeKind.SIGNAL, name, state=NodeState.CLEAN, value=initial)
            sig = Signal(self._session, node_id)
            self._signals[name] = sig
        if equals is not None:
            arena.equals[sig._id] = equals
        return sig

    def get(self, name: str) -> object:
        """Read name inside a reactive context. Unknown names read as MISSING."""
        return self.signal(name).get()

    def set(self, name: str, value: object) -> None:
        self.signal(name).set(value)

    def update(self, values: dict[str, object]) -> None:
        """Write several inputs as one event."""
        with self._session.batch():
            for name, value in values.items():
                self.set(name, value)

    def names(self) -> list[str]:
        return list(self._signals)

    def __contains__(self, name: object) -> bool:
        return name in self._signals

    def __iter__(self) -> Iterator[str]:
        return iter(self._signals)

    def __len__(self) -> int:
        return len(self._signals)

    def __getitem__(self, name: str) -> Signal:
        return self.signal(name)

    def __repr__(self) -> str:
        return f"SignalStore({self.names()!r})"
