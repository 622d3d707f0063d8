"""Render targets — where output effects send their payloads.

The engine only needs two operations from a collaborator: ``write`` a payload
to a named slot and ``clear`` a slot. What a slot is (a widget, a DOM node, a
file) is the collaborator's business.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class Rendered:
    """Payload of one output effect run.

    Attributes:
        kind: Renderer kind chosen at registration (``"text"``, ``"table"``,
            ``"plot"``, ...). Opaque to the engine.
        value: Whatever the output body returned.

    """

    kind: str
    value: Any


@runtime_checkable
class RenderTarget(Protocol):
    def write(self, name: str, payload: Rendered) -> None: ...

    def clear(self, name: str) -> None: ...


class NullTarget:
    """Discards everything. Default for sessions without a UI."""

    def write(self, name: str, payload: Rendered) -> None:
        pass

    def clear(self, name: str) -> None:
        pass


class RecordingTarget:
    """Keeps the latest payload per slot, plus a history of operations."""

    def __init__(self) -> None:
        self.slots: dict[str, Rendered] = {}
        self.history: list[tuple[str, str, Rendered | None]] = []

    def write(self, name: str, payload: Rendered) -> None:
        self.slots[name] = payload
        self.history.append(("write", name, payload))

    def clear(self, name: str) -> None:
        self.slots.pop(name, None)
        self.history.append(("clear", name, None))

    def value(self, name: str, default: Any = None) -> Any:
        payload = self.slots.get(name)
        return payload.value if payload is not None else default

    def writes(self, name: str) -> list[Rendered]:
        return [p for op, n, p in self.history if op == "write" and n == name]
