"""Guarded reads — stop a computation quietly until its inputs exist."""

from __future__ import annotations

from typing import TypeVar

from rxgraph._arena import MISSING
from rxgraph.derived import Derived
from rxgraph.errors import MissingValue
from rxgraph.signal import Signal

T = TypeVar("T")


def is_absent(value: object) -> bool:
    return value is None or value is MISSING


def req(first: T, *rest: object) -> T:
    """Halt the current computation if any value is absent (None or MISSING).

    Signal and Derived handles are read first, so the dependency is recorded
    before the halt and the computation wakes up once the value arrives.
    Returns the first value (read, if it was a handle).

    Usage:
        @session.output("greeting")
        def greeting():
            name = req(session.inputs["name"])
            return f"Hello, {name}"
    """
    resolved = []
    for value in (first, *rest):
        if isinstance(value, Signal):
            value = value.get()
        elif isinstance(value, Derived):
            value = value.value()
        if is_absent(value):
            raise MissingValue()
        resolved.append(value)
    return resolved[0]
