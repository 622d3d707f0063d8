"""Session configuration.

SessionConfig is frozen after creation; one instance may be shared by any
number of sessions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from rxgraph.errors import ConfigError


def identity_equal(old: object, new: object) -> bool:
    return old is new


def value_equal(old: object, new: object) -> bool:
    """Identity first, then ``==``."""
    if old is new:
        return True
    try:
        return bool(old == new)
    except (TypeError, ValueError):
        # array-likes with ambiguous truth values count as a change
        return False


EQUALITY_POLICIES: dict[str, Callable[[object, object], bool]] = {
    "identity": identity_equal,
    "value": value_equal,
}


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Configuration for a reactive session.

    Attributes:
        equality: How a signal write decides whether it is a real change.
            ``"value"`` treats ``old is new or old == new`` as unchanged;
            ``"identity"`` only ``old is new``. Per-signal ``equals``
            callables override this.
        log_effect_errors: Log exceptions caught from effect bodies.
        max_flush_rounds: How many times one effect may re-run inside a
            single flush before the flush is aborted. Guards against effects
            that keep writing signals they read.

    """

    equality: str = "value"
    log_effect_errors: bool = True
    max_flush_rounds: int = 100

    def __post_init__(self) -> None:
        if self.equality not in EQUALITY_POLICIES:
            choices = ", ".join(sorted(EQUALITY_POLICIES))
            raise ConfigError(f"Unknown equality policy {self.equality!r} (expected one of: {choices})")
        if self.max_flush_rounds < 1:
            raise ConfigError("max_flush_rounds must be at least 1")

    @property
    def equals(self) -> Callable[[object, object], bool]:
        return EQUALITY_POLICIES[self.equality]
