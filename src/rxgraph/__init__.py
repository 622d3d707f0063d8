"""rxgraph: session-scoped reactive evaluation engine for Python."""

from importlib.metadata import version as _version

__version__ = _version("rxgraph")

from rxgraph._arena import MISSING, NodeState
from rxgraph._tracking import isolated as isolate
from rxgraph.config import SessionConfig
from rxgraph.derived import Derived
from rxgraph.effect import Effect
from rxgraph.errors import (
    ConfigError,
    CrossSessionAccess,
    CyclicDependency,
    MissingValue,
    OutOfContextAccess,
    ReactiveError,
    SessionClosed,
    SilentException,
)
from rxgraph.guards import req
from rxgraph.session import Session
from rxgraph.signal import Signal, SignalStore
from rxgraph.targets import NullTarget, RecordingTarget, RenderTarget, Rendered
from rxgraph.watch import WatchHandle, watch
# textual NOT auto-imported — opt-in only

__all__ = [
    "MISSING",
    "NodeState",
    "isolate",
    "SessionConfig",
    "Derived",
    "Effect",
    "ConfigError",
    "CrossSessionAccess",
    "CyclicDependency",
    "MissingValue",
    "OutOfContextAccess",
    "ReactiveError",
    "SessionClosed",
    "SilentException",
    "req",
    "Session",
    "Signal",
    "SignalStore",
    "NullTarget",
    "RecordingTarget",
    "RenderTarget",
    "Rendered",
    "WatchHandle",
    "watch",
]
