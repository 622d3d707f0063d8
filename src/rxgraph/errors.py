"""rxgraph error hierarchy.

All engine errors inherit from ReactiveError for easy catching.
SilentException is separate: it is flow control, not failure.
"""


class ReactiveError(Exception):
    """Base error for all rxgraph operations."""


class ConfigError(ReactiveError):
    """Invalid session configuration."""


class OutOfContextAccess(ReactiveError):
    """A signal or derived value was read outside any evaluation frame.

    Wrap the read in ``session.isolate()`` to read without subscribing.
    """


class CrossSessionAccess(ReactiveError):
    """A cell of one session was read inside another session's computation."""


class CyclicDependency(ReactiveError):
    """A computation depends, directly or transitively, on itself."""


class SessionClosed(ReactiveError):
    """The session was torn down; its graph no longer exists."""


class SilentException(Exception):
    """Halts the current computation without being treated as an error."""


class MissingValue(SilentException):
    """Raised by ``req()`` when a required value is absent."""
