from __future__ import annotations


class DirmultError(Exception):
    """Base class for errors raised by dirmult."""


class KeyNotFoundError(DirmultError, KeyError):
    """An asymmetric prior was asked for an event it was not built with."""

    def __init__(self, event: object) -> None:
        super().__init__(event)
        self.event = event

    def __str__(self) -> str:
        return f"event {self.event!r} has no pseudo-count in this prior"


class SamplingError(DirmultError, RuntimeError):
    """Weighted sampling ran out of events before crossing the drawn threshold."""


class MalformedStreamError(DirmultError, ValueError):
    """A binary record ended early or contained an invalid value."""
