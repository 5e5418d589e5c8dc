# crest_map/errors.py
"""
Exception types raised by the compute pipeline and its engines.

Stale results are not errors: the scheduler drops them without raising.
"""


class CrestMapError(Exception):
    """Base class for pipeline failures. ``str(exc)`` is the reason string."""


class DecodeError(CrestMapError, ValueError):
    """The source could not be decoded into an RGBA pixel buffer."""


class WorkerTransportError(CrestMapError, RuntimeError):
    """The worker channel or process failed before a response arrived."""


__all__ = ["CrestMapError", "DecodeError", "WorkerTransportError"]
