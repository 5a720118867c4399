"""
Errors raised by the stream session and the file analyzer.

Transport failures are raised by media handles as
observation.base.MediaUnavailableError and turned into connection state
changes by the session; they are not re-raised to callers of connect().
"""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for crowd monitor errors surfaced to callers."""


class InvalidInputError(MonitorError, ValueError):
    """Rejected before any state change (e.g., empty stream URL)."""


class InvalidTransitionError(MonitorError):
    """Operation not allowed in the current connection state."""


class AnalysisBusyError(MonitorError):
    """A file analysis is already running."""
