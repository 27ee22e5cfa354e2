"""Custom exceptions for the funding monitor.

Fetch and persistence exceptions live here so exchange clients,
pollers and the snapshot store can share them without circular imports.
"""


class MonitorError(Exception):
    """Base exception for all monitor errors."""


class SourceFetchError(MonitorError):
    """Raised when a single exchange source cannot be fetched or decoded.

    The message is shown verbatim on the status line, so it should name
    the exchange and the failing request.
    """


class SnapshotError(MonitorError):
    """Raised when a snapshot file cannot be written."""
