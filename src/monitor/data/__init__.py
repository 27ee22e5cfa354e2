"""Snapshot persistence for cold-start display."""

from monitor.data.snapshot import HistorySnapshotStore, SnapshotStore

__all__ = ["HistorySnapshotStore", "SnapshotStore"]
