"""Snapshot subpackage — immutable specification and test records, file loading."""

from lab_compliance.snapshot.loader import Snapshot, SnapshotError, load_snapshot

__all__ = ["Snapshot", "SnapshotError", "load_snapshot"]
