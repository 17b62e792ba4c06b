"""Snapshot storage."""

from cryptoflip.storage.snapshots import InMemorySnapshotStore, JsonSnapshotStore, SnapshotStore

__all__ = [
    "InMemorySnapshotStore",
    "JsonSnapshotStore",
    "SnapshotStore",
]
