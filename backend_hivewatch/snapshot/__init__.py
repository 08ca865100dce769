# Versioned, immutable per-subsystem snapshots for the presentation layer.

from backend_hivewatch.snapshot.publisher import Snapshot, SnapshotPublisher, to_jsonable

__all__ = [
    "Snapshot",
    "SnapshotPublisher",
    "to_jsonable",
]
