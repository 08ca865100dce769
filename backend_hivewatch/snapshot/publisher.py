"""
Snapshot publisher: immutable, versioned reads of aggregate state.

Each subsystem has exactly one current Snapshot. Schedulers replace it
wholesale (publish on success, mark_failed on failure); readers get the
current object and never observe a partially updated one. Version is
incremented only on successful refreshes.
"""

from __future__ import annotations

import dataclasses
import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Mapping

from backend_hivewatch.hivewatch_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Latest view of one subsystem. `data` holds frozen dataclasses / tuples only."""

    subsystem: str
    version: int = 0
    data: Any = None
    stale: bool = False
    error: str | None = None
    updated_at: float | None = None


class SnapshotPublisher:
    """Atomic latest-snapshot handoff between schedulers (writers) and readers."""

    def __init__(self, subsystems: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._snapshots: dict[str, Snapshot] = {s: Snapshot(subsystem=s) for s in subsystems}

    def register(self, subsystem: str) -> None:
        with self._lock:
            self._snapshots.setdefault(subsystem, Snapshot(subsystem=subsystem))

    def publish(self, subsystem: str, data: Any) -> Snapshot:
        """Replace data after a successful refresh; bumps version and clears the stale flag."""
        with self._lock:
            prev = self._snapshots.get(subsystem) or Snapshot(subsystem=subsystem)
            snap = Snapshot(
                subsystem=subsystem,
                version=prev.version + 1,
                data=data,
                stale=False,
                error=None,
                updated_at=time.time(),
            )
            self._snapshots[subsystem] = snap
        return snap

    def mark_failed(self, subsystem: str, error: str) -> Snapshot:
        """Keep the previous data and version; set the stale flag for this subsystem only."""
        with self._lock:
            prev = self._snapshots.get(subsystem) or Snapshot(subsystem=subsystem)
            snap = dataclasses.replace(prev, stale=True, error=error)
            self._snapshots[subsystem] = snap
        return snap

    def clear(self, subsystem: str) -> Snapshot:
        """Drop a subsystem's data (e.g. tracked account removed). Version still moves forward."""
        with self._lock:
            prev = self._snapshots.get(subsystem) or Snapshot(subsystem=subsystem)
            snap = Snapshot(subsystem=subsystem, version=prev.version + 1, updated_at=time.time())
            self._snapshots[subsystem] = snap
        logger.info("snapshot_cleared", subsystem=subsystem, version=snap.version)
        return snap

    def get(self, subsystem: str) -> Snapshot:
        """Current snapshot; raises KeyError for an unknown subsystem."""
        with self._lock:
            return self._snapshots[subsystem]

    def all(self) -> dict[str, Snapshot]:
        with self._lock:
            return dict(self._snapshots)


def to_jsonable(value: Any) -> Any:
    """Convert snapshot data (dataclasses, tuples, Decimal) into JSON-safe structures. Decimals become strings."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, frozenset, set)):
        return [to_jsonable(v) for v in value]
    return value
