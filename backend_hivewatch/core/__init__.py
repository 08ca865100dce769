"""
Core utilities: exceptions shared across pool, reader, analysis engine and scheduler.
"""

from backend_hivewatch.core.exceptions import (
    ComputationError,
    EndpointError,
    HiveWatchError,
    NotFoundError,
)

__all__ = [
    "ComputationError",
    "EndpointError",
    "HiveWatchError",
    "NotFoundError",
]
