"""
Application-level exceptions.

- EndpointError: network / timeout / non-success response from an API node.
  Triggers endpoint rotation in the pool; retried only by the next scheduled cycle.
- NotFoundError: requested account or block does not exist. Not a node failure.
- ComputationError: malformed numeric input to a metric calculator. The affected
  entry is skipped; the rest of its batch is unaffected.
"""

from __future__ import annotations


class HiveWatchError(Exception):
    """Base class for all engine errors."""


class EndpointError(HiveWatchError):
    """A call to the active API node failed."""

    def __init__(self, message: str, *, endpoint: str | None = None, method: str | None = None) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.method = method


class NotFoundError(HiveWatchError):
    """Requested account or block is absent from the chain."""


class ComputationError(HiveWatchError, ValueError):
    """Metric input could not be parsed or is out of domain."""
