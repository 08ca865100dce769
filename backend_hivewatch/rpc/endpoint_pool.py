"""
Hive API node pool: JSON-RPC calls with failover across equivalent nodes.

Responsibilities:
- Hold the list of equivalent read-only API nodes and the active-node pointer.
- Perform one bounded JSON-RPC request per call against the active node.
- Count consecutive failures per node; after failover_threshold failures,
  rotate to the next node (wrapping) and give it a fresh counter.
- Surface failures to the caller as EndpointError; never retry inside a call.
  The next scheduled call benefits from the rotation.

Pointer and counters are shared by every subsystem task and guarded by an
asyncio.Lock. The lock is never held across network I/O.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any

import httpx

from backend_hivewatch.config.env import DEFAULT_FAILOVER_THRESHOLD, DEFAULT_RPC_TIMEOUT_SEC
from backend_hivewatch.core.exceptions import EndpointError
from backend_hivewatch.hivewatch_logging import get_logger

logger = get_logger(__name__)

DEFAULT_API = "condenser_api"


@dataclass
class Endpoint:
    """One API node and its consecutive-failure count."""

    url: str
    consecutive_failures: int = 0


def _build_rpc_body(method: str, params: list[Any], request_id: int) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": method,
        "params": params,
    }


class EndpointPool:
    """
    Rotating pool of equivalent Hive API nodes.

    call(method, params) targets the active node. A transport error, timeout,
    non-2xx status or JSON-RPC error counts as a failure for that node.
    The pool never empties: after the last node it wraps to the first.
    """

    def __init__(
        self,
        urls: list[str],
        *,
        failover_threshold: int = DEFAULT_FAILOVER_THRESHOLD,
        timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC,
        api: str = DEFAULT_API,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            urls: API node URLs (at least one).
            failover_threshold: Consecutive failures on the active node before rotating.
            timeout_sec: Upper bound for one request/response round trip.
            api: Namespace prefixed to bare method names (condenser_api.get_block).
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        cleaned = [u.strip().rstrip("/") for u in urls if u and u.strip()]
        if not cleaned:
            raise ValueError("urls must contain at least one endpoint")
        if failover_threshold < 1:
            raise ValueError("failover_threshold must be >= 1")
        if timeout_sec <= 0:
            raise ValueError("timeout_sec must be positive")

        self._endpoints = [Endpoint(url=u) for u in cleaned]
        self._current = 0
        self._threshold = failover_threshold
        self._timeout = timeout_sec
        self._api = api
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_sec),
            transport=transport,
        )

    @property
    def current_url(self) -> str:
        return self._endpoints[self._current].url

    @property
    def current_index(self) -> int:
        return self._current

    def failure_counts(self) -> dict[str, int]:
        """Return url -> consecutive failure count (copy)."""
        return {e.url: e.consecutive_failures for e in self._endpoints}

    def __len__(self) -> int:
        return len(self._endpoints)

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """
        Perform one JSON-RPC call against the active node and return its result.

        Bare method names are namespaced with the pool's api (condenser_api).
        A JSON null result is returned as None; callers decide whether that
        means "not found".

        Raises:
            EndpointError: on any node failure (after the failure is recorded).
        """
        full_method = method if "." in method else f"{self._api}.{method}"
        async with self._lock:
            index = self._current
            url = self._endpoints[index].url
        body = _build_rpc_body(full_method, list(params or []), next(self._ids))
        try:
            result = await self._post(url, body)
        except EndpointError as e:
            await self._record_failure(index, e)
            raise
        await self._record_success(index)
        return result

    async def _post(self, url: str, body: dict[str, Any]) -> Any:
        """POST one JSON-RPC body; raise EndpointError on transport, status or RPC error."""
        method = body["method"]
        try:
            resp = await asyncio.wait_for(
                self._client.post(url, json=body), timeout=self._timeout
            )
            resp.raise_for_status()
            data = resp.json()
        except asyncio.TimeoutError as e:
            raise EndpointError(
                f"Hive RPC timeout after {self._timeout}s", endpoint=url, method=method
            ) from e
        except httpx.HTTPError as e:
            raise EndpointError(f"Hive RPC transport error: {e}", endpoint=url, method=method) from e
        except ValueError as e:
            raise EndpointError(f"Hive RPC returned invalid JSON: {e}", endpoint=url, method=method) from e

        if not isinstance(data, dict):
            raise EndpointError("Hive RPC returned a non-object body", endpoint=url, method=method)
        if "error" in data:
            err = data["error"]
            message = err.get("message", err) if isinstance(err, dict) else err
            code = err.get("code") if isinstance(err, dict) else None
            raise EndpointError(
                f"Hive RPC error: {message} (code={code})", endpoint=url, method=method
            )
        if "result" not in data:
            raise EndpointError("Hive RPC returned no result", endpoint=url, method=method)
        return data["result"]

    async def _record_success(self, index: int) -> None:
        async with self._lock:
            self._endpoints[index].consecutive_failures = 0

    async def _record_failure(self, index: int, error: EndpointError) -> None:
        async with self._lock:
            endpoint = self._endpoints[index]
            endpoint.consecutive_failures += 1
            logger.warning(
                "pool_endpoint_failed",
                endpoint=endpoint.url,
                method=error.method,
                consecutive_failures=endpoint.consecutive_failures,
                threshold=self._threshold,
                error=str(error),
            )
            # Another task may already have rotated away from this node
            if index != self._current or endpoint.consecutive_failures < self._threshold:
                return
            self._current = (self._current + 1) % len(self._endpoints)
            nxt = self._endpoints[self._current]
            nxt.consecutive_failures = 0
            logger.warning(
                "pool_endpoint_rotated",
                from_endpoint=endpoint.url,
                to_endpoint=nxt.url,
                wrapped=self._current == 0,
            )

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
