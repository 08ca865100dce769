"""
Chain reader: typed condenser_api requests over the endpoint pool.

Each method is a single request/response with no caching of its own;
staleness tolerance lives in the scheduler layer. Node failures propagate
as EndpointError; absent blocks/accounts raise NotFoundError; malformed
items inside a list result are skipped and logged.
"""

from __future__ import annotations

from typing import Any, Protocol

from backend_hivewatch.chain_reader.models import (
    Account,
    AccountHistoryEntry,
    Block,
    ChainProperties,
    Discussion,
    FollowCount,
)
from backend_hivewatch.core.exceptions import ComputationError, NotFoundError
from backend_hivewatch.hivewatch_logging import get_logger

logger = get_logger(__name__)

DEFAULT_WITNESS_LIMIT = 100
DEFAULT_LOOKUP_LIMIT = 1000
DEFAULT_HISTORY_LIMIT = 100


class RpcCaller(Protocol):
    async def call(self, method: str, params: list[Any] | None = None) -> Any: ...


class ChainReader:
    """Typed read-only access to a Hive node through an EndpointPool (or any RpcCaller)."""

    def __init__(self, pool: RpcCaller) -> None:
        self._pool = pool

    async def get_dynamic_global_properties(self) -> ChainProperties:
        raw = await self._pool.call("get_dynamic_global_properties", [])
        if raw is None:
            raise NotFoundError("node returned no global properties")
        return ChainProperties.from_rpc_item(raw)

    async def get_block(self, height: int) -> Block:
        """Fetch one block by height. Raises NotFoundError if the node has no such block."""
        if height < 1:
            raise NotFoundError(f"block {height} does not exist")
        raw = await self._pool.call("get_block", [height])
        if not raw:
            raise NotFoundError(f"block {height} not found")
        return Block.from_rpc_item(height, raw)

    async def get_accounts(self, names: list[str]) -> list[Account]:
        """Fetch account records in one call; unknown names are simply absent from the result."""
        if not names:
            return []
        raw = await self._pool.call("get_accounts", [list(names)])
        accounts: list[Account] = []
        for item in raw or []:
            try:
                accounts.append(Account.from_rpc_item(item))
            except (ComputationError, AttributeError) as e:
                logger.debug("reader_skip_invalid_account", error=str(e))
        return accounts

    async def get_account(self, name: str) -> Account:
        accounts = await self.get_accounts([name])
        for account in accounts:
            if account.name == name:
                return account
        raise NotFoundError(f"account {name!r} not found")

    async def get_follow_count(self, name: str) -> FollowCount:
        raw = await self._pool.call("get_follow_count", [name])
        return FollowCount.from_rpc_item(name, raw)

    async def get_witnesses_by_vote(self, start: str = "", limit: int = DEFAULT_WITNESS_LIMIT) -> list[str]:
        """Return witness owner names ranked by vote (top `limit`)."""
        raw = await self._pool.call("get_witnesses_by_vote", [start, limit])
        return [w["owner"] for w in raw or [] if isinstance(w, dict) and w.get("owner")]

    async def lookup_accounts(self, lower_bound: str = "", limit: int = DEFAULT_LOOKUP_LIMIT) -> list[str]:
        raw = await self._pool.call("lookup_accounts", [lower_bound, limit])
        return [str(n) for n in raw or [] if n]

    async def get_account_count(self) -> int:
        raw = await self._pool.call("get_account_count", [])
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise ComputationError(f"account count is not an integer: {raw!r}") from e

    async def get_account_history(
        self, name: str, start: int = -1, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[AccountHistoryEntry]:
        """Most recent operations of an account as (index, kind, timestamp) entries."""
        raw = await self._pool.call("get_account_history", [name, start, limit])
        entries: list[AccountHistoryEntry] = []
        for item in raw or []:
            try:
                index, body = item
                op = body["op"]
                kind = op[0] if isinstance(op, (list, tuple)) else str(op["type"]).removesuffix("_operation")
                entries.append(AccountHistoryEntry(index=int(index), kind=str(kind), timestamp=str(body.get("timestamp", ""))))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("reader_skip_invalid_history_item", account=name, error=str(e))
        return entries

    async def get_discussions_by_trending(self, tag: str = "", limit: int = 20) -> list[Discussion]:
        raw = await self._pool.call("get_discussions_by_trending", [{"tag": tag, "limit": limit}])
        discussions: list[Discussion] = []
        for item in raw or []:
            try:
                discussions.append(Discussion.from_rpc_item(item))
            except ComputationError as e:
                logger.debug("reader_skip_invalid_discussion", error=str(e))
        return discussions
