"""
Data models for chain reader output.

Frozen dataclasses built from condenser_api JSON-RPC results. Balances stay
as the node's asset strings ("1234.567 HIVE"); parsing into exact decimals
happens in the analysis engine so a malformed balance only drops its own entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from backend_hivewatch.core.exceptions import ComputationError


def _int(item: Mapping[str, Any], key: str, default: int = 0) -> int:
    value = item.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ComputationError(f"{key} is not an integer: {value!r}") from e


def _str(item: Mapping[str, Any], key: str, default: str = "") -> str:
    value = item.get(key)
    return default if value is None else str(value)


@dataclass(frozen=True)
class ChainProperties:
    """Dynamic global properties: head height, supplies and the vesting pool."""

    head_block_number: int
    time: str
    current_supply: str
    current_hbd_supply: str
    virtual_supply: str
    total_vesting_fund_hive: str
    total_vesting_shares: str
    hbd_interest_rate: int

    @classmethod
    def from_rpc_item(cls, item: Mapping[str, Any]) -> "ChainProperties":
        """Build from get_dynamic_global_properties. Accepts pre-rename (steem/sbd) keys."""
        if not isinstance(item, Mapping):
            raise ComputationError("global properties must be an object")
        return cls(
            head_block_number=_int(item, "head_block_number"),
            time=_str(item, "time"),
            current_supply=_str(item, "current_supply", "0.000 HIVE"),
            current_hbd_supply=_str(item, "current_hbd_supply", _str(item, "current_sbd_supply", "0.000 HBD")),
            virtual_supply=_str(item, "virtual_supply", "0.000 HIVE"),
            total_vesting_fund_hive=_str(
                item, "total_vesting_fund_hive", _str(item, "total_vesting_fund_steem", "0.000 HIVE")
            ),
            total_vesting_shares=_str(item, "total_vesting_shares", "0.000000 VESTS"),
            hbd_interest_rate=_int(item, "hbd_interest_rate", _int(item, "sbd_interest_rate", 0)),
        )


@dataclass(frozen=True)
class Operation:
    """One operation inside a transaction: kind (e.g. transfer) and its operands."""

    kind: str
    body: Mapping[str, Any]

    @classmethod
    def from_rpc_item(cls, raw: Any) -> "Operation":
        """
        Accept condenser format ["transfer", {...}] and appbase format
        {"type": "transfer_operation", "value": {...}}.
        """
        if isinstance(raw, (list, tuple)) and len(raw) == 2:
            kind, body = raw
        elif isinstance(raw, Mapping) and "type" in raw:
            kind = str(raw["type"])
            if kind.endswith("_operation"):
                kind = kind[: -len("_operation")]
            body = raw.get("value") or {}
        else:
            raise ComputationError(f"unrecognized operation shape: {type(raw).__name__}")
        if not isinstance(body, Mapping):
            body = {}
        return cls(kind=str(kind), body=MappingProxyType(dict(body)))


@dataclass(frozen=True)
class BlockTransaction:
    operations: tuple[Operation, ...]

    @property
    def first_kind(self) -> str | None:
        return self.operations[0].kind if self.operations else None


@dataclass(frozen=True)
class Block:
    """One ledger block. Height is the unique key; never mutated once fetched."""

    height: int
    timestamp: str
    witness: str
    transactions: tuple[BlockTransaction, ...]

    @classmethod
    def from_rpc_item(cls, height: int, item: Mapping[str, Any]) -> "Block":
        if not isinstance(item, Mapping):
            raise ComputationError(f"block {height} must be an object")
        raw_txs = item.get("transactions") or []
        if not isinstance(raw_txs, (list, tuple)):
            raise ComputationError(f"block {height} transactions must be a list")
        txs = []
        for raw_tx in raw_txs:
            if not isinstance(raw_tx, Mapping):
                raise ComputationError(f"block {height} has a malformed transaction: {type(raw_tx).__name__}")
            raw_ops = raw_tx.get("operations") or []
            if not isinstance(raw_ops, (list, tuple)):
                raise ComputationError(f"block {height} operations must be a list")
            txs.append(BlockTransaction(operations=tuple(Operation.from_rpc_item(op) for op in raw_ops)))
        return cls(
            height=int(height),
            timestamp=_str(item, "timestamp"),
            witness=_str(item, "witness"),
            transactions=tuple(txs),
        )

    @property
    def tx_count(self) -> int:
        return len(self.transactions)

    def count_first_op(self, kind: str) -> int:
        """Number of transactions whose first operation is of the given kind."""
        return sum(1 for tx in self.transactions if tx.first_kind == kind)


@dataclass(frozen=True)
class Transaction:
    """A transaction of interest extracted from a block (first operation only)."""

    block_num: int
    timestamp: str
    type: str
    from_account: str
    to_account: str
    amount: str
    memo: str | None


@dataclass(frozen=True)
class Account:
    """Public account record. Name is the unique key."""

    name: str
    balance: str
    hbd_balance: str
    vesting_shares: str
    reputation: int | str
    post_count: int
    voting_power: int
    last_vote_time: str
    last_post: str
    created: str

    @classmethod
    def from_rpc_item(cls, item: Mapping[str, Any]) -> "Account":
        """Build from one get_accounts result item."""
        name = item.get("name")
        if not name:
            raise ComputationError("account record has no name")
        return cls(
            name=str(name),
            balance=_str(item, "balance", "0.000 HIVE"),
            hbd_balance=_str(item, "hbd_balance", _str(item, "sbd_balance", "0.000 HBD")),
            vesting_shares=_str(item, "vesting_shares", "0.000000 VESTS"),
            reputation=item.get("reputation", 0) or 0,
            post_count=_int(item, "post_count"),
            voting_power=_int(item, "voting_power"),
            last_vote_time=_str(item, "last_vote_time"),
            last_post=_str(item, "last_post"),
            created=_str(item, "created"),
        )


@dataclass(frozen=True)
class FollowCount:
    account: str
    follower_count: int
    following_count: int

    @classmethod
    def from_rpc_item(cls, name: str, item: Mapping[str, Any] | None) -> "FollowCount":
        item = item or {}
        return cls(
            account=_str(item, "account", name),
            follower_count=_int(item, "follower_count"),
            following_count=_int(item, "following_count"),
        )


@dataclass(frozen=True)
class AccountHistoryEntry:
    index: int
    kind: str
    timestamp: str


@dataclass(frozen=True)
class Discussion:
    """Trending post summary with its vote metadata."""

    author: str
    permlink: str
    title: str
    created: str
    net_votes: int
    children: int

    @classmethod
    def from_rpc_item(cls, item: Mapping[str, Any]) -> "Discussion":
        return cls(
            author=_str(item, "author"),
            permlink=_str(item, "permlink"),
            title=_str(item, "title"),
            created=_str(item, "created"),
            net_votes=_int(item, "net_votes"),
            children=_int(item, "children"),
        )
