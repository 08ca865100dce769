"""
In-memory Hive node for tests.

FakeChain answers condenser_api calls from dicts so the real ChainReader,
jobs and schedulers run without any network.
"""

from __future__ import annotations

from typing import Any

from backend_hivewatch.core.exceptions import EndpointError

TOTAL_VESTING_FUND = "180000000.000 HIVE"
TOTAL_VESTING_SHARES = "320000000000.000000 VESTS"


def make_props(head: int, **overrides: Any) -> dict[str, Any]:
    props = {
        "head_block_number": head,
        "time": "2024-05-01T12:00:00",
        "current_supply": "400000000.000 HIVE",
        "current_hbd_supply": "30000000.000 HBD",
        "virtual_supply": "450000000.000 HIVE",
        "total_vesting_fund_hive": TOTAL_VESTING_FUND,
        "total_vesting_shares": TOTAL_VESTING_SHARES,
        "hbd_interest_rate": 2000,
    }
    props.update(overrides)
    return props


def transfer_op(frm: str, to: str, amount: str = "1.000 HIVE", memo: str = "") -> list[Any]:
    return ["transfer", {"from": frm, "to": to, "amount": amount, "memo": memo}]


def make_block(ops: list[list[Any]], *, witness: str = "blocktrades", timestamp: str = "2024-05-01T12:00:00") -> dict[str, Any]:
    """Raw block with one transaction per operation."""
    return {
        "timestamp": timestamp,
        "witness": witness,
        "transactions": [{"operations": [op]} for op in ops],
    }


def make_account(name: str, balance: str = "0.000 HIVE", vesting_shares: str = "0.000000 VESTS", **overrides: Any) -> dict[str, Any]:
    account = {
        "name": name,
        "balance": balance,
        "hbd_balance": "0.000 HBD",
        "vesting_shares": vesting_shares,
        "reputation": 0,
        "post_count": 0,
        "voting_power": 10000,
        "last_vote_time": "2024-05-01T12:00:00",
        "last_post": "1970-01-01T00:00:00",
        "created": "2020-01-01T00:00:00",
    }
    account.update(overrides)
    return account


class FakeChain:
    """In-memory condenser_api. Methods listed in fail_methods raise EndpointError."""

    def __init__(self, head: int = 100) -> None:
        self.head = head
        self.props_overrides: dict[str, Any] = {}
        self.blocks: dict[int, dict[str, Any]] = {}
        self.accounts: dict[str, dict[str, Any]] = {}
        self.witnesses: list[str] = []
        self.account_count = 2_000_000
        self.follow: dict[str, dict[str, int]] = {}
        self.history: dict[str, list[Any]] = {}
        self.discussions: list[dict[str, Any]] = []
        self.fail_methods: set[str] = set()
        self.calls: list[tuple[str, list[Any]]] = []

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        params = list(params or [])
        self.calls.append((method, params))
        if method in self.fail_methods:
            raise EndpointError(f"{method} failed", endpoint="fake://node", method=method)
        if method == "get_dynamic_global_properties":
            return make_props(self.head, **self.props_overrides)
        if method == "get_block":
            return self.blocks.get(params[0])
        if method == "get_accounts":
            return [self.accounts[n] for n in params[0] if n in self.accounts]
        if method == "lookup_accounts":
            lower, limit = params
            return [n for n in self.accounts if n >= lower][:limit]
        if method == "get_witnesses_by_vote":
            return [{"owner": w} for w in self.witnesses[: params[1]]]
        if method == "get_account_count":
            return self.account_count
        if method == "get_follow_count":
            counts = self.follow.get(params[0], {"follower_count": 0, "following_count": 0})
            return {"account": params[0], **counts}
        if method == "get_account_history":
            return self.history.get(params[0], [])
        if method == "get_discussions_by_trending":
            return self.discussions[: params[0]["limit"]]
        raise EndpointError(f"unknown method {method}", endpoint="fake://node", method=method)

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)
