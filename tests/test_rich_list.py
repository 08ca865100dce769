"""
Tests for rich list ranking and the RichListJob batch fetch.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

from backend_hivewatch.agent_worker.jobs import RichListJob
from backend_hivewatch.analysis_engine import rank_accounts
from backend_hivewatch.chain_reader.models import Account, ChainProperties
from hive_fakes import make_account, make_props

PROPS = ChainProperties.from_rpc_item(make_props(100))


def _account(name: str, balance: str, vests: str = "0.000000 VESTS", **kw) -> Account:
    return Account.from_rpc_item(make_account(name, balance=balance, vesting_shares=vests, **kw))


def test_rank_by_total_holdings_including_vesting():
    accounts = [
        _account("liquid", "1000.000 HIVE"),
        # 1e6 VESTS = 562.5 HIVE, total 1062.5
        _account("staker", "500.000 HIVE", "1000000.000000 VESTS"),
        _account("small", "1.000 HIVE"),
    ]
    entries = rank_accounts(accounts, PROPS, witnesses=[])
    assert [e.name for e in entries] == ["staker", "liquid", "small"]
    assert [e.rank for e in entries] == [1, 2, 3]
    assert entries[0].total_holdings == Decimal("1062.500")
    assert entries[0].vesting_liquid == Decimal("562.500")


def test_rank_ties_keep_fetch_order():
    accounts = [_account(n, "10.000 HIVE") for n in ["carol", "alice", "bob"]]
    entries = rank_accounts(accounts, PROPS, witnesses=[])
    assert [e.name for e in entries] == ["carol", "alice", "bob"]


def test_rank_limit_and_short_input():
    accounts = [_account(f"user{i:03d}", f"{i}.000 HIVE") for i in range(150)]
    entries = rank_accounts(accounts, PROPS, witnesses=[], limit=100)
    assert len(entries) == 100
    assert entries[0].name == "user149"
    assert entries[-1].name == "user050"
    assert len(rank_accounts(accounts[:7], PROPS, witnesses=[])) == 7


def test_witness_flag_only_for_supplied_witnesses():
    accounts = [_account("gtg", "5.000 HIVE"), _account("alice", "4.000 HIVE")]
    entries = rank_accounts(accounts, PROPS, witnesses=["gtg", "someone-else"])
    assert {e.name: e.is_witness for e in entries} == {"gtg": True, "alice": False}


def test_malformed_account_is_skipped_not_fatal():
    accounts = [
        _account("good", "5.000 HIVE"),
        _account("broken", "lots HIVE"),
        _account("badrep", "9.000 HIVE", reputation="n/a"),
        _account("also-good", "3.000 HIVE"),
    ]
    entries = rank_accounts(accounts, PROPS, witnesses=[])
    assert [e.name for e in entries] == ["good", "also-good"]
    assert [e.rank for e in entries] == [1, 2]


def test_exponent_or_oversized_balance_is_skipped():
    accounts = [
        _account("good", "5.000 HIVE"),
        _account("exponent", "1e70 HIVE"),
        _account("oversized", "1" + "0" * 70 + " HIVE"),
    ]
    entries = rank_accounts(accounts, PROPS, witnesses=[])
    assert [e.name for e in entries] == ["good"]


def test_job_fetches_candidates_in_batches(chain, reader):
    for i in range(250):
        chain.accounts[f"acct{i:03d}"] = make_account(f"acct{i:03d}", balance=f"{i}.000 HIVE")
    chain.witnesses = ["acct249", "acct000"]
    job = RichListJob(reader, candidates=1000, batch_size=100, size=100)

    result = asyncio.run(job.refresh())

    batches = [params[0] for method, params in chain.calls if method == "get_accounts"]
    assert [len(b) for b in batches] == [100, 100, 50]
    assert result.candidates == 250
    assert len(result.entries) == 100
    assert result.entries[0].name == "acct249"
    assert result.entries[0].is_witness is True
    assert result.current_supply == "400000000.000 HIVE"
    assert ("lookup_accounts", ["", 1000]) in chain.calls
    assert ("get_witnesses_by_vote", ["", 100]) in chain.calls
