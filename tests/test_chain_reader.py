"""
Tests for ChainReader against the in-memory FakeChain: parsing, not-found handling, list filtering.
"""

from __future__ import annotations

import asyncio

import pytest

from backend_hivewatch.chain_reader import ChainReader
from backend_hivewatch.core.exceptions import EndpointError, NotFoundError
from hive_fakes import make_account, make_block, transfer_op


def test_global_properties(reader):
    props = asyncio.run(reader.get_dynamic_global_properties())
    assert props.head_block_number == 100
    assert props.total_vesting_fund_hive == "180000000.000 HIVE"
    assert props.hbd_interest_rate == 2000


def test_global_properties_legacy_keys(chain, reader):
    chain.props_overrides = {"total_vesting_fund_hive": None, "total_vesting_fund_steem": "5.000 STEEM"}
    props = asyncio.run(reader.get_dynamic_global_properties())
    assert props.total_vesting_fund_hive == "5.000 STEEM"


def test_get_block_parses_condenser_and_appbase_ops(chain, reader):
    chain.blocks[7] = {
        "timestamp": "2024-05-01T12:00:03",
        "witness": "gtg",
        "transactions": [
            {"operations": [transfer_op("alice", "bob", "2.000 HIVE", "hi")]},
            {"operations": [{"type": "vote_operation", "value": {"voter": "carol", "weight": 10000}}]},
            {"operations": [["comment", {"author": "dave"}], ["vote", {"voter": "dave"}]]},
        ],
    }
    block = asyncio.run(reader.get_block(7))
    assert block.height == 7
    assert block.witness == "gtg"
    assert block.tx_count == 3
    assert [tx.first_kind for tx in block.transactions] == ["transfer", "vote", "comment"]
    assert block.transactions[0].operations[0].body["memo"] == "hi"
    assert block.count_first_op("vote") == 1


def test_get_block_not_found(reader):
    with pytest.raises(NotFoundError):
        asyncio.run(reader.get_block(999))
    with pytest.raises(NotFoundError):
        asyncio.run(reader.get_block(0))


def test_get_block_not_found_is_not_an_endpoint_error(chain, reader):
    with pytest.raises(NotFoundError):
        asyncio.run(reader.get_block(55))
    assert not isinstance(NotFoundError("x"), EndpointError)
    assert chain.count("get_block") == 1


def test_get_accounts_skips_records_without_name(chain, reader):
    chain.accounts["alice"] = make_account("alice", balance="5.000 HIVE")
    chain.accounts["ghost"] = {"name": "", "balance": "1.000 HIVE"}
    accounts = asyncio.run(reader.get_accounts(["alice", "ghost", "nobody"]))
    assert [a.name for a in accounts] == ["alice"]
    assert accounts[0].balance == "5.000 HIVE"


def test_get_accounts_empty_names_makes_no_call(chain, reader):
    assert asyncio.run(reader.get_accounts([])) == []
    assert chain.calls == []


def test_get_account_missing(chain, reader):
    with pytest.raises(NotFoundError):
        asyncio.run(reader.get_account("nobody"))


def test_witnesses_and_lookup(chain, reader):
    chain.witnesses = ["w1", "w2", "w3"]
    chain.accounts = {n: make_account(n) for n in ["alice", "bob", "carol"]}
    assert asyncio.run(reader.get_witnesses_by_vote("", 2)) == ["w1", "w2"]
    assert asyncio.run(reader.lookup_accounts("", 1000)) == ["alice", "bob", "carol"]
    assert chain.calls[-1] == ("lookup_accounts", ["", 1000])


def test_account_count_and_follow_count(chain, reader):
    chain.follow["alice"] = {"follower_count": 12, "following_count": 3}
    assert asyncio.run(reader.get_account_count()) == 2_000_000
    follow = asyncio.run(reader.get_follow_count("alice"))
    assert (follow.account, follow.follower_count, follow.following_count) == ("alice", 12, 3)


def test_account_history_parses_entries_and_skips_garbage(chain, reader):
    chain.history["alice"] = [
        [1, {"op": ["vote", {}], "timestamp": "2024-05-01T00:00:00"}],
        [2, {"op": {"type": "transfer_operation", "value": {}}, "timestamp": "2024-05-01T00:00:03"}],
        ["bad"],
        [3, {"timestamp": "2024-05-01T00:00:06"}],
    ]
    entries = asyncio.run(reader.get_account_history("alice", -1, 100))
    assert [(e.index, e.kind) for e in entries] == [(1, "vote"), (2, "transfer")]
    assert chain.calls[-1] == ("get_account_history", ["alice", -1, 100])


def test_trending_discussions(chain, reader):
    chain.discussions = [
        {"author": "alice", "permlink": "p1", "title": "One", "created": "2024-05-01T00:00:00", "net_votes": 10, "children": 2},
        {"author": "bob", "permlink": "p2", "title": "Two", "created": "2024-05-01T00:00:00", "net_votes": 4, "children": 0},
    ]
    posts = asyncio.run(reader.get_discussions_by_trending("hive", 1))
    assert [p.author for p in posts] == ["alice"]
    assert chain.calls[-1] == ("get_discussions_by_trending", [{"tag": "hive", "limit": 1}])


def test_endpoint_errors_propagate(chain):
    chain.fail_methods.add("get_block")
    chain.blocks[1] = make_block([])
    with pytest.raises(EndpointError):
        asyncio.run(ChainReader(chain).get_block(1))
