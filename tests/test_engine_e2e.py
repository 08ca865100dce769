"""
End-to-end engine tests: FakeChain -> ChainReader -> jobs -> schedulers -> snapshots.
"""

from __future__ import annotations

import asyncio

from backend_hivewatch.agent_worker import SUBSYSTEMS, HiveWatchEngine
from backend_hivewatch.agent_worker.jobs import GlobalStatsJob
from backend_hivewatch.chain_reader import ChainReader
from backend_hivewatch.config import Settings
from backend_hivewatch.scheduler import SchedulerConfig, SubsystemScheduler
from backend_hivewatch.snapshot import SnapshotPublisher, to_jsonable
from hive_fakes import FakeChain, make_account, make_block, transfer_op

TX_COUNTS = [3, 0, 7, 1, 1, 12, 4, 9, 0, 2, 5, 6]


class FakeSigner:
    def __init__(self, approve: bool = True) -> None:
        self.approve = approve
        self.requests: list[tuple[str, str, str]] = []

    async def sign_buffer(self, username: str, message: str, key_type: str) -> bool:
        self.requests.append((username, message, key_type))
        return self.approve


def _seed(chain: FakeChain) -> None:
    chain.head = 20
    for h in range(1, 21):
        chain.blocks[h] = make_block([transfer_op(f"s{h}", "r")] * (h % 4))
    for name, balance in [("alice", "50.000 HIVE"), ("bob", "70.000 HIVE"), ("carol", "10.000 HIVE")]:
        chain.accounts[name] = make_account(name, balance=balance)
    chain.witnesses = ["bob"]


def _engine(chain: FakeChain, **overrides) -> HiveWatchEngine:
    settings = Settings(
        hive_nodes=["https://unused.test"],
        global_stats_interval_sec=3600,
        account_stats_interval_sec=3600,
        transaction_stream_interval_sec=3600,
        rich_list_interval_sec=3600,
        **overrides,
    )
    return HiveWatchEngine(settings, reader=ChainReader(chain))


def test_tx_series_follows_twelve_blocks():
    chain = FakeChain(head=0)

    async def scenario():
        publisher = SnapshotPublisher()
        job = GlobalStatsJob(ChainReader(chain), latest_blocks=1, tx_sample_blocks=1)
        sched = SubsystemScheduler("global_stats", job.refresh, publisher, SchedulerConfig(3))
        for height, count in enumerate(TX_COUNTS, start=1):
            chain.head = height
            chain.blocks[height] = make_block([transfer_op("a", "b")] * count)
            assert await sched.run_once() is True
        return publisher.get("global_stats")

    snap = asyncio.run(scenario())
    assert snap.version == 12
    assert snap.data.tx_series == tuple(TX_COUNTS)
    assert snap.data.current_transactions == TX_COUNTS[-1]


def test_tx_series_caps_at_thirty_samples():
    chain = FakeChain(head=0)

    async def scenario():
        publisher = SnapshotPublisher()
        job = GlobalStatsJob(ChainReader(chain), latest_blocks=1, tx_sample_blocks=1)
        sched = SubsystemScheduler("global_stats", job.refresh, publisher, SchedulerConfig(3))
        for height in range(1, 41):
            chain.head = height
            chain.blocks[height] = make_block([transfer_op("a", "b")] * (height % 5))
            await sched.run_once()
        return publisher.get("global_stats")

    snap = asyncio.run(scenario())
    assert len(snap.data.tx_series) == 30
    assert snap.data.tx_series == tuple(h % 5 for h in range(11, 41))


def test_engine_refreshes_every_subsystem():
    chain = FakeChain()
    _seed(chain)

    async def scenario():
        engine = _engine(chain, hive_username="alice")
        for sched in engine.schedulers.values():
            assert await sched.run_once() is True
        snaps = engine.publisher.all()
        health = engine.health()
        await engine.stop()
        return snaps, health

    snaps, health = asyncio.run(scenario())
    assert set(snaps) == set(SUBSYSTEMS)
    assert all(s.version == 1 and not s.stale for s in snaps.values())
    assert [e.name for e in snaps["rich_list"].data.entries] == ["bob", "alice", "carol"]
    assert snaps["rich_list"].data.entries[0].is_witness is True
    assert snaps["account_stats"].data.name == "alice"
    assert [t.block_num for t in snaps["transaction_stream"].data.transactions] == [19, 19, 19, 18, 18]
    assert health["tracked_account"] == "alice"
    assert health["subsystems"]["rich_list"]["succeeded"] == 1
    assert "endpoint" not in health


def test_one_failing_subsystem_does_not_affect_others():
    chain = FakeChain()
    _seed(chain)
    chain.fail_methods.add("lookup_accounts")

    async def scenario():
        engine = _engine(chain)
        for sched in engine.schedulers.values():
            await sched.run_once()
        return engine.publisher.all()

    snaps = asyncio.run(scenario())
    assert snaps["rich_list"].stale is True
    assert snaps["rich_list"].data is None
    assert snaps["global_stats"].stale is False
    assert snaps["global_stats"].version == 1
    assert snaps["transaction_stream"].version == 1
    # No account tracked: nothing published, nothing stale
    assert snaps["account_stats"].version == 0
    assert snaps["account_stats"].stale is False


def test_login_tracks_account_and_logout_clears_it():
    chain = FakeChain()
    _seed(chain)

    async def scenario():
        engine = _engine(chain)
        signer = FakeSigner()
        assert await engine.session.login("@Alice", signer) is True
        assert engine.tracked_account == "alice"
        await engine.schedulers["account_stats"].run_once()
        logged_in = engine.publisher.get("account_stats")
        engine.session.logout()
        logged_out = engine.publisher.get("account_stats")
        return signer, logged_in, logged_out, engine.tracked_account

    signer, logged_in, logged_out, tracked = asyncio.run(scenario())
    assert signer.requests[0][0] == "alice"
    assert signer.requests[0][2] == "Posting"
    assert logged_in.data.name == "alice"
    assert logged_out.data is None
    assert logged_out.version > logged_in.version
    assert tracked is None


def test_started_engine_publishes_and_stops_cleanly():
    chain = FakeChain()
    _seed(chain)

    async def scenario():
        engine = _engine(chain)
        await engine.start()
        for _ in range(200):
            if engine.publisher.get("global_stats").version >= 1:
                break
            await asyncio.sleep(0.01)
        await engine.stop()
        calls = len(chain.calls)
        await asyncio.sleep(0.05)
        return engine.publisher.get("global_stats"), calls, len(chain.calls)

    snap, calls_at_stop, calls_after = asyncio.run(scenario())
    assert snap.version >= 1
    assert calls_after == calls_at_stop


def test_snapshot_data_is_json_safe():
    chain = FakeChain()
    _seed(chain)

    async def scenario():
        engine = _engine(chain)
        await engine.schedulers["rich_list"].run_once()
        return to_jsonable(engine.publisher.get("rich_list").data)

    data = asyncio.run(scenario())
    assert data["entries"][0]["name"] == "bob"
    assert data["entries"][0]["total_holdings"] == "70.000"
