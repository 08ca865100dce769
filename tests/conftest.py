"""
Pytest fixtures for HiveWatch tests. Chain data comes from hive_fakes.FakeChain.
"""

from __future__ import annotations

import pytest

from backend_hivewatch.chain_reader import ChainReader
from hive_fakes import FakeChain


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def reader(chain: FakeChain) -> ChainReader:
    return ChainReader(chain)


@pytest.fixture
def client(chain):
    """
    FastAPI TestClient with the engine reading from FakeChain.
    Long intervals: each subsystem refreshes once at startup.
    """
    from fastapi.testclient import TestClient

    from backend_hivewatch.agent_worker import HiveWatchEngine
    from backend_hivewatch.api_server.server import create_app
    from backend_hivewatch.config import Settings

    def engine_factory() -> HiveWatchEngine:
        settings = Settings(
            hive_nodes=["https://unused.test"],
            global_stats_interval_sec=3600,
            account_stats_interval_sec=3600,
            transaction_stream_interval_sec=3600,
            rich_list_interval_sec=3600,
        )
        return HiveWatchEngine(settings, reader=ChainReader(chain))

    with TestClient(create_app(engine_factory)) as test_client:
        yield test_client
