"""
Engine runtime: endpoint pool + chain reader + refresh jobs + schedulers + publisher.

Runs all subsystem schedulers as concurrent tasks on one event loop. Each
subsystem refreshes independently; a failure in one only marks that
subsystem's snapshot stale. The engine never terminates on chain errors.

Usage: python -m backend_hivewatch.agent_worker.runtime
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Any

from backend_hivewatch.agent_worker.jobs import (
    AccountStatsJob,
    GlobalStatsJob,
    RichListJob,
    TransactionStreamJob,
)
from backend_hivewatch.chain_reader import ChainReader
from backend_hivewatch.config import Settings, get_settings
from backend_hivewatch.hivewatch_logging import get_logger
from backend_hivewatch.identity import IdentitySession
from backend_hivewatch.rpc import EndpointPool
from backend_hivewatch.scheduler import SchedulerConfig, SubsystemScheduler
from backend_hivewatch.snapshot import SnapshotPublisher

logger = get_logger(__name__)

SUBSYSTEM_GLOBAL_STATS = "global_stats"
SUBSYSTEM_ACCOUNT_STATS = "account_stats"
SUBSYSTEM_RICH_LIST = "rich_list"
SUBSYSTEM_TRANSACTION_STREAM = "transaction_stream"
SUBSYSTEMS = (
    SUBSYSTEM_GLOBAL_STATS,
    SUBSYSTEM_ACCOUNT_STATS,
    SUBSYSTEM_RICH_LIST,
    SUBSYSTEM_TRANSACTION_STREAM,
)


class HiveWatchEngine:
    """
    Owns every engine component. Jobs (and their stores) are written only by
    their scheduler; the publisher is the only thing readers touch.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        pool: EndpointPool | None = None,
        reader: ChainReader | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings
        self._owns_pool = pool is None and reader is None
        self.pool = pool
        if self._owns_pool:
            self.pool = EndpointPool(
                s.hive_nodes,
                failover_threshold=s.failover_threshold,
                timeout_sec=s.rpc_timeout_sec,
            )
        self.reader = reader or ChainReader(self.pool)
        self.publisher = SnapshotPublisher(SUBSYSTEMS)
        self._tracked_account: str | None = s.hive_username
        self.session = IdentitySession(self.reader, on_change=self._on_identity_change)

        self.global_stats = GlobalStatsJob(self.reader)
        self.account_stats = AccountStatsJob(self.reader, lambda: self._tracked_account)
        self.rich_list = RichListJob(self.reader)
        self.transaction_stream = TransactionStreamJob(self.reader, operation=s.stream_operation)

        def _cfg(interval: float) -> SchedulerConfig:
            return SchedulerConfig(interval_sec=interval, cycle_timeout_sec=s.cycle_timeout_sec)

        self.schedulers: dict[str, SubsystemScheduler] = {
            SUBSYSTEM_GLOBAL_STATS: SubsystemScheduler(
                SUBSYSTEM_GLOBAL_STATS, self.global_stats.refresh, self.publisher, _cfg(s.global_stats_interval_sec)
            ),
            SUBSYSTEM_ACCOUNT_STATS: SubsystemScheduler(
                SUBSYSTEM_ACCOUNT_STATS, self.account_stats.refresh, self.publisher, _cfg(s.account_stats_interval_sec)
            ),
            SUBSYSTEM_RICH_LIST: SubsystemScheduler(
                SUBSYSTEM_RICH_LIST, self.rich_list.refresh, self.publisher, _cfg(s.rich_list_interval_sec)
            ),
            SUBSYSTEM_TRANSACTION_STREAM: SubsystemScheduler(
                SUBSYSTEM_TRANSACTION_STREAM,
                self.transaction_stream.refresh,
                self.publisher,
                _cfg(s.transaction_stream_interval_sec),
            ),
        }
        self._started = False

    @property
    def tracked_account(self) -> str | None:
        return self._tracked_account

    def track_account(self, username: str | None) -> None:
        """Switch the account-stats subsystem to a trusted username (None stops tracking)."""
        name = username.strip().lstrip("@").lower() if username else None
        name = name or None
        if name == self._tracked_account:
            return
        self._tracked_account = name
        self.publisher.clear(SUBSYSTEM_ACCOUNT_STATS)
        logger.info("engine_account_tracked", account=name)
        if name and self._started:
            self.schedulers[SUBSYSTEM_ACCOUNT_STATS].trigger()

    def _on_identity_change(self, username: str | None) -> None:
        self.track_account(username)

    async def start(self) -> None:
        """Start every subsystem timer on the running loop."""
        if self._started:
            return
        self._started = True
        for scheduler in self.schedulers.values():
            scheduler.start()
        logger.info(
            "engine_started",
            subsystems=list(self.schedulers),
            nodes=self.settings.hive_nodes,
            tracked_account=self._tracked_account,
        )

    async def stop(self) -> None:
        """Stop issuing calls, cancel in-flight refreshes, close the HTTP client."""
        await asyncio.gather(*(s.stop() for s in self.schedulers.values()))
        if self._owns_pool and self.pool is not None:
            await self.pool.aclose()
        self._started = False
        logger.info("engine_stopped")

    def health(self) -> dict[str, Any]:
        """Scheduler counters and pool state for monitoring."""
        out: dict[str, Any] = {
            "tracked_account": self._tracked_account,
            "subsystems": {
                name: {
                    "state": s.state.value,
                    "interval_sec": s.interval_sec,
                    "started": s.stats.started,
                    "succeeded": s.stats.succeeded,
                    "failed": s.stats.failed,
                    "skipped": s.stats.skipped,
                    "last_outcome": s.stats.last_outcome,
                }
                for name, s in self.schedulers.items()
            },
        }
        if self.pool is not None:
            out["endpoint"] = self.pool.current_url
            out["endpoint_failures"] = self.pool.failure_counts()
        return out


async def run_forever(settings: Settings | None = None) -> None:
    """Run the engine until SIGINT/SIGTERM."""
    engine = HiveWatchEngine(settings)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows or not in main thread
            pass
    await engine.start()
    try:
        await stop_event.wait()
    finally:
        await engine.stop()


def main() -> int:
    """CLI entrypoint: load settings from env and run the engine."""
    try:
        asyncio.run(run_forever())
        return 0
    except KeyboardInterrupt:
        logger.info("runtime_shutdown_signal")
        return 0
    except Exception as e:
        logger.exception("runtime_fatal", error=str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
