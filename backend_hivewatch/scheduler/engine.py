"""
Per-subsystem refresh scheduler: fixed interval, overlap prevention, stale-on-failure.

State machine per subsystem: IDLE -> FETCHING -> IDLE. A timer tick that
arrives while the previous cycle is still FETCHING is skipped, not queued,
so there is never more than one outstanding fetch per subsystem.

On success the refresh result is published (new snapshot version). On
failure the previous snapshot data is kept and flagged stale; other
subsystems are unaffected. Failures are retried only by the next tick.
stop() cancels the timer and any in-flight cycle; results that arrive
after stop are discarded.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from backend_hivewatch.core.exceptions import HiveWatchError
from backend_hivewatch.hivewatch_logging import bind_subsystem
from backend_hivewatch.snapshot import SnapshotPublisher


DEFAULT_CYCLE_TIMEOUT_SEC = 30.0

RefreshFn = Callable[[], Awaitable[Any]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"


@dataclass
class SchedulerConfig:
    """Timing for one subsystem."""

    interval_sec: float
    cycle_timeout_sec: float = DEFAULT_CYCLE_TIMEOUT_SEC

    def __post_init__(self) -> None:
        if self.interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        if self.cycle_timeout_sec <= 0:
            raise ValueError("cycle_timeout_sec must be positive")


@dataclass
class SchedulerStats:
    """Counters for health reporting."""

    started: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    last_outcome: str | None = None
    last_duration_sec: float | None = None


class SubsystemScheduler:
    """
    Drives one subsystem's refresh function on a fixed interval.

    refresh() returns the data to publish, or None when there is nothing to
    publish this cycle (e.g. no account is tracked).
    """

    def __init__(
        self,
        name: str,
        refresh: RefreshFn,
        publisher: SnapshotPublisher,
        config: SchedulerConfig,
    ) -> None:
        self.name = name
        self._refresh = refresh
        self._publisher = publisher
        self._config = config
        self._state = SchedulerState.IDLE
        self._closed = False
        self._timer_task: asyncio.Task[None] | None = None
        self._cycle_task: asyncio.Task[bool] | None = None
        self._stop_event = asyncio.Event()
        self.stats = SchedulerStats()
        self._log = bind_subsystem(name, __name__)
        publisher.register(name)

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def interval_sec(self) -> float:
        return self._config.interval_sec

    def trigger(self) -> bool:
        """
        Start a cycle in the background unless one is already FETCHING.
        Returns True if a cycle was started, False if the tick was skipped.
        """
        if self._closed:
            return False
        if self._state is SchedulerState.FETCHING:
            self.stats.skipped += 1
            self._log.debug("scheduler_cycle_skipped", skipped_total=self.stats.skipped)
            return False
        self._state = SchedulerState.FETCHING
        self._cycle_task = asyncio.create_task(self._cycle(), name=f"refresh-{self.name}")
        return True

    async def run_once(self) -> bool:
        """Run one cycle inline and return True on success. Skips (False) if a cycle is already in flight."""
        if self._closed or self._state is SchedulerState.FETCHING:
            self.stats.skipped += 1
            return False
        self._state = SchedulerState.FETCHING
        return await self._cycle()

    async def _cycle(self) -> bool:
        self.stats.started += 1
        started = time.monotonic()
        try:
            data = await asyncio.wait_for(self._refresh(), timeout=self._config.cycle_timeout_sec)
        except asyncio.TimeoutError:
            self._on_failure(f"refresh timed out after {self._config.cycle_timeout_sec}s", started)
            return False
        except HiveWatchError as e:
            self._on_failure(str(e) or type(e).__name__, started)
            return False
        except Exception as e:
            self._log.exception("scheduler_cycle_crashed", error=str(e))
            self._on_failure(str(e) or type(e).__name__, started)
            return False
        finally:
            self._state = SchedulerState.IDLE

        duration = time.monotonic() - started
        self.stats.last_duration_sec = round(duration, 3)
        if self._closed:
            self._log.info("scheduler_result_discarded")
            return False
        self.stats.succeeded += 1
        self.stats.last_outcome = "success"
        if data is None:
            return True
        snap = self._publisher.publish(self.name, data)
        self._log.debug(
            "scheduler_cycle_done",
            version=snap.version,
            duration_sec=self.stats.last_duration_sec,
        )
        return True

    def _on_failure(self, error: str, started: float) -> None:
        self.stats.last_duration_sec = round(time.monotonic() - started, 3)
        if self._closed:
            return
        self.stats.failed += 1
        self.stats.last_outcome = "failure"
        snap = self._publisher.mark_failed(self.name, error)
        self._log.warning(
            "scheduler_cycle_failed",
            error=error,
            version=snap.version,
            failed_total=self.stats.failed,
        )

    async def _run_timer(self) -> None:
        self._log.info("scheduler_started", interval_sec=self._config.interval_sec)
        while not self._stop_event.is_set():
            self.trigger()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._config.interval_sec)
            except asyncio.TimeoutError:
                pass
        self._log.info("scheduler_timer_exited")

    def start(self) -> None:
        """Start the repeating timer on the running event loop; first tick fires immediately."""
        if self._closed:
            raise RuntimeError(f"scheduler {self.name} is stopped")
        if self._timer_task is None:
            self._timer_task = asyncio.create_task(self._run_timer(), name=f"timer-{self.name}")

    async def stop(self) -> None:
        """Cancel the timer and any in-flight cycle; late results are discarded."""
        self._closed = True
        self._stop_event.set()
        for task in (self._timer_task, self._cycle_task):
            if task is not None and not task.done():
                task.cancel()
        for task in (self._timer_task, self._cycle_task):
            if task is None:
                continue
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._state = SchedulerState.IDLE
        self._log.info(
            "scheduler_stopped",
            started=self.stats.started,
            succeeded=self.stats.succeeded,
            failed=self.stats.failed,
            skipped=self.stats.skipped,
        )
