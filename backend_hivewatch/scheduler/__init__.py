# Subsystem scheduling: fixed-interval refresh, overlap guard, stale-on-failure.

from backend_hivewatch.scheduler.engine import (
    SchedulerConfig,
    SchedulerState,
    SchedulerStats,
    SubsystemScheduler,
)

__all__ = [
    "SchedulerConfig",
    "SchedulerState",
    "SchedulerStats",
    "SubsystemScheduler",
]
