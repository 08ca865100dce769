"""
Agent worker package: 24/7 background orchestration.

Wires the endpoint pool, chain reader, refresh jobs and subsystem
schedulers; runs them concurrently and coordinates shutdown.
"""

from backend_hivewatch.agent_worker.runtime import SUBSYSTEMS, HiveWatchEngine

__all__ = ["SUBSYSTEMS", "HiveWatchEngine"]
