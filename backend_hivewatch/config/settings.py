"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Validate required settings and provide defaults for optional ones.
- Expose typed settings (node list, timeouts, refresh intervals, API port)
  for use across the RPC pool, scheduler, engine and API server.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from backend_hivewatch.config.env import (
    DEFAULT_FAILOVER_THRESHOLD,
    DEFAULT_HIVE_NODES,
    DEFAULT_RPC_TIMEOUT_SEC,
    get_env_float,
    get_env_int,
    get_env_str,
    get_hive_nodes,
    get_tracked_username,
)

DEFAULT_GLOBAL_STATS_INTERVAL_SEC = 3.0
DEFAULT_ACCOUNT_STATS_INTERVAL_SEC = 3.0
DEFAULT_TRANSACTION_STREAM_INTERVAL_SEC = 3.0
DEFAULT_RICH_LIST_INTERVAL_SEC = 60.0
DEFAULT_CYCLE_TIMEOUT_SEC = 30.0
DEFAULT_STREAM_OPERATION = "transfer"


@dataclass
class Settings:
    """Typed view of the environment; see config.env for variable names."""

    hive_nodes: list[str] = field(default_factory=lambda: list(DEFAULT_HIVE_NODES))
    rpc_timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC
    failover_threshold: int = DEFAULT_FAILOVER_THRESHOLD
    global_stats_interval_sec: float = DEFAULT_GLOBAL_STATS_INTERVAL_SEC
    account_stats_interval_sec: float = DEFAULT_ACCOUNT_STATS_INTERVAL_SEC
    transaction_stream_interval_sec: float = DEFAULT_TRANSACTION_STREAM_INTERVAL_SEC
    rich_list_interval_sec: float = DEFAULT_RICH_LIST_INTERVAL_SEC
    cycle_timeout_sec: float = DEFAULT_CYCLE_TIMEOUT_SEC
    stream_operation: str = DEFAULT_STREAM_OPERATION
    hive_username: str | None = None
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    def __post_init__(self) -> None:
        if not self.hive_nodes:
            raise ValueError("hive_nodes must be non-empty")
        if self.rpc_timeout_sec <= 0:
            raise ValueError("rpc_timeout_sec must be positive")
        if self.failover_threshold < 1:
            raise ValueError("failover_threshold must be >= 1")
        for name in (
            "global_stats_interval_sec",
            "account_stats_interval_sec",
            "transaction_stream_interval_sec",
            "rich_list_interval_sec",
            "cycle_timeout_sec",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")


def get_settings() -> Settings:
    """
    Return the current application settings.

    Returns:
        Settings built from environment variables (and .env), with defaults
        matching the public Hive dashboard: 8 s node timeout, rotate after 3
        failures, 3 s refresh for live views, 60 s for the rich list.
    """
    return Settings(
        hive_nodes=get_hive_nodes(),
        rpc_timeout_sec=get_env_float("RPC_TIMEOUT_SEC", DEFAULT_RPC_TIMEOUT_SEC),
        failover_threshold=get_env_int("FAILOVER_THRESHOLD", DEFAULT_FAILOVER_THRESHOLD),
        global_stats_interval_sec=get_env_float("GLOBAL_STATS_INTERVAL_SEC", DEFAULT_GLOBAL_STATS_INTERVAL_SEC),
        account_stats_interval_sec=get_env_float("ACCOUNT_STATS_INTERVAL_SEC", DEFAULT_ACCOUNT_STATS_INTERVAL_SEC),
        transaction_stream_interval_sec=get_env_float(
            "TRANSACTION_STREAM_INTERVAL_SEC", DEFAULT_TRANSACTION_STREAM_INTERVAL_SEC
        ),
        rich_list_interval_sec=get_env_float("RICH_LIST_INTERVAL_SEC", DEFAULT_RICH_LIST_INTERVAL_SEC),
        cycle_timeout_sec=get_env_float("CYCLE_TIMEOUT_SEC", DEFAULT_CYCLE_TIMEOUT_SEC),
        stream_operation=get_env_str("STREAM_OPERATION", DEFAULT_STREAM_OPERATION),
        hive_username=get_tracked_username(),
        api_host=get_env_str("API_HOST", "0.0.0.0"),
        api_port=get_env_int("API_PORT", 8000),
    )
