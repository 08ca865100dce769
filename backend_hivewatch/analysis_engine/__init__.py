"""
Analysis engine package: account metrics, rich list ranking and block extraction.

Consumes typed chain records and produces derived metrics (reputation,
voting power, vesting conversion, total holdings), ranked rich list rows
and transaction stream entries.
"""

from backend_hivewatch.analysis_engine.metrics import (
    Asset,
    DerivedAccountMetrics,
    active_account_estimate,
    current_voting_power,
    derive_account_metrics,
    display_reputation,
    reputation_score,
    total_holdings,
    vesting_to_liquid,
    voting_power_percent,
)
from backend_hivewatch.analysis_engine.rich_list import RankedEntry, rank_accounts
from backend_hivewatch.analysis_engine.block_stats import (
    BlockSummary,
    extract_transactions,
    summarize_block,
    total_transactions,
)

__all__ = [
    "Asset",
    "DerivedAccountMetrics",
    "active_account_estimate",
    "current_voting_power",
    "derive_account_metrics",
    "display_reputation",
    "reputation_score",
    "total_holdings",
    "vesting_to_liquid",
    "voting_power_percent",
    "RankedEntry",
    "rank_accounts",
    "BlockSummary",
    "extract_transactions",
    "summarize_block",
    "total_transactions",
]
