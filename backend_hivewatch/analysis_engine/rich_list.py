"""
Rich list ranking: top accounts by total holdings (liquid HIVE + vesting HIVE).

Ordering key is total holdings, descending. Ties keep fetch order (stable
sort); no secondary key is invented. Accounts whose balances cannot be
computed are skipped and the rest of the batch is ranked normally.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from backend_hivewatch.aggregates import ranked_top_n
from backend_hivewatch.analysis_engine.metrics import (
    Asset,
    display_reputation,
    total_holdings,
    vesting_to_liquid,
)
from backend_hivewatch.chain_reader.models import Account, ChainProperties
from backend_hivewatch.core.exceptions import ComputationError
from backend_hivewatch.hivewatch_logging import get_logger

logger = get_logger(__name__)

RICH_LIST_SIZE = 100


@dataclass(frozen=True)
class RankedEntry:
    """One rich list row."""

    rank: int
    name: str
    total_holdings: Decimal
    balance: str
    vesting_shares: str
    vesting_liquid: Decimal
    hbd_balance: str
    reputation: int
    post_count: int
    is_witness: bool


def rank_accounts(
    accounts: Iterable[Account],
    props: ChainProperties,
    witnesses: Iterable[str],
    limit: int = RICH_LIST_SIZE,
) -> list[RankedEntry]:
    """
    Compute holdings for each account and return the top `limit` entries.

    is_witness is true iff the name is in the supplied witness list (the
    top 100 by vote); lower-ranked witnesses are reported as non-witnesses.
    Returns fewer than `limit` entries when fewer accounts are available.
    """
    witness_set = frozenset(witnesses)
    rows: list[tuple[Decimal, Decimal, int, Account]] = []
    skipped = 0
    for account in accounts:
        try:
            vesting_liquid = vesting_to_liquid(
                account.vesting_shares, props.total_vesting_fund_hive, props.total_vesting_shares
            )
            total = total_holdings(Asset.parse(account.balance).amount, vesting_liquid)
            reputation = display_reputation(account.reputation)
        except ComputationError as e:
            skipped += 1
            logger.warning("rich_list_account_skipped", account=account.name, error=str(e))
            continue
        rows.append((total, vesting_liquid, reputation, account))

    top = ranked_top_n(rows, key=lambda row: row[0], n=limit)
    entries: list[RankedEntry] = []
    for rank, (total, vesting_liquid, reputation, account) in enumerate(top, start=1):
        entries.append(
            RankedEntry(
                rank=rank,
                name=account.name,
                total_holdings=total,
                balance=account.balance,
                vesting_shares=account.vesting_shares,
                vesting_liquid=vesting_liquid,
                hbd_balance=account.hbd_balance,
                reputation=reputation,
                post_count=account.post_count,
                is_witness=account.name in witness_set,
            )
        )
    if skipped:
        logger.info("rich_list_ranked", ranked=len(entries), skipped=skipped)
    return entries
