"""
Refresh jobs: one per subsystem. Each job owns its aggregate stores.

A job's refresh() performs all chain reads first and only then folds the
results into its stores, so a cycle that fails midway leaves the stores
exactly as they were. Missing blocks and malformed accounts are skipped;
node failures (EndpointError) fail the whole cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from backend_hivewatch.aggregates import RecentItems, SlidingWindow
from backend_hivewatch.analysis_engine import (
    BlockSummary,
    RankedEntry,
    active_account_estimate,
    derive_account_metrics,
    extract_transactions,
    rank_accounts,
    summarize_block,
    total_transactions,
)
from backend_hivewatch.chain_reader import Block, ChainProperties, ChainReader, Transaction
from backend_hivewatch.core.exceptions import ComputationError, HiveWatchError, NotFoundError
from backend_hivewatch.hivewatch_logging import get_logger

logger = get_logger(__name__)

SERIES_CAPACITY = 30
LATEST_BLOCKS = 12
TX_SAMPLE_BLOCKS = 5
STREAM_BLOCKS_PER_CYCLE = 3
STREAM_CAPACITY = 100
STREAM_RETRY_DEPTH = 20
RICH_LIST_CANDIDATES = 1000
RICH_LIST_BATCH_SIZE = 100
RICH_LIST_SIZE = 100
WITNESS_LIMIT = 100
HISTORY_LIMIT = 100
ACTIVITY_KINDS = frozenset({"comment", "vote", "transfer"})

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def fetch_blocks(reader: ChainReader, heights: list[int]) -> list[Block]:
    """Fetch blocks one at a time in the given order; absent or malformed blocks are skipped."""
    blocks: list[Block] = []
    for height in heights:
        try:
            blocks.append(await reader.get_block(height))
        except (NotFoundError, ComputationError) as e:
            logger.info("job_block_skipped", height=height, error=str(e))
    return blocks


# -----------------------------------------------------------------------------
# Global stats
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TxHistoryPoint:
    time: str
    transactions: int


@dataclass(frozen=True)
class GlobalStats:
    properties: ChainProperties
    total_accounts: int
    active_accounts: int
    current_transactions: int
    tx_series: tuple[int, ...]
    tx_history: tuple[TxHistoryPoint, ...]
    latest_blocks: tuple[BlockSummary, ...]


class GlobalStatsJob:
    """
    Global properties, account counts, the latest-blocks table and the
    transaction-count trend (30-sample series plus time-labelled history).
    """

    def __init__(
        self,
        reader: ChainReader,
        *,
        latest_blocks: int = LATEST_BLOCKS,
        tx_sample_blocks: int = TX_SAMPLE_BLOCKS,
        series_capacity: int = SERIES_CAPACITY,
        clock: Clock = _utcnow,
    ) -> None:
        if tx_sample_blocks < 1 or latest_blocks < 1:
            raise ValueError("block counts must be >= 1")
        self._reader = reader
        self._latest_blocks = max(latest_blocks, tx_sample_blocks)
        self._tx_sample_blocks = tx_sample_blocks
        self._clock = clock
        self.tx_series: SlidingWindow[int] = SlidingWindow(series_capacity)
        self.tx_history: SlidingWindow[TxHistoryPoint] = SlidingWindow(series_capacity)

    async def refresh(self) -> GlobalStats:
        props = await self._reader.get_dynamic_global_properties()
        total_accounts = await self._reader.get_account_count()
        head = props.head_block_number
        heights = [head - i for i in range(self._latest_blocks) if head - i > 0]
        blocks = await fetch_blocks(self._reader, heights)

        sample_floor = head - self._tx_sample_blocks
        tx_count = total_transactions(b for b in blocks if b.height > sample_floor)
        self.tx_series.append(tx_count)
        self.tx_history.append(TxHistoryPoint(time=self._clock().strftime("%H:%M:%S"), transactions=tx_count))
        return GlobalStats(
            properties=props,
            total_accounts=total_accounts,
            active_accounts=active_account_estimate(total_accounts),
            current_transactions=tx_count,
            tx_series=self.tx_series.snapshot(),
            tx_history=self.tx_history.snapshot(),
            latest_blocks=tuple(summarize_block(b) for b in blocks),
        )


# -----------------------------------------------------------------------------
# Account stats
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountStats:
    name: str
    post_count: int
    followers: int
    following: int
    reputation: int
    balance: str
    hbd_balance: str
    voting_power: int
    vesting_liquid: Decimal
    total_holdings: Decimal
    last_active: str
    recent_activity: int


def _last_active(last_post: str, created: str) -> str:
    """Date of the last post, or account creation when the account never posted."""
    value = last_post if last_post and not last_post.startswith("1970-01-01") else created
    return value.split("T", 1)[0]


class AccountStatsJob:
    """Personal analytics for the tracked (logged-in) account. Publishes nothing while no account is tracked."""

    def __init__(
        self,
        reader: ChainReader,
        username: Callable[[], str | None],
        *,
        history_limit: int = HISTORY_LIMIT,
        clock: Clock = _utcnow,
    ) -> None:
        self._reader = reader
        self._username = username
        self._history_limit = history_limit
        self._clock = clock

    async def refresh(self) -> AccountStats | None:
        name = self._username()
        if not name:
            return None
        props = await self._reader.get_dynamic_global_properties()
        account = await self._reader.get_account(name)
        try:
            follow = await self._reader.get_follow_count(name)
            followers, following = follow.follower_count, follow.following_count
        except HiveWatchError as e:
            logger.warning("job_follow_count_failed", account=name, error=str(e))
            followers, following = 0, 0
        history = await self._reader.get_account_history(name, -1, self._history_limit)
        recent_activity = sum(1 for h in history if h.kind in ACTIVITY_KINDS)

        if self._username() != name:
            logger.info("job_account_changed_mid_cycle", account=name)
            return None
        metrics = derive_account_metrics(account, props, now=self._clock())
        return AccountStats(
            name=account.name,
            post_count=account.post_count,
            followers=followers,
            following=following,
            reputation=metrics.reputation,
            balance=account.balance,
            hbd_balance=account.hbd_balance,
            voting_power=metrics.voting_power,
            vesting_liquid=metrics.vesting_liquid,
            total_holdings=metrics.total_holdings,
            last_active=_last_active(account.last_post, account.created),
            recent_activity=recent_activity,
        )


# -----------------------------------------------------------------------------
# Rich list
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class RichList:
    entries: tuple[RankedEntry, ...]
    current_supply: str
    total_vesting_fund_hive: str
    total_vesting_shares: str
    candidates: int


class RichListJob:
    """Top accounts by total holdings among the first `candidates` known account names."""

    def __init__(
        self,
        reader: ChainReader,
        *,
        candidates: int = RICH_LIST_CANDIDATES,
        batch_size: int = RICH_LIST_BATCH_SIZE,
        size: int = RICH_LIST_SIZE,
        witness_limit: int = WITNESS_LIMIT,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._reader = reader
        self._candidates = candidates
        self._batch_size = batch_size
        self._size = size
        self._witness_limit = witness_limit

    async def refresh(self) -> RichList:
        props = await self._reader.get_dynamic_global_properties()
        witnesses = await self._reader.get_witnesses_by_vote("", self._witness_limit)
        names = await self._reader.lookup_accounts("", self._candidates)
        accounts = []
        for start in range(0, len(names), self._batch_size):
            accounts.extend(await self._reader.get_accounts(names[start : start + self._batch_size]))
        entries = rank_accounts(accounts, props, witnesses, limit=self._size)
        logger.info(
            "job_rich_list_ranked",
            candidates=len(names),
            fetched=len(accounts),
            ranked=len(entries),
            witnesses=len(witnesses),
        )
        return RichList(
            entries=tuple(entries),
            current_supply=props.current_supply,
            total_vesting_fund_hive=props.total_vesting_fund_hive,
            total_vesting_shares=props.total_vesting_shares,
            candidates=len(names),
        )


# -----------------------------------------------------------------------------
# Transaction stream
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TransactionStream:
    operation: str
    transactions: tuple[Transaction, ...]
    last_block: int | None


class TransactionStreamJob:
    """
    Recent transactions of one operation kind from the newest blocks.

    Each cycle reads the `blocks_per_cycle` newest blocks (head first) and
    prepends matching transactions to a window capped at `capacity`. Blocks
    at or below the highest height already folded in are not read again.
    A block skipped below that height is retried on later cycles while it is
    within `retry_depth` blocks of head.
    """

    def __init__(
        self,
        reader: ChainReader,
        *,
        operation: str = "transfer",
        blocks_per_cycle: int = STREAM_BLOCKS_PER_CYCLE,
        capacity: int = STREAM_CAPACITY,
        retry_depth: int = STREAM_RETRY_DEPTH,
    ) -> None:
        self._reader = reader
        self._operation = operation
        self._blocks_per_cycle = blocks_per_cycle
        self._retry_depth = retry_depth
        self.recent: RecentItems[Transaction] = RecentItems(capacity)
        self._last_height: int | None = None
        self._missed: set[int] = set()

    @property
    def missed_heights(self) -> tuple[int, ...]:
        return tuple(sorted(self._missed, reverse=True))

    async def refresh(self) -> TransactionStream:
        props = await self._reader.get_dynamic_global_properties()
        head = props.head_block_number
        floor = self._last_height or 0
        retry_floor = head - self._retry_depth
        fresh = {h for h in (head - i for i in range(self._blocks_per_cycle)) if h > floor and h > 0}
        heights = sorted(fresh | {h for h in self._missed if h > retry_floor}, reverse=True)
        blocks = await fetch_blocks(self._reader, heights)

        added = self.recent.prepend(extract_transactions(blocks, self._operation))
        fetched = {b.height for b in blocks}
        if blocks:
            self._last_height = max(floor, max(fetched))
        watermark = self._last_height or 0
        # heights above the watermark are read again as fresh heights
        self._missed = {h for h in heights if h not in fetched and retry_floor < h < watermark}
        if added:
            logger.debug("job_stream_prepended", added=added, head=head, window=len(self.recent))
        if self._missed:
            logger.info("job_stream_blocks_pending", heights=self.missed_heights, head=head)
        return TransactionStream(
            operation=self._operation,
            transactions=self.recent.snapshot(),
            last_block=self._last_height,
        )
