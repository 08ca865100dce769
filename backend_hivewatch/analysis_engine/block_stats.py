"""
Block-level extraction: transactions of interest and per-block summaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from backend_hivewatch.chain_reader.models import Block, Transaction

DEFAULT_STREAM_OPERATION = "transfer"


@dataclass(frozen=True)
class BlockSummary:
    """Row of the latest-blocks table."""

    height: int
    timestamp: str
    witness: str
    transactions: int
    votes: int
    comments: int


def summarize_block(block: Block) -> BlockSummary:
    return BlockSummary(
        height=block.height,
        timestamp=block.timestamp,
        witness=block.witness,
        transactions=block.tx_count,
        votes=block.count_first_op("vote"),
        comments=block.count_first_op("comment"),
    )


def extract_transactions(blocks: Iterable[Block], operation: str = DEFAULT_STREAM_OPERATION) -> list[Transaction]:
    """
    Flatten transactions whose first operation is `operation`, in the order
    the blocks are given (callers pass most recent block first); within a
    block, transactions keep their on-chain order.
    """
    out: list[Transaction] = []
    for block in blocks:
        for tx in block.transactions:
            if tx.first_kind != operation:
                continue
            body = tx.operations[0].body
            memo = body.get("memo")
            out.append(
                Transaction(
                    block_num=block.height,
                    timestamp=block.timestamp,
                    type=operation,
                    from_account=str(body.get("from", "")),
                    to_account=str(body.get("to", "")),
                    amount=str(body.get("amount", "")),
                    memo=None if memo is None else str(memo),
                )
            )
    return out


def total_transactions(blocks: Iterable[Block]) -> int:
    return sum(block.tx_count for block in blocks)
