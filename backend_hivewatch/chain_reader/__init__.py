"""
Chain reader package.

Typed request functions (global properties, blocks, accounts, follow counts,
witnesses, account lookup) built atop the endpoint pool.
"""

from backend_hivewatch.chain_reader.models import (
    Account,
    AccountHistoryEntry,
    Block,
    BlockTransaction,
    ChainProperties,
    Discussion,
    FollowCount,
    Operation,
    Transaction,
)
from backend_hivewatch.chain_reader.reader import ChainReader

__all__ = [
    "Account",
    "AccountHistoryEntry",
    "Block",
    "BlockTransaction",
    "ChainProperties",
    "ChainReader",
    "Discussion",
    "FollowCount",
    "Operation",
    "Transaction",
]
