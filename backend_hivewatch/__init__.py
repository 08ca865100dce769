"""
Backend HiveWatch: live analytics over the Hive blockchain.

Polls a pool of read-only Hive API nodes, derives account metrics, a rich
list and transaction trends, and publishes immutable snapshots for the
presentation layer. Modular architecture with clear separation between
RPC pool, chain reader, analysis engine, scheduler and API server.
"""

__version__ = "0.1.0"
