"""
API server package: read-only HTTP interface over engine snapshots.

Exposes versioned snapshots (global stats, account stats, rich list,
transaction stream) to the presentation layer.
"""
