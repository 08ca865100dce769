# Bounded aggregate stores: sliding windows, capped recent lists, top-N ranking.

from backend_hivewatch.aggregates.window import RecentItems, SlidingWindow, ranked_top_n

__all__ = [
    "RecentItems",
    "SlidingWindow",
    "ranked_top_n",
]
