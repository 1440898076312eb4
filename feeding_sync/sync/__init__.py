"""Synchronization module for Feeding Sync.

Philosophy: REMOTE IS TRUTH, CACHE IS A SNAPSHOT, QUEUE IS INTENT.

This module provides:
- SyncEngine: drains pending mutations, then refreshes the read cache
- FeedingService: create/delete/list entry points with offline fallback

Write order online: remote only.
Write order offline: queue first (must succeed), cache second.
Read order: remote first, cache fallback.
"""

from feeding_sync.sync.engine import SyncEngine, SyncStats
from feeding_sync.sync.mutations import FeedingService

__all__ = [
    "SyncEngine",
    "SyncStats",
    "FeedingService",
]
