"""On-device storage for Feeding Sync.

This package provides:
- PendingQueue: durable SQLite queue of offline mutations (source of pending intent)
- ReadCache: replaceable JSON snapshot of feedings for instant reads
"""

from feeding_sync.storage.pending_queue import PendingQueue
from feeding_sync.storage.read_cache import ReadCache

__all__ = [
    "PendingQueue",
    "ReadCache",
]
