"""Sync engine for Feeding Sync.

Philosophy: REMOTE IS TRUTH, CACHE IS A SNAPSHOT, QUEUE IS INTENT.

SyncEngine.sync_pending_changes:
- drain: apply every queued mutation to the remote store, independently
- refresh: replace the read cache with the remote record set

At most one sync runs at a time within a process. A second trigger while a
sync is running returns immediately instead of waiting.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from feeding_sync.connectivity import ConnectivityWatcher
from feeding_sync.errors import RemoteFailure
from feeding_sync.events import EventBus, SYNC_FINISHED, SYNC_STARTED
from feeding_sync.models import MutationAction, PendingMutation
from feeding_sync.remote.base import RemoteStore
from feeding_sync.storage.pending_queue import PendingQueue
from feeding_sync.storage.read_cache import ReadCache

logger = logging.getLogger(__name__)


@dataclass
class SyncStats:
    """Statistics from a sync pass."""

    skipped: bool = False
    skip_reason: Optional[str] = None  # "in_flight" or "offline"

    # Drain counts
    attempted: int = 0
    created: int = 0
    deleted: int = 0
    failed: int = 0
    failed_ids: List[str] = field(default_factory=list)

    # Refresh
    cache_refreshed: bool = False
    records_cached: int = 0

    # Timing
    started_at: float = 0.0
    completed_at: float = 0.0
    duration_ms: float = 0.0

    # Errors
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if the pass ran, every entry applied and the cache refreshed."""
        return not self.skipped and self.failed == 0 and self.cache_refreshed

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "success": self.success,
            "skipped": self.skipped,
            "skip_reason": self.skip_reason,
            "attempted": self.attempted,
            "created": self.created,
            "deleted": self.deleted,
            "failed": self.failed,
            "failed_ids": self.failed_ids,
            "cache_refreshed": self.cache_refreshed,
            "records_cached": self.records_cached,
            "duration_ms": self.duration_ms,
            "errors": self.errors,
        }


class SyncEngine:
    """Drains pending mutations and refreshes the read cache.

    Attributes:
        queue: Durable pending queue
        cache: Local read cache
        remote: Remote feeding store
        connectivity: Anything exposing ``is_online``
        events: Optional bus for sync notifications
    """

    def __init__(
        self,
        queue: PendingQueue,
        cache: ReadCache,
        remote: RemoteStore,
        connectivity: ConnectivityWatcher,
        events: Optional[EventBus] = None,
    ):
        self.queue = queue
        self.cache = cache
        self.remote = remote
        self.connectivity = connectivity
        self.events = events

        self._sync_lock = threading.Lock()
        self.last_stats: Optional[SyncStats] = None

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    def sync_pending_changes(self) -> SyncStats:
        """Drain the pending queue, then refresh the cache from the remote store.

        Returns immediately (``skipped=True``) when offline or when another
        sync is in flight. Remote failures on single entries are recorded and
        leave those entries queued for the next pass.

        Returns:
            SyncStats with operation details

        Raises:
            StorageFailure: If the pending queue cannot be read or updated
        """
        if not self.connectivity.is_online:
            logger.debug("Sync skipped: offline")
            return SyncStats(skipped=True, skip_reason="offline")

        if not self._sync_lock.acquire(blocking=False):
            logger.debug("Sync skipped: already in flight")
            return SyncStats(skipped=True, skip_reason="in_flight")

        stats = SyncStats(started_at=time.time())
        try:
            logger.info("Starting sync")
            self._publish(SYNC_STARTED)

            for mutation in self.queue.list_all():
                self._apply(mutation, stats)

            self._refresh(stats)
        finally:
            self._sync_lock.release()
            self._finalize_stats(stats)

        return stats

    def refresh_cache(self) -> bool:
        """Replace the read cache with the remote record set.

        No-op when offline. On failure the existing cache is left untouched.

        Returns:
            True if the cache was replaced
        """
        if not self.connectivity.is_online:
            return False
        stats = SyncStats()
        self._refresh(stats)
        return stats.cache_refreshed

    def _apply(self, mutation: PendingMutation, stats: SyncStats) -> None:
        """Apply one queued mutation remotely, removing it on success."""
        stats.attempted += 1
        try:
            if mutation.action is MutationAction.CREATE:
                self.remote.upsert(mutation.record)
            else:
                self.remote.delete(mutation.id)
        except RemoteFailure as e:
            stats.failed += 1
            stats.failed_ids.append(mutation.id)
            stats.errors.append(f"{mutation.action.value} {mutation.id}: {e}")
            logger.warning(f"Failed to sync {mutation.action.value} {mutation.id}, keeping it queued: {e}")
            return

        mutation.synced = True
        if not self.queue.discard(mutation):
            logger.debug(f"Newer change queued for {mutation.id} during sync, keeping it")
        if mutation.action is MutationAction.CREATE:
            stats.created += 1
        else:
            stats.deleted += 1
        logger.debug(f"Synced {mutation.action.value}: {mutation.id}")

    def _refresh(self, stats: SyncStats) -> None:
        try:
            records = self.remote.fetch_all()
        except RemoteFailure as e:
            stats.errors.append(f"refresh: {e}")
            logger.error(f"Cache refresh failed, keeping existing cache: {e}")
            return

        self.cache.replace_all(records)
        stats.cache_refreshed = True
        stats.records_cached = len(records)
        logger.debug(f"Cache refreshed with {len(records)} records")

    def _finalize_stats(self, stats: SyncStats) -> SyncStats:
        """Finalize stats with timing info and report them."""
        stats.completed_at = time.time()
        stats.duration_ms = (stats.completed_at - stats.started_at) * 1000
        self.last_stats = stats

        logger.info(
            f"Sync complete: "
            f"{stats.created} created, "
            f"{stats.deleted} deleted, "
            f"{stats.failed} failed, "
            f"cache {'refreshed' if stats.cache_refreshed else 'kept'} "
            f"in {stats.duration_ms:.1f}ms"
        )

        self._publish(SYNC_FINISHED, stats.to_dict())
        return stats

    def _publish(self, event: str, payload: Optional[Dict[str, Any]] = None) -> None:
        if self.events is not None:
            self.events.publish(event, payload)

    def get_sync_status(self) -> Dict[str, Any]:
        """Get current sync status.

        Returns:
            Dict with sync status info
        """
        return {
            "online": self.connectivity.is_online,
            "syncing": self.is_syncing,
            "pending": self.queue.count(),
            "last_sync": self.last_stats.to_dict() if self.last_stats else None,
        }
