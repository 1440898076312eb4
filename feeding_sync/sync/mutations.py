"""Mutation entry points for Feeding Sync.

ONLINE: write straight to the remote store; failures go back to the caller.
OFFLINE: queue the mutation, then patch the read cache (optimistic).

An online failure never falls back to the offline path: the caller must be
told the write did not happen.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Set

from feeding_sync.connectivity import ConnectivityWatcher
from feeding_sync.errors import MutationInFlight, RecordNotFound, RemoteFailure
from feeding_sync.events import EventBus, FEEDINGS_CHANGED
from feeding_sync.models import FeedingRecord, MutationAction, validate_amount
from feeding_sync.remote.base import RemoteStore
from feeding_sync.storage.pending_queue import PendingQueue
from feeding_sync.storage.read_cache import ReadCache

logger = logging.getLogger(__name__)

CREATE_TARGET = "create"


class FeedingService:
    """Create, delete and list feedings with offline fallback.

    Attributes:
        queue: Durable pending queue
        cache: Local read cache
        remote: Remote feeding store
        connectivity: Anything exposing ``is_online``
        events: Optional bus for ``feedings_changed``
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

        self._lock = threading.Lock()
        self._in_flight: Set[str] = set()

    def create_feeding(self, amount: int, created_at: Optional[datetime] = None) -> FeedingRecord:
        """Record a feeding.

        Args:
            amount: Volume in milliliters
            created_at: When the feeding happened (defaults to now)

        Returns:
            The new record

        Raises:
            ValidationFailure: If the amount is not a positive integer
            MutationInFlight: If another create has not resolved yet
            RemoteFailure: If online and the remote insert failed
            StorageFailure: If offline and the mutation could not be queued
        """
        validate_amount(amount)
        record = FeedingRecord.new(amount, created_at)

        with self._guard(CREATE_TARGET):
            if not self.connectivity.is_online:
                self.queue.enqueue(record, MutationAction.CREATE)
                self.cache.append(record)
                logger.info(f"Offline: queued {amount}ml feeding {record.id}")
                return record

            try:
                self.remote.insert(record)
            except RemoteFailure as e:
                logger.error(f"Failed to log {amount}ml feeding: {e}")
                raise

        logger.info(f"Logged {amount}ml feeding {record.id}")
        self._publish("create", record.id)
        return record

    def delete_feeding(self, record_id: str) -> None:
        """Delete a feeding.

        Args:
            record_id: Id of the feeding to delete

        Raises:
            RecordNotFound: If offline and the id is not known locally
            MutationInFlight: If a mutation on this id has not resolved yet
            RemoteFailure: If online and the remote delete failed (cache untouched)
            StorageFailure: If offline and the mutation could not be queued
        """
        with self._guard(record_id):
            if not self.connectivity.is_online:
                record = self._lookup_local(record_id)
                self.queue.enqueue(record, MutationAction.DELETE)
                self.cache.remove_by_id(record_id)
                logger.info(f"Offline: queued delete of {record_id}")
                return

            try:
                self.remote.delete(record_id)
            except RemoteFailure as e:
                logger.error(f"Failed to delete feeding {record_id}: {e}")
                raise

        logger.info(f"Deleted feeding {record_id}")
        self._publish("delete", record_id)

    def list_feedings(self) -> List[FeedingRecord]:
        """Read feedings from the remote store, falling back to the cache.

        A successful remote read also replaces the cache.

        Returns:
            Records, newest first
        """
        if self.connectivity.is_online:
            try:
                records = self.remote.fetch_all()
            except RemoteFailure as e:
                logger.warning(f"Remote read failed, serving cached feedings: {e}")
            else:
                self.cache.replace_all(records)
                return _newest_first(records)

        return _newest_first(self.cache.get_all())

    def is_busy(self, target: str) -> bool:
        """True while a mutation on this target (``"create"`` or an id) is unresolved."""
        with self._lock:
            return target in self._in_flight

    def pending_count(self) -> int:
        """Number of mutations not yet applied remotely."""
        return self.queue.count()

    def _lookup_local(self, record_id: str) -> FeedingRecord:
        record = self.cache.get(record_id)
        if record is not None:
            return record
        pending = self.queue.get(record_id)
        if pending is not None:
            return pending.record
        raise RecordNotFound(record_id)

    @contextmanager
    def _guard(self, target: str) -> Iterator[None]:
        with self._lock:
            if target in self._in_flight:
                raise MutationInFlight(target)
            self._in_flight.add(target)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(target)

    def _publish(self, change: str, record_id: str) -> None:
        if self.events is not None:
            self.events.publish(FEEDINGS_CHANGED, {"source": "remote", "change": change, "id": record_id})


def _newest_first(records: List[FeedingRecord]) -> List[FeedingRecord]:
    return sorted(records, key=lambda r: r.created_at, reverse=True)
