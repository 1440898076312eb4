"""In-memory remote store.

Behaves like the hosted table (id-keyed rows, newest-first reads) and lets
callers inject failures. Used for tests and for running the client without
a server.
"""

import threading
from typing import Dict, List, Optional, Set

from feeding_sync.errors import RemoteFailure
from feeding_sync.models import FeedingRecord
from feeding_sync.remote.base import RemoteStore


class InMemoryRemoteStore(RemoteStore):
    """Thread-safe dict-backed remote store.

    Attributes:
        fail_ids: Ids whose insert/upsert/delete raise RemoteFailure
        fail_fetch: If True, fetch_all raises RemoteFailure
        offline: If True, every call raises RemoteFailure
        calls: Log of (operation, id) tuples, in call order
    """

    def __init__(self, records: Optional[List[FeedingRecord]] = None):
        super().__init__()
        self._lock = threading.Lock()
        self._rows: Dict[str, FeedingRecord] = {r.id: r for r in records or []}
        self.fail_ids: Set[str] = set()
        self.fail_fetch = False
        self.offline = False
        self.calls: List[tuple] = []

    def insert(self, record: FeedingRecord) -> None:
        with self._lock:
            self._check("insert", record.id)
            if record.id in self._rows:
                raise RemoteFailure(f"Duplicate key: {record.id}", 409)
            self._rows[record.id] = record

    def upsert(self, record: FeedingRecord) -> None:
        with self._lock:
            self._check("upsert", record.id)
            self._rows[record.id] = record

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._check("delete", record_id)
            self._rows.pop(record_id, None)

    def fetch_all(self) -> List[FeedingRecord]:
        with self._lock:
            self.calls.append(("fetch_all", None))
            if self.offline or self.fail_fetch:
                raise RemoteFailure("Simulated fetch failure")
            return sorted(self._rows.values(), key=lambda r: r.created_at, reverse=True)

    def ids(self) -> Set[str]:
        with self._lock:
            return set(self._rows)

    def _check(self, operation: str, record_id: str) -> None:
        self.calls.append((operation, record_id))
        if self.offline:
            raise RemoteFailure(f"Simulated network failure on {operation}")
        if record_id in self.fail_ids:
            raise RemoteFailure(f"Simulated {operation} failure for {record_id}", 500)
