"""Durable pending queue for offline mutations.

Pending creates and deletes live in a SQLite table keyed by feeding id, so a
later action on the same id replaces the earlier one. Every call runs in its
own transaction on a fresh connection; a per-queue lock serializes calls made
from different threads of the same process.

Schema version is tracked in ``PRAGMA user_version``.
"""

import json
import logging
import sqlite3
import threading
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Union

from feeding_sync.errors import StorageFailure
from feeding_sync.models import FeedingRecord, MutationAction, PendingMutation, format_timestamp

logger = logging.getLogger(__name__)

QUEUE_SCHEMA_VERSION = 1

_CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS pending_mutations (
        id TEXT PRIMARY KEY,
        action TEXT NOT NULL,
        payload TEXT NOT NULL,
        queued_at TEXT NOT NULL
    )
"""


class PendingQueue:
    """Keyed, persisted store of mutations awaiting the remote store.

    Attributes:
        path: SQLite database file
    """

    def __init__(self, path: Union[str, Path], timeout: float = 5.0):
        """Open (and if needed create) the queue database.

        Args:
            path: SQLite database file
            timeout: Seconds to wait on a locked database

        Raises:
            StorageFailure: If the database cannot be created or is from a newer schema
        """
        self.path = Path(path)
        self._timeout = timeout
        self._lock = threading.Lock()

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailure(f"Cannot create queue directory {self.path.parent}: {e}") from e

        with self._transaction() as conn:
            version = conn.execute("PRAGMA user_version").fetchone()[0]
            if version > QUEUE_SCHEMA_VERSION:
                raise StorageFailure(
                    f"Queue schema version {version} is newer than supported "
                    f"version {QUEUE_SCHEMA_VERSION}"
                )
            conn.execute(_CREATE_TABLE)
            if version < QUEUE_SCHEMA_VERSION:
                conn.execute(f"PRAGMA user_version = {QUEUE_SCHEMA_VERSION}")

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Serialized connection that commits on success, rolls back on error."""
        with self._lock:
            try:
                with closing(sqlite3.connect(str(self.path), timeout=self._timeout)) as conn:
                    with conn:
                        yield conn
            except (sqlite3.Error, OSError) as e:
                raise StorageFailure(f"Pending queue storage error: {e}") from e

    def enqueue(
        self,
        record: FeedingRecord,
        action: Union[MutationAction, str],
    ) -> PendingMutation:
        """Upsert the pending mutation for ``record.id``.

        An existing entry for the same id is overwritten, so a queued create
        followed by a queued delete collapses to the delete.

        Returns:
            The mutation as stored
        """
        mutation = PendingMutation(record=record, action=MutationAction(action))
        data = mutation.to_dict()
        payload = json.dumps(data)

        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO pending_mutations (id, action, payload, queued_at) "
                "VALUES (?, ?, ?, ?)",
                (record.id, mutation.action.value, payload, data["queued_at"]),
            )

        logger.debug(f"Queued {mutation.action.value} for {record.id}")
        return mutation

    def list_all(self) -> List[PendingMutation]:
        """Return every pending mutation (no guaranteed order)."""
        with self._transaction() as conn:
            rows = conn.execute("SELECT id, payload FROM pending_mutations").fetchall()
        return [self._decode(row_id, payload) for row_id, payload in rows]

    def get(self, record_id: str) -> Optional[PendingMutation]:
        """Return the pending mutation for an id, or None."""
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT id, payload FROM pending_mutations WHERE id = ?", (record_id,)
            ).fetchone()
        if row is None:
            return None
        return self._decode(*row)

    def remove(self, record_id: str) -> None:
        """Delete the entry for an id; no-op if absent."""
        with self._transaction() as conn:
            conn.execute("DELETE FROM pending_mutations WHERE id = ?", (record_id,))

    def discard(self, mutation: PendingMutation) -> bool:
        """Delete the entry for ``mutation.id`` only if it is still this mutation.

        A newer action enqueued for the same id in the meantime is kept.

        Returns:
            True if the entry was removed
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM pending_mutations WHERE id = ? AND action = ? AND queued_at = ?",
                (mutation.id, mutation.action.value, format_timestamp(mutation.queued_at)),
            )
            return cursor.rowcount > 0

    def count(self) -> int:
        with self._transaction() as conn:
            return conn.execute("SELECT COUNT(*) FROM pending_mutations").fetchone()[0]

    def clear(self) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM pending_mutations")

    def _decode(self, row_id: str, payload: str) -> PendingMutation:
        try:
            return PendingMutation.from_dict(json.loads(payload))
        except (ValueError, AttributeError, TypeError) as e:
            raise StorageFailure(f"Corrupt pending mutation {row_id}: {e}") from e
