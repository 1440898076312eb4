"""Local read cache of feeding records.

A JSON snapshot of the last known-good record set, used to render when the
remote store cannot be reached. It is a replaceable snapshot, not a source
of truth: an unreadable or unknown-version file reads as empty and the next
refresh overwrites it.

Writes go to a temp file in the same directory and are moved into place with
``os.replace`` so readers never see a partial snapshot.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from feeding_sync.errors import StorageFailure, ValidationFailure
from feeding_sync.events import EventBus, FEEDINGS_CHANGED
from feeding_sync.models import FeedingRecord, format_timestamp, utc_now

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1


class ReadCache:
    """Persisted snapshot of feeding records keyed by id.

    Attributes:
        path: JSON file holding the snapshot
        events: Bus notified with ``feedings_changed`` after each write
    """

    def __init__(self, path: Union[str, Path], events: Optional[EventBus] = None):
        self.path = Path(path)
        self.events = events
        self._lock = threading.RLock()

    def get_all(self) -> List[FeedingRecord]:
        """Return the stored snapshot (empty if never populated)."""
        with self._lock:
            return list(self._load().values())

    def get(self, record_id: str) -> Optional[FeedingRecord]:
        with self._lock:
            return self._load().get(record_id)

    def replace_all(self, records: Iterable[FeedingRecord]) -> None:
        """Overwrite the whole snapshot."""
        with self._lock:
            snapshot = {record.id: record for record in records}
            self._save(snapshot)
        logger.debug(f"Cache replaced with {len(snapshot)} records")
        self._notify("replace")

    def append(self, record: FeedingRecord) -> None:
        """Add a record, replacing any cached record with the same id."""
        with self._lock:
            snapshot = self._load()
            snapshot[record.id] = record
            self._save(snapshot)
        self._notify("append", record.id)

    def remove_by_id(self, record_id: str) -> bool:
        """Remove a record.

        Returns:
            True if a record was removed
        """
        with self._lock:
            snapshot = self._load()
            if snapshot.pop(record_id, None) is None:
                return False
            self._save(snapshot)
        self._notify("remove", record_id)
        return True

    def _load(self) -> Dict[str, FeedingRecord]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to load feedings cache: {e}")
            return {}

        if not isinstance(data, dict) or data.get("version") != CACHE_FORMAT_VERSION:
            logger.warning(f"Ignoring feedings cache with unsupported format: {self.path}")
            return {}

        items = data.get("records", [])
        if not isinstance(items, list):
            logger.warning(f"Ignoring feedings cache with malformed records: {self.path}")
            return {}

        snapshot: Dict[str, FeedingRecord] = {}
        for item in items:
            try:
                record = FeedingRecord.from_dict(item)
            except (ValidationFailure, AttributeError, TypeError) as e:
                logger.warning(f"Skipping unreadable cached record: {e}")
                continue
            snapshot[record.id] = record
        return snapshot

    def _save(self, snapshot: Dict[str, FeedingRecord]) -> None:
        data = {
            "version": CACHE_FORMAT_VERSION,
            "updated_at": format_timestamp(utc_now()),
            "records": [record.to_dict() for record in snapshot.values()],
        }

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageFailure(f"Failed to write feedings cache {self.path}: {e}") from e

    def _notify(self, change: str, record_id: Optional[str] = None) -> None:
        if self.events is not None:
            self.events.publish(FEEDINGS_CHANGED, {"source": "cache", "change": change, "id": record_id})
