"""Abstract base class for remote feeding stores.

The remote store is the single shared source of truth. Implementations
raise RemoteFailure for every failed request so callers only handle one
error type.
"""

from abc import ABC, abstractmethod
from typing import List
import logging

from feeding_sync.models import FeedingRecord


class RemoteStore(ABC):
    """Interface to the hosted table of feeding rows.

    Example:
        class SqlRemoteStore(RemoteStore):
            def insert(self, record):
                ...
            # ... implement other methods
    """

    def __init__(self):
        """Initialize the store with a logger."""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def insert(self, record: FeedingRecord) -> None:
        """Insert a new row.

        Raises:
            RemoteFailure: If the row was not stored
        """

    @abstractmethod
    def upsert(self, record: FeedingRecord) -> None:
        """Insert a row, or overwrite the row with the same id.

        Used when draining queued creates, which may already have reached
        the server on an earlier attempt.

        Raises:
            RemoteFailure: If the row was not stored
        """

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Delete the row with this id. Deleting an unknown id succeeds.

        Raises:
            RemoteFailure: If the request failed
        """

    @abstractmethod
    def fetch_all(self) -> List[FeedingRecord]:
        """Return every record, newest first.

        Raises:
            RemoteFailure: If the records could not be read
        """

    def close(self) -> None:
        """Release network resources (no-op by default)."""
