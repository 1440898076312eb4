"""Exception hierarchy for Feeding Sync.

Nothing here is fatal. Storage failures propagate to the caller, remote
failures leave the affected mutation queued, validation failures are raised
before anything is persisted.
"""

from typing import Optional


class FeedingSyncError(Exception):
    """Base class for all Feeding Sync errors."""


class StorageFailure(FeedingSyncError):
    """On-device persistence is unavailable or corrupt.

    The caller must not assume the mutation was persisted.
    """


class RemoteFailure(FeedingSyncError):
    """A single request to the remote store failed.

    Attributes:
        status_code: HTTP status code if the server answered, else None
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationFailure(FeedingSyncError, ValueError):
    """Input rejected before any persistence occurred."""


class RecordNotFound(ValidationFailure):
    """A feeding id is not known locally."""

    def __init__(self, record_id: str):
        super().__init__(f"Unknown feeding: {record_id}")
        self.record_id = record_id


class MutationInFlight(FeedingSyncError):
    """A mutation on the same target has not resolved yet."""

    def __init__(self, target: str):
        super().__init__(f"A mutation for '{target}' is already in flight")
        self.target = target
