"""Feeding Sync - offline-first client for a baby-feeding log.

Records feedings (amount in ml, time of feeding) against a hosted table and
keeps working without a network: mutations made offline are queued durably
and applied optimistically to a local cache, then drained to the remote store
when connectivity returns.

Key Features:
    - Durable SQLite queue of pending creates/deletes, keyed by feeding id
    - JSON read cache for instant reads when the remote store is unreachable
    - Single-flight sync engine with per-entry partial-failure semantics
    - Connectivity watcher that syncs on reconnect (notifications or polling)
    - Publish/subscribe events for presentation layers
    - Daily totals and hourly heatmap summaries

Quick Start:
    from feeding_sync import create_tracker

    tracker = create_tracker(data_dir="./data", remote_url="https://x.supabase.co", api_key="...")
    tracker.start()
    record = tracker.service.create_feeding(60)
    tracker.service.delete_feeding(record.id)
    tracker.stop()

Classes:
    FeedingTracker: Wires every component together
    FeedingService: create_feeding / delete_feeding / list_feedings
    SyncEngine: sync_pending_changes
    PendingQueue: Durable pending mutation store
    ReadCache: Local snapshot of feedings
    ConnectivityWatcher: Online/offline state machine
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import ClientConfig, RemoteConfig
from .errors import (
    FeedingSyncError,
    StorageFailure,
    RemoteFailure,
    ValidationFailure,
    RecordNotFound,
    MutationInFlight,
)
from .models import FeedingRecord, PendingMutation, MutationAction
from .events import EventBus
from .storage import PendingQueue, ReadCache
from .remote import RemoteStore, RestRemoteStore, InMemoryRemoteStore
from .connectivity import ConnectivityWatcher, ConnectivityState
from .sync import SyncEngine, SyncStats, FeedingService
from .tracker import FeedingTracker

__all__ = [
    "__version__",
    "__license__",
    # Configuration
    "ClientConfig",
    "RemoteConfig",
    # Errors
    "FeedingSyncError",
    "StorageFailure",
    "RemoteFailure",
    "ValidationFailure",
    "RecordNotFound",
    "MutationInFlight",
    # Models
    "FeedingRecord",
    "PendingMutation",
    "MutationAction",
    # Components
    "EventBus",
    "PendingQueue",
    "ReadCache",
    "RemoteStore",
    "RestRemoteStore",
    "InMemoryRemoteStore",
    "ConnectivityWatcher",
    "ConnectivityState",
    "SyncEngine",
    "SyncStats",
    "FeedingService",
    "FeedingTracker",
    "create_tracker",
]


def create_tracker(
    data_dir: str,
    remote_url: str = None,
    api_key: str = "",
    table: str = "feedings",
) -> FeedingTracker:
    """Convenience function to create a configured FeedingTracker.

    Args:
        data_dir: Directory for the pending queue and read cache
        remote_url: Base URL of the PostgREST/Supabase project. Without one the
            tracker stays offline and only queues changes locally.
        api_key: API key for the remote store
        table: Remote table name

    Returns:
        Configured FeedingTracker instance

    Example:
        tracker = create_tracker("./data", "https://x.supabase.co", api_key="anon-key")
    """
    config = ClientConfig(data_dir=data_dir)
    if not remote_url:
        return FeedingTracker(config, None, probe=lambda: False, initial_online=False)
    return FeedingTracker(config, RemoteConfig(url=remote_url, api_key=api_key, table=table))
