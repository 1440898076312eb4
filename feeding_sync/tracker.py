"""FeedingTracker - one object wiring every Feeding Sync component.

Constructed once at process start. The tracker owns the pending queue, read
cache, remote store, connectivity watcher, sync engine and feeding service,
and hands them to each other by reference.

Example:
    from feeding_sync import FeedingTracker, ClientConfig, RemoteConfig

    tracker = FeedingTracker(ClientConfig(data_dir="./data"), RemoteConfig.from_env())
    tracker.start()                    # poll connectivity, sync on reconnect
    tracker.service.create_feeding(60)
    feedings = tracker.service.list_feedings()
    tracker.stop()
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .config import ClientConfig, RemoteConfig
from .connectivity import ConnectivityWatcher, tcp_probe
from .events import EventBus
from .remote import RemoteStore, get_remote_store
from .storage import PendingQueue, ReadCache
from .sync import FeedingService, SyncEngine, SyncStats


logger = logging.getLogger(__name__)


class FeedingTracker:
    """Offline-first feeding log client.

    Attributes:
        config: On-device settings
        remote_config: Remote settings (None when using a supplied store)
        events: Shared event bus
        queue: Durable pending queue
        cache: Local read cache
        remote: Remote store
        connectivity: Connectivity watcher
        engine: Sync engine
        service: Mutation entry points
    """

    def __init__(
        self,
        config: ClientConfig,
        remote_config: Optional[RemoteConfig] = None,
        remote: Optional[RemoteStore] = None,
        probe: Optional[Callable[[], bool]] = None,
        initial_online: Optional[bool] = None,
    ):
        """Build and wire every component.

        Args:
            config: On-device settings
            remote_config: Remote settings, used when ``remote`` is not given
            remote: Pre-built remote store (takes precedence over remote_config)
            probe: Reachability check; defaults to a TCP probe of the remote host
            initial_online: Starting connectivity; probed when None

        Raises:
            StorageFailure: If the pending queue cannot be opened
        """
        self.config = config
        self.remote_config = remote_config
        self.events = EventBus()

        self.queue = PendingQueue(config.queue_path)
        self.cache = ReadCache(config.cache_path, events=self.events)
        self.remote = remote or get_remote_store(remote_config)

        if probe is None:
            probe = self._default_probe
        self.connectivity = ConnectivityWatcher(
            probe,
            poll_interval=config.poll_interval,
            events=self.events,
            initial_online=initial_online,
        )

        self.engine = SyncEngine(self.queue, self.cache, self.remote, self.connectivity, self.events)
        self.service = FeedingService(self.queue, self.cache, self.remote, self.connectivity, self.events)

        self.connectivity.on_online(self.engine.sync_pending_changes)

    def _default_probe(self) -> bool:
        if self.remote_config is None:
            return True
        return tcp_probe(
            self.remote_config.host,
            self.remote_config.port,
            timeout=self.config.probe_timeout,
        )

    def start(self, initial_sync: bool = True) -> Optional[SyncStats]:
        """Start connectivity polling, optionally syncing right away if online."""
        self.connectivity.start()
        if initial_sync and self.connectivity.is_online:
            return self.engine.sync_pending_changes()
        return None

    def stop(self) -> None:
        """Stop polling and release network resources."""
        self.connectivity.stop()
        self.remote.close()

    def sync(self) -> SyncStats:
        """Run a sync pass now (subject to the single-flight guard)."""
        return self.engine.sync_pending_changes()

    def status(self) -> Dict[str, Any]:
        """Get tracker status.

        Returns:
            Dict with connectivity, sync and storage info
        """
        status = self.engine.get_sync_status()
        status.update({
            "queue_path": str(self.config.queue_path),
            "cache_path": str(self.config.cache_path),
            "cached_records": len(self.cache.get_all()),
            "polling": self.connectivity.running,
        })
        return status

    def __enter__(self) -> "FeedingTracker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
