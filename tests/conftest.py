"""Shared pytest fixtures for Feeding Sync tests.

Provides temp data directories, storage components, an in-memory remote
store and a switchable connectivity stand-in, so nothing touches the network.
"""

from datetime import datetime, timezone

import pytest

from feeding_sync.config import ClientConfig
from feeding_sync.events import EventBus
from feeding_sync.models import FeedingRecord
from feeding_sync.remote.memory import InMemoryRemoteStore
from feeding_sync.storage.pending_queue import PendingQueue
from feeding_sync.storage.read_cache import ReadCache
from feeding_sync.sync.engine import SyncEngine
from feeding_sync.sync.mutations import FeedingService


class FakeConnectivity:
    """Connectivity stand-in with a settable ``is_online`` flag."""

    def __init__(self, online: bool = True):
        self.is_online = online


def make_record(record_id: str, amount: int = 60, hour: int = 8) -> FeedingRecord:
    """Build a record with a fixed timestamp on 2024-05-01 UTC."""
    return FeedingRecord(
        id=record_id,
        amount=amount,
        created_at=datetime(2024, 5, 1, hour, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def data_dir(tmp_path):
    """Temporary directory for queue and cache files."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def client_config(data_dir):
    """ClientConfig pointing at the temp data dir."""
    return ClientConfig(data_dir=data_dir, poll_interval=0.05, timezone="UTC")


@pytest.fixture
def events():
    return EventBus()


@pytest.fixture
def queue(client_config):
    return PendingQueue(client_config.queue_path)


@pytest.fixture
def cache(client_config, events):
    return ReadCache(client_config.cache_path, events=events)


@pytest.fixture
def remote():
    return InMemoryRemoteStore()


@pytest.fixture
def connectivity():
    """Online by default; flip ``is_online`` in the test."""
    return FakeConnectivity(online=True)


@pytest.fixture
def engine(queue, cache, remote, connectivity, events):
    return SyncEngine(queue, cache, remote, connectivity, events)


@pytest.fixture
def service(queue, cache, remote, connectivity, events):
    return FeedingService(queue, cache, remote, connectivity, events)
