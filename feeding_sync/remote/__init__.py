"""Remote feeding stores.

Available stores:
    - RestRemoteStore: PostgREST/Supabase table over HTTP (requests)
    - InMemoryRemoteStore: dict-backed store with failure injection

Usage:
    from feeding_sync.remote import get_remote_store

    store = get_remote_store(RemoteConfig.from_env())
"""

from typing import Optional

from feeding_sync.config import RemoteConfig
from feeding_sync.remote.base import RemoteStore
from feeding_sync.remote.memory import InMemoryRemoteStore
from feeding_sync.remote.rest import RestRemoteStore


def get_remote_store(config: Optional[RemoteConfig] = None) -> RemoteStore:
    """Get the remote store for a configuration.

    Args:
        config: Remote settings. None (or a ``memory://`` URL) gives an
            in-memory store.

    Returns:
        RemoteStore instance
    """
    if config is None or config.url.startswith("memory://"):
        return InMemoryRemoteStore()
    return RestRemoteStore(config)


__all__ = [
    "RemoteStore",
    "RestRemoteStore",
    "InMemoryRemoteStore",
    "get_remote_store",
]
