"""Connectivity watcher for Feeding Sync.

Two states, ONLINE and OFFLINE. The platform reports changes through
``set_online``; where it cannot, ``start`` runs a daemon thread that probes
every ``poll_interval`` seconds. An OFFLINE -> ONLINE transition runs each
registered online callback once (the tracker registers the sync engine).
"""

import logging
import socket
import threading
from enum import Enum
from typing import Callable, List, Optional

from feeding_sync.events import EventBus, CONNECTIVITY_CHANGED

logger = logging.getLogger(__name__)


class ConnectivityState(Enum):
    """Device connectivity as seen by the watcher."""
    ONLINE = "online"
    OFFLINE = "offline"


def tcp_probe(host: str, port: int = 443, timeout: float = 3.0) -> bool:
    """Check reachability by opening a TCP connection.

    Args:
        host: Host to connect to
        port: TCP port
        timeout: Connect timeout in seconds

    Returns:
        True if the connection was established
    """
    if not host:
        return False
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class ConnectivityWatcher:
    """Tracks online/offline transitions and triggers work on reconnect.

    Attributes:
        probe: Callable returning True when the network is reachable
        poll_interval: Seconds between probes in polling mode
        events: Bus notified with ``connectivity_changed``
    """

    def __init__(
        self,
        probe: Callable[[], bool],
        poll_interval: float = 30.0,
        events: Optional[EventBus] = None,
        initial_online: Optional[bool] = None,
    ):
        """Initialize the watcher.

        Args:
            probe: Reachability check used for the initial state and polling
            poll_interval: Seconds between probes when polling
            events: Optional event bus
            initial_online: Starting state; probed when None
        """
        self.probe = probe
        self.poll_interval = poll_interval
        self.events = events

        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], object]] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        online = self._safe_probe() if initial_online is None else initial_online
        self._state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE

    @property
    def state(self) -> ConnectivityState:
        with self._lock:
            return self._state

    @property
    def is_online(self) -> bool:
        return self.state is ConnectivityState.ONLINE

    def on_online(self, callback: Callable[[], object]) -> None:
        """Register a callback for OFFLINE -> ONLINE transitions."""
        with self._lock:
            self._callbacks.append(callback)

    def set_online(self, online: bool) -> bool:
        """Apply a connectivity report.

        Args:
            online: Whether the device can currently reach the network

        Returns:
            True if the state changed
        """
        new_state = ConnectivityState.ONLINE if online else ConnectivityState.OFFLINE
        with self._lock:
            if new_state is self._state:
                return False
            self._state = new_state
            callbacks = list(self._callbacks)

        logger.info(f"Connectivity changed: {new_state.value}")
        if self.events is not None:
            self.events.publish(CONNECTIVITY_CHANGED, {"online": online})

        if new_state is ConnectivityState.ONLINE:
            for callback in callbacks:
                try:
                    callback()
                except Exception as e:
                    logger.error(f"Online callback error: {e}")

        return True

    def check(self) -> bool:
        """Probe now and apply the result.

        Returns:
            Current online status after the probe
        """
        self.set_online(self._safe_probe())
        return self.is_online

    def start(self) -> None:
        """Start polling in a daemon thread (idempotent)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="feeding-sync-connectivity", daemon=True
        )
        self._thread.start()
        logger.debug(f"Connectivity polling every {self.poll_interval}s")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the polling thread."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.wait(self.poll_interval):
            self.check()

    def _safe_probe(self) -> bool:
        try:
            return bool(self.probe())
        except Exception as e:
            logger.warning(f"Connectivity probe failed: {e}")
            return False
