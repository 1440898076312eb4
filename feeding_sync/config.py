"""Configuration dataclasses for Feeding Sync."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse


@dataclass
class RemoteConfig:
    """Connection settings for the hosted feedings table.

    Attributes:
        url: Base URL of the PostgREST/Supabase project (e.g. "https://x.supabase.co")
        api_key: Anonymous API key sent as ``apikey`` and bearer token
        table: Table holding feeding rows
        timestamp_column: Column holding the feeding time
        timeout: Per-request timeout in seconds
    """
    url: str
    api_key: str = ""
    table: str = "feedings"
    timestamp_column: str = "fed_at"
    timeout: float = 10.0

    def __post_init__(self):
        """Strip trailing slashes and check the timeout."""
        self.url = self.url.rstrip("/")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @property
    def host(self) -> str:
        return urlparse(self.url).hostname or ""

    @property
    def port(self) -> int:
        parsed = urlparse(self.url)
        if parsed.port:
            return parsed.port
        return 80 if parsed.scheme == "http" else 443

    @classmethod
    def from_env(cls) -> "RemoteConfig":
        """Build from FEEDING_SYNC_* environment variables.

        Raises:
            ValueError: If FEEDING_SYNC_URL is not set or FEEDING_SYNC_TIMEOUT is not a number
        """
        url = os.environ.get("FEEDING_SYNC_URL", "")
        if not url:
            raise ValueError("FEEDING_SYNC_URL is not set")
        return cls(
            url=url,
            api_key=os.environ.get("FEEDING_SYNC_API_KEY", ""),
            table=os.environ.get("FEEDING_SYNC_TABLE", "feedings"),
            timestamp_column=os.environ.get("FEEDING_SYNC_TIMESTAMP_COLUMN", "fed_at"),
            timeout=_env_float("FEEDING_SYNC_TIMEOUT", 10.0),
        )



def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class ClientConfig:
    """On-device settings.

    Attributes:
        data_dir: Directory for the pending queue and read cache
        queue_file: SQLite file name for pending mutations
        cache_file: JSON file name for the read cache snapshot
        poll_interval: Seconds between connectivity probes when polling
        probe_timeout: TCP connect timeout for the connectivity probe
        timezone: IANA zone used for day grouping in summaries
        log_file: Path to log file (None for stderr only)
    """
    data_dir: Path
    queue_file: str = "pending.sqlite3"
    cache_file: str = "feedings-cache.json"
    poll_interval: float = 30.0
    probe_timeout: float = 3.0
    timezone: str = "Asia/Tehran"
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")

    @property
    def queue_path(self) -> Path:
        return self.data_dir / self.queue_file

    @property
    def cache_path(self) -> Path:
        return self.data_dir / self.cache_file

    @classmethod
    def from_env(cls, data_dir: Optional[Path] = None) -> "ClientConfig":
        """Build from FEEDING_SYNC_DATA_DIR, FEEDING_SYNC_TIMEZONE and FEEDING_SYNC_LOG_FILE.

        Defaults the data directory to ``~/.feeding_sync``.
        """
        default_dir = Path.home() / ".feeding_sync"
        return cls(
            data_dir=data_dir or Path(os.environ.get("FEEDING_SYNC_DATA_DIR", str(default_dir))),
            timezone=os.environ.get("FEEDING_SYNC_TIMEZONE", "Asia/Tehran"),
            log_file=os.environ.get("FEEDING_SYNC_LOG_FILE") or None,
        )
