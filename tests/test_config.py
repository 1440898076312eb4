"""Tests for feeding_sync.config module.

Validates configuration dataclasses, path coercion, env loading, and defaults.
"""

from pathlib import Path

import pytest

from feeding_sync.config import ClientConfig, RemoteConfig


class TestRemoteConfig:
    """Test RemoteConfig dataclass behavior."""

    def test_defaults(self):
        config = RemoteConfig(url="https://abc.supabase.co")
        assert config.api_key == ""
        assert config.table == "feedings"
        assert config.timestamp_column == "fed_at"
        assert config.timeout == 10.0

    def test_trailing_slash_stripped(self):
        config = RemoteConfig(url="https://abc.supabase.co/")
        assert config.url == "https://abc.supabase.co"

    def test_host_and_port(self):
        assert RemoteConfig(url="https://abc.supabase.co").port == 443
        assert RemoteConfig(url="http://localhost").port == 80
        config = RemoteConfig(url="http://localhost:54321")
        assert config.host == "localhost"
        assert config.port == 54321

    def test_non_positive_timeout_raises(self):
        with pytest.raises(ValueError):
            RemoteConfig(url="https://x", timeout=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FEEDING_SYNC_URL", "https://env.supabase.co")
        monkeypatch.setenv("FEEDING_SYNC_API_KEY", "anon")
        monkeypatch.setenv("FEEDING_SYNC_TABLE", "baby_feedings")
        monkeypatch.setenv("FEEDING_SYNC_TIMEOUT", "2.5")
        config = RemoteConfig.from_env()
        assert config.url == "https://env.supabase.co"
        assert config.api_key == "anon"
        assert config.table == "baby_feedings"
        assert config.timeout == 2.5

    def test_from_env_requires_url(self, monkeypatch):
        monkeypatch.delenv("FEEDING_SYNC_URL", raising=False)
        with pytest.raises(ValueError):
            RemoteConfig.from_env()

    def test_from_env_invalid_timeout_raises(self, monkeypatch):
        monkeypatch.setenv("FEEDING_SYNC_URL", "https://env.supabase.co")
        monkeypatch.setenv("FEEDING_SYNC_TIMEOUT", "ten")
        with pytest.raises(ValueError, match="FEEDING_SYNC_TIMEOUT"):
            RemoteConfig.from_env()


class TestClientConfig:
    """Test ClientConfig dataclass behavior."""

    def test_minimal_creation(self, tmp_path):
        config = ClientConfig(data_dir=tmp_path)
        assert config.data_dir == tmp_path
        assert config.queue_path == tmp_path / "pending.sqlite3"
        assert config.cache_path == tmp_path / "feedings-cache.json"
        assert config.poll_interval == 30.0
        assert config.timezone == "Asia/Tehran"
        assert config.log_file is None

    def test_string_path_coercion(self):
        config = ClientConfig(data_dir="/some/path", log_file="/var/log/feeding.log")
        assert isinstance(config.data_dir, Path)
        assert isinstance(config.log_file, Path)
        assert config.data_dir == Path("/some/path")

    def test_non_positive_poll_interval_raises(self, tmp_path):
        with pytest.raises(ValueError):
            ClientConfig(data_dir=tmp_path, poll_interval=0)

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FEEDING_SYNC_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("FEEDING_SYNC_TIMEZONE", "UTC")
        config = ClientConfig.from_env()
        assert config.data_dir == tmp_path
        assert config.timezone == "UTC"

    def test_from_env_explicit_dir_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FEEDING_SYNC_DATA_DIR", "/ignored")
        config = ClientConfig.from_env(tmp_path / "explicit")
        assert config.data_dir == tmp_path / "explicit"
