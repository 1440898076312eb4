"""Utility modules for Feeding Sync.

This package provides:
- logging: Configured logging with JSON/text output support
"""

from feeding_sync.utils.logging import configure_root_logger, JsonFormatter

__all__ = [
    "configure_root_logger",
    "JsonFormatter",
]
