"""Utility helpers."""

from .logging import configure_logging
from .telemetry import utc_now_iso, write_stats
from .validation import ensure_file

__all__ = ["configure_logging", "utc_now_iso", "write_stats", "ensure_file"]
