"""Logging utilities."""
from __future__ import annotations

import logging
from typing import Optional


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once; later calls only adjust the level."""
    resolved = getattr(logging, str(level or "INFO").upper(), logging.INFO)
    if getattr(configure_logging, "_configured", False):
        if level:
            logging.getLogger().setLevel(resolved)
        return
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    configure_logging._configured = True


__all__ = ["configure_logging"]
