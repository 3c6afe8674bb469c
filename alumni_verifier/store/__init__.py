"""Data store handles passed explicitly to the verification service."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from .base import ProfileStore, StoreError
from .json_file import JsonFileStore
from .memory import InMemoryStore
from .postgrest import PostgrestStore

STORE_KEY_ENV = "ALUMNI_STORE_KEY"
STORE_TOKEN_ENV = "ALUMNI_STORE_TOKEN"


def open_store(location: str, config: Optional[dict] = None) -> ProfileStore:
    """Build a store from a CLI location: an ``http(s)://`` project URL or a JSON file."""
    if location.startswith(("http://", "https://")):
        api_key = os.getenv(STORE_KEY_ENV)
        if not api_key:
            raise StoreError(f"{STORE_KEY_ENV} must be set to reach {location}")
        return PostgrestStore(location, api_key, access_token=os.getenv(STORE_TOKEN_ENV), config=config)
    return JsonFileStore(Path(location))


__all__ = [
    "ProfileStore",
    "StoreError",
    "InMemoryStore",
    "JsonFileStore",
    "PostgrestStore",
    "open_store",
]
