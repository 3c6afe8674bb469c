"""Place alumni on the dashboard map, geocoding free-text locations once.

Rows that already carry coordinates are placed directly. Other rows are
looked up by their location text in a JSON cache; cache misses go to
OpenStreetMap Nominatim when a geocoder is supplied, and the answers are
written back to the cache immediately so an interrupted run keeps its
progress.
"""
from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

import requests

from ..config import load_config

logger = logging.getLogger(__name__)

CONFIG = load_config()
_PLACEHOLDER_RE = re.compile(r"^(n/?a|na|none|null|unknown)$", re.IGNORECASE)

Coordinates = Tuple[float, float]
Geocoder = Callable[[str], Optional[Coordinates]]


@dataclass
class Marker:
    id: str
    name: str
    lat: float
    lon: float
    college: str = "Other"
    status: str = "active"


@dataclass
class MarkerBatch:
    markers: List[Marker] = field(default_factory=list)
    pending: List[str] = field(default_factory=list)
    geocoded: int = 0
    failed: int = 0


def location_text(row: Mapping[str, Any], config: Optional[dict] = None) -> str:
    """Best free-text location on the row, ignoring placeholders like ``N/A``."""
    for name in (config or CONFIG).get("location_fields", []):
        value = row.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text and not _PLACEHOLDER_RE.match(text):
            return text
    return ""


def display_name(row: Mapping[str, Any]) -> str:
    full = str(row.get("full_name") or "").strip()
    if full:
        return full
    parts = [str(row.get(k) or "").strip() for k in ("first_name", "last_name")]
    return " ".join(p for p in parts if p) or "—"


def _coordinates(row: Mapping[str, Any]) -> Optional[Coordinates]:
    lat = row.get("lat") if row.get("lat") is not None else row.get("latitude")
    lon = row.get("lng") if row.get("lng") is not None else row.get("longitude")
    if all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in (lat, lon)):
        return float(lat), float(lon)
    return None


def _colleges(config: Optional[dict]) -> Set[str]:
    return {str(c).upper() for c in (config or CONFIG).get("colleges", [])}


def _marker(row: Mapping[str, Any], coords: Coordinates, colleges: Set[str]) -> Marker:
    college = str(row.get("college") or "").upper()
    return Marker(
        id=str(row.get("id")),
        name=display_name(row),
        lat=coords[0],
        lon=coords[1],
        college=college if college in colleges else "Other",
        status=str(row.get("status") or "active"),
    )


class GeocodeCache:
    """Lower-cased location text mapped to ``{"lat": .., "lon": ..}`` in a JSON file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else None
        self._entries: Dict[str, Dict[str, float]] = {}
        if self.path and self.path.exists():
            raw = self.path.read_text(encoding="utf-8").strip()
            if raw:
                try:
                    loaded = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Ignoring unreadable geocode cache at %s", self.path)
                    loaded = {}
                if isinstance(loaded, dict):
                    self._entries = loaded

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Coordinates]:
        entry = self._entries.get(key.lower())
        if not isinstance(entry, dict):
            return None
        try:
            return float(entry["lat"]), float(entry["lon"])
        except (KeyError, TypeError, ValueError):
            logger.debug("Ignoring malformed cache entry for %r", key)
            return None

    def put(self, key: str, coords: Coordinates) -> None:
        self._entries[key.lower()] = {"lat": coords[0], "lon": coords[1]}
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._entries, indent=2, sort_keys=True), encoding="utf-8")


class NominatimGeocoder:
    def __init__(self, session: Optional[requests.Session] = None, config: Optional[dict] = None) -> None:
        cfg = (config or CONFIG).get("geocoder", {})
        self.session = session or requests.Session()
        self.endpoint = str(cfg.get("endpoint", "https://nominatim.openstreetmap.org/search"))
        self.user_agent = str(cfg.get("user_agent", "alumni-verifier"))
        self.suffix = str(cfg.get("query_suffix", ""))
        self.country_codes = cfg.get("country_codes")
        self.limit = int(cfg.get("limit", 3))
        self.timeout = float(cfg.get("timeout", 20))

    def __call__(self, query: str) -> Optional[Coordinates]:
        params: Dict[str, Any] = {"q": f"{query}{self.suffix}", "format": "json", "limit": self.limit}
        if self.country_codes:
            params["countrycodes"] = self.country_codes
        resp = self.session.get(
            self.endpoint,
            params=params,
            headers={"User-Agent": self.user_agent, "Accept-Language": "en"},
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise RuntimeError(f"geocoder returned HTTP {resp.status_code}")
        data = resp.json()
        if not isinstance(data, list) or not data:
            return None
        top = data[0]
        return float(top["lat"]), float(top["lon"])


def build_markers(
    rows: List[Mapping[str, Any]],
    cache: GeocodeCache,
    geocoder: Optional[Geocoder] = None,
    delay: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    config: Optional[dict] = None,
) -> MarkerBatch:
    """Markers from stored coordinates and the cache, then from the geocoder."""
    cfg = config or CONFIG
    pause = float(cfg.get("geocoder", {}).get("delay", 0.35) if delay is None else delay)
    colleges = _colleges(cfg)
    batch = MarkerBatch()
    to_geocode: List[Tuple[str, Mapping[str, Any]]] = []
    for row in rows:
        coords = _coordinates(row)
        if coords is not None:
            batch.markers.append(_marker(row, coords, colleges))
            continue
        key = location_text(row, cfg)
        if not key:
            continue
        cached = cache.get(key)
        if cached is not None:
            batch.markers.append(_marker(row, cached, colleges))
        else:
            to_geocode.append((key, row))

    if geocoder is None:
        batch.pending = [key for key, _ in to_geocode]
        return batch

    for idx, (key, row) in enumerate(to_geocode):
        coords = cache.get(key)
        if coords is None:
            if idx:
                sleep(pause)
            try:
                coords = geocoder(key)
            except (requests.RequestException, RuntimeError, ValueError, KeyError) as exc:
                logger.warning("Geocoding %r failed: %s", key, exc)
                batch.failed += 1
                continue
            if coords is None:
                batch.failed += 1
                continue
            cache.put(key, coords)
            batch.geocoded += 1
        batch.markers.append(_marker(row, coords, colleges))
    logger.info(
        "Built %d marker(s); geocoded=%d failed=%d cache_size=%d",
        len(batch.markers),
        batch.geocoded,
        batch.failed,
        len(cache),
    )
    return batch


__all__ = [
    "Marker",
    "MarkerBatch",
    "GeocodeCache",
    "NominatimGeocoder",
    "location_text",
    "display_name",
    "build_markers",
]
