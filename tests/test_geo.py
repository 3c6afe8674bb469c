from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests

from alumni_verifier.geo import GeocodeCache, NominatimGeocoder, build_markers, location_text


class FakeGeocoder:
    def __init__(self, answers: Dict[str, Any]) -> None:
        self.answers = answers
        self.queries: List[str] = []

    def __call__(self, query: str):
        self.queries.append(query)
        answer = self.answers.get(query)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeResponse:
    def __init__(self, status_code: int, payload: Any) -> None:
        self.status_code = status_code
        self._payload = payload

    def json(self) -> Any:
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        return self.response


def test_location_text_skips_placeholders(profile_rows: list) -> None:
    by_id = {row["id"]: row for row in profile_rows}
    assert location_text(by_id["p1"]) == "Quezon City"
    assert location_text(by_id["p3"]) == "Laguna"
    assert location_text(by_id["p5"]) == ""


def test_markers_without_geocoder_list_pending(profile_rows: list, tmp_path: Path) -> None:
    batch = build_markers(profile_rows, GeocodeCache(tmp_path / "cache.json"))
    assert [m.id for m in batch.markers] == ["p2"]
    assert batch.markers[0].college == "ITE"
    assert batch.markers[0].name == "Juan Dela Cruz"
    assert batch.pending == ["Quezon City", "Laguna"]


def test_markers_geocode_and_cache(profile_rows: list, tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    geocoder = FakeGeocoder({"Quezon City": (14.676, 121.0437), "Laguna": None})
    pauses: List[float] = []
    batch = build_markers(profile_rows, GeocodeCache(cache_path), geocoder=geocoder, delay=0.5, sleep=pauses.append)

    assert geocoder.queries == ["Quezon City", "Laguna"]
    assert pauses == [0.5]
    assert batch.geocoded == 1
    assert batch.failed == 1
    marker = {m.id: m for m in batch.markers}["p1"]
    assert (marker.lat, marker.lon, marker.college) == (14.676, 121.0437, "ICS")
    assert json.loads(cache_path.read_text(encoding="utf-8")) == {"quezon city": {"lat": 14.676, "lon": 121.0437}}

    again = FakeGeocoder({})
    rerun = build_markers(profile_rows, GeocodeCache(cache_path), geocoder=again, sleep=pauses.append)
    assert again.queries == ["Laguna"]
    assert len(rerun.markers) == 2


def test_geocoder_errors_are_counted(tmp_path: Path) -> None:
    rows = [
        {"id": "a", "first_name": "A", "city": "Nowhere"},
        {"id": "b", "first_name": "B", "city": "Davao", "college": "unknown"},
    ]
    geocoder = FakeGeocoder({"Nowhere": requests.ConnectionError("offline"), "Davao": (7.19, 125.45)})
    batch = build_markers(rows, GeocodeCache(), geocoder=geocoder, sleep=lambda s: None)
    assert batch.failed == 1
    assert [(m.id, m.college) for m in batch.markers] == [("b", "Other")]


def test_latitude_longitude_fallback() -> None:
    rows = [{"id": "x", "full_name": "X Y", "lat": None, "latitude": 10.0, "longitude": 120}]
    batch = build_markers(rows, GeocodeCache())
    assert (batch.markers[0].lat, batch.markers[0].lon) == (10.0, 120.0)


def test_unreadable_cache_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    path.write_text("{broken", encoding="utf-8")
    assert len(GeocodeCache(path)) == 0


def test_nominatim_request(default_config: dict) -> None:
    session = FakeSession(FakeResponse(200, [{"lat": "14.5", "lon": "121.0"}, {"lat": "0", "lon": "0"}]))
    geocoder = NominatimGeocoder(session=session, config=default_config)
    assert geocoder("Makati") == (14.5, 121.0)
    call = session.calls[0]
    assert call["params"]["q"] == "Makati, Philippines"
    assert call["params"]["countrycodes"] == "ph"
    assert call["headers"]["User-Agent"].startswith("alumni-verifier")


@pytest.mark.parametrize("status, payload, expected", [(200, [], None), (200, {}, None)])
def test_nominatim_no_result(default_config: dict, status: int, payload: Any, expected: Optional[tuple]) -> None:
    geocoder = NominatimGeocoder(session=FakeSession(FakeResponse(status, payload)), config=default_config)
    assert geocoder("Atlantis") is expected


def test_nominatim_http_error(default_config: dict) -> None:
    geocoder = NominatimGeocoder(session=FakeSession(FakeResponse(429, None)), config=default_config)
    with pytest.raises(RuntimeError, match="429"):
        geocoder("Makati")


def test_configured_colleges_and_location_fields(tmp_path: Path) -> None:
    config = {"colleges": ["CCS"], "location_fields": ["hometown"], "geocoder": {"delay": 2.0}}
    rows = [
        {"id": "a", "first_name": "A", "college": "ccs", "lat": 10.3, "lng": 123.9},
        {"id": "b", "first_name": "B", "hometown": "Cebu"},
        {"id": "c", "first_name": "C", "hometown": "Iloilo", "city": "Manila"},
    ]
    assert location_text(rows[1], config) == "Cebu"
    assert location_text({"city": "Manila"}, config) == ""

    batch = build_markers(rows, GeocodeCache(), config=config)
    assert batch.markers[0].college == "CCS"
    assert batch.pending == ["Cebu", "Iloilo"]

    pauses: List[float] = []
    geocoder = FakeGeocoder({"Cebu": (10.3, 123.9), "Iloilo": (10.7, 122.5)})
    build_markers(rows, GeocodeCache(), geocoder=geocoder, sleep=pauses.append, config=config)
    assert pauses == [2.0]


def test_malformed_cache_entry_is_a_miss(tmp_path: Path) -> None:
    path = tmp_path / "cache.json"
    path.write_text(json.dumps({"quezon city": {"lon": 121.0}, "laguna": "x"}), encoding="utf-8")
    cache = GeocodeCache(path)
    assert cache.get("Quezon City") is None
    assert cache.get("Laguna") is None

    rows = [{"id": "p1", "first_name": "Jane", "city": "Quezon City"}]
    geocoder = FakeGeocoder({"Quezon City": (14.676, 121.0437)})
    batch = build_markers(rows, cache, geocoder=geocoder, sleep=lambda s: None)
    assert batch.geocoded == 1
    assert cache.get("quezon city") == (14.676, 121.0437)
