from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from alumni_verifier.config import load_config
from alumni_verifier.store import InMemoryStore, JsonFileStore
from alumni_verifier.verification.records import ProfileRecord

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture()
def profile_rows() -> list[dict[str, object]]:
    return json.loads((FIXTURES / "profiles.json").read_text(encoding="utf-8"))


@pytest.fixture()
def profiles(profile_rows: list[dict[str, object]]) -> list[ProfileRecord]:
    return [ProfileRecord.from_row(row) for row in profile_rows]


@pytest.fixture()
def memory_store(profiles: list[ProfileRecord]) -> InMemoryStore:
    return InMemoryStore(profiles)


@pytest.fixture()
def json_store(tmp_path: Path) -> JsonFileStore:
    target = tmp_path / "profiles.json"
    shutil.copy(FIXTURES / "profiles.json", target)
    return JsonFileStore(target)


@pytest.fixture()
def roster_text() -> str:
    return (FIXTURES / "roster_full_name.csv").read_text(encoding="utf-8")


@pytest.fixture()
def config_dict() -> dict:
    return load_config(str(FIXTURES / "config_test.yml"))


@pytest.fixture()
def default_config() -> dict:
    return load_config()
