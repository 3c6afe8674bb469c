from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Sequence

import pytest

from alumni_verifier.store import InMemoryStore, StoreError
from alumni_verifier.verification.optimistic import optimistic_apply
from alumni_verifier.verification.records import ProfileRecord
from alumni_verifier.verification.service import (
    STATUS_DRY_RUN,
    STATUS_NO_MATCHES,
    STATUS_UNUSABLE,
    STATUS_VERIFIED,
    search_profiles,
    toggle_verification,
    verify_from_csv,
)

NOW = datetime(2025, 3, 1, 8, 30, tzinfo=timezone.utc)


class FailingStore(InMemoryStore):
    def __init__(self, profiles, fail_on: str = "write") -> None:
        super().__init__(profiles)
        self.fail_on = fail_on

    def bulk_set_verified(self, ids: Sequence[str], verified_by: Optional[str], verified_at: str) -> None:
        if self.fail_on == "write":
            raise StoreError("connection reset")
        super().bulk_set_verified(ids, verified_by, verified_at)

    def set_verification(self, profile_id, verified, verified_at, verified_by) -> None:
        if self.fail_on == "write":
            raise StoreError("connection reset")
        super().set_verification(profile_id, verified, verified_at, verified_by)

    def record_audit(self, action: str, detail: str, target_id: Optional[str] = None) -> None:
        if self.fail_on == "audit":
            raise StoreError("audit table unavailable")
        super().record_audit(action, detail, target_id)


def test_unusable_roster_does_not_touch_store(memory_store: InMemoryStore) -> None:
    outcome = verify_from_csv(memory_store, "First Name,Year\nJane,2020\n", "bad.csv", "admin-1")
    assert outcome.status == STATUS_UNUSABLE
    assert outcome.message.startswith("CSV is empty or missing required columns")
    assert memory_store.write_calls == 0
    assert memory_store.audit_log == []


def test_no_pending_matches(memory_store: InMemoryStore) -> None:
    outcome = verify_from_csv(memory_store, "Name,Year\nJuan Dela Cruz,2019\n", "r.csv", "admin-1")
    assert outcome.status == STATUS_NO_MATCHES
    assert outcome.message == "No matching pending alumni found to verify. Already verified: 1."
    assert memory_store.write_calls == 0
    assert memory_store.audit_log == []


def test_verify_writes_once_and_audits(memory_store: InMemoryStore, roster_text: str) -> None:
    outcome = verify_from_csv(memory_store, roster_text, "roster.csv", "admin-1", now=NOW)
    assert outcome.status == STATUS_VERIFIED
    assert outcome.verified_ids == ["p1", "p3"]
    assert outcome.message == "Successfully verified 2 alumni from CSV. Already verified: 1."
    assert outcome.parsed_records == 4
    assert outcome.skipped_rows == 2
    assert memory_store.write_calls == 1

    stored = memory_store.profiles["p1"]
    assert stored.is_verified
    assert stored.verified_by == "admin-1"
    assert stored.verified_at == "2025-03-01T08:30:00+00:00"

    assert len(memory_store.audit_log) == 1
    entry = memory_store.audit_log[0]
    assert entry["action"] == "Bulk Verify Alumni (CSV)"
    assert entry["detail"] == "verified_count=2; already_verified=1; file_name=roster.csv"

    local = {p.id: p for p in outcome.profiles}
    assert local["p3"].is_verified
    assert not local["p4"].is_verified


def test_second_upload_finds_nothing_new(memory_store: InMemoryStore, roster_text: str) -> None:
    verify_from_csv(memory_store, roster_text, "roster.csv", "admin-1", now=NOW)
    again = verify_from_csv(memory_store, roster_text, "roster.csv", "admin-1", now=NOW)
    assert again.status == STATUS_NO_MATCHES
    assert again.match.already_verified == 3
    assert memory_store.write_calls == 1


def test_dry_run_reports_without_writing(memory_store: InMemoryStore, roster_text: str) -> None:
    outcome = verify_from_csv(memory_store, roster_text, "roster.csv", "admin-1", dry_run=True)
    assert outcome.status == STATUS_DRY_RUN
    assert outcome.match.ids == ["p1", "p3"]
    assert outcome.verified_ids == []
    assert memory_store.write_calls == 0
    assert not memory_store.profiles["p1"].is_verified


def test_configured_headers_and_message(memory_store: InMemoryStore, config_dict: dict) -> None:
    text = "Name,Class Of\nJane Doe,2020\nJuan Dela Cruz,2019\n"
    outcome = verify_from_csv(memory_store, text, "class.csv", "admin-1", config=config_dict)
    assert outcome.status == STATUS_VERIFIED
    assert outcome.message == "Verified 1; skipped 1 already verified."


def test_rejected_duplicates_are_left_alone(config_dict: dict) -> None:
    store = InMemoryStore(
        [
            ProfileRecord(id="a", first_name="Jose", last_name="Rizal", graduation_year=2010, verified=False),
            ProfileRecord(id="b", first_name="Jose", last_name="Rizal", graduation_year=2010, verified=False),
        ]
    )
    outcome = verify_from_csv(store, "Name,Class Of\nJose Rizal,2010\n", "dup.csv", "admin-1", config=config_dict)
    assert outcome.status == STATUS_NO_MATCHES
    assert outcome.match.ambiguous_count == 1
    assert outcome.match.duplicate_keys == ["jose rizal|2010"]
    assert store.write_calls == 0


def test_write_failure_propagates(profiles: list[ProfileRecord], roster_text: str) -> None:
    store = FailingStore(profiles)
    with pytest.raises(StoreError):
        verify_from_csv(store, roster_text, "roster.csv", "admin-1")
    assert store.audit_log == []
    assert not store.profiles["p1"].is_verified


def test_audit_failure_propagates(profiles: list[ProfileRecord], roster_text: str) -> None:
    store = FailingStore(profiles, fail_on="audit")
    with pytest.raises(StoreError, match="audit"):
        verify_from_csv(store, roster_text, "roster.csv", "admin-1")
    assert store.write_calls == 1


def test_toggle_verifies_and_audits(memory_store: InMemoryStore, profiles: list[ProfileRecord]) -> None:
    rows = {p.id: p for p in profiles}
    updated = toggle_verification(memory_store, rows, "p1", "admin-1", now=NOW)
    assert updated.is_verified
    assert updated.verified_by == "admin-1"
    assert rows["p1"] is updated
    assert memory_store.profiles["p1"].verified_at == "2025-03-01T08:30:00+00:00"
    entry = memory_store.audit_log[-1]
    assert entry["action"] == "Verify Alumni"
    assert entry["detail"] == "alumni_id=p1; name=Doe, Jane"
    assert entry["target_id"] == "p1"


def test_toggle_unverify_clears_fields(memory_store: InMemoryStore, profiles: list[ProfileRecord]) -> None:
    rows = {p.id: p for p in profiles}
    updated = toggle_verification(memory_store, rows, "p2", "admin-1")
    assert not updated.is_verified
    assert updated.verified_at is None
    assert updated.verified_by is None
    assert memory_store.audit_log[-1]["action"] == "Unverify Alumni"


def test_toggle_failure_restores_row(profiles: list[ProfileRecord]) -> None:
    store = FailingStore(profiles)
    rows = {p.id: p for p in profiles}
    before = rows["p1"]
    with pytest.raises(StoreError):
        toggle_verification(store, rows, "p1", "admin-1")
    assert rows["p1"] is before


def test_toggle_audit_failure_keeps_written_row(profiles: list[ProfileRecord]) -> None:
    store = FailingStore(profiles, fail_on="audit")
    rows = {p.id: p for p in profiles}
    with pytest.raises(StoreError, match="audit"):
        toggle_verification(store, rows, "p1", "admin-1", now=NOW)
    assert store.profiles["p1"].is_verified
    assert rows["p1"].is_verified
    assert rows["p1"].verified_at == "2025-03-01T08:30:00+00:00"


def test_optimistic_apply_keeps_tentative_value_on_success() -> None:
    state = {"a": 1}
    seen = []
    assert optimistic_apply(state, "a", lambda v: v + 1, seen.append) == 2
    assert state == {"a": 2}
    assert seen == [2]


def test_optimistic_apply_restores_on_failure() -> None:
    state = {"a": 1}

    def boom(value: int) -> None:
        assert state["a"] == 2
        raise RuntimeError("offline")

    with pytest.raises(RuntimeError, match="offline"):
        optimistic_apply(state, "a", lambda v: v + 1, boom)
    assert state == {"a": 1}


@pytest.mark.parametrize(
    "query, expected",
    [
        ("", ["p1", "p2", "p3", "p4", "p5"]),
        ("DOE", ["p1"]),
        ("nursing", ["p5"]),
        ("2020", ["p1", "p4"]),
        ("verified", ["p2"]),
        ("pending", ["p1", "p3", "p4", "p5"]),
    ],
)
def test_search_profiles(profiles: list[ProfileRecord], query: str, expected: list[str]) -> None:
    assert [p.id for p in search_profiles(profiles, query)] == expected
