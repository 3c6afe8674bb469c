"""Verification workflows run against an injected profile store."""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, MutableMapping, Optional

from ..config import load_config
from ..roster.parser import parse_roster
from ..store.base import ProfileStore
from ..utils.telemetry import utc_now_iso
from .matcher import MatchResult, match
from .optimistic import optimistic_apply
from .records import ProfileRecord

logger = logging.getLogger(__name__)

STATUS_UNUSABLE = "unusable_file"
STATUS_NO_MATCHES = "no_matches"
STATUS_VERIFIED = "verified"
STATUS_DRY_RUN = "dry_run"


@dataclass
class VerificationOutcome:
    """What a roster upload did, with the message shown to the administrator."""

    status: str
    message: str
    match: MatchResult = field(default_factory=MatchResult)
    verified_ids: List[str] = field(default_factory=list)
    profiles: List[ProfileRecord] = field(default_factory=list)
    parsed_records: int = 0
    skipped_rows: int = 0

    @property
    def verified_count(self) -> int:
        return len(self.verified_ids)

    def to_stats(self) -> Dict[str, object]:
        stats: Dict[str, object] = {
            "status": self.status,
            "parsed_records": self.parsed_records,
            "skipped_rows": self.skipped_rows,
            "verified_count": self.verified_count,
        }
        stats.update(self.match.to_stats())
        return stats


def _messages(cfg: dict) -> Dict[str, str]:
    return cfg.get("messages", {})


def apply_verified(
    profiles: List[ProfileRecord],
    ids: List[str],
    verified_by: Optional[str],
    verified_at: str,
) -> List[ProfileRecord]:
    """Return ``profiles`` with the bulk verification applied to ``ids``."""
    wanted = set(ids)
    return [
        dataclasses.replace(p, verified=True, verified_at=verified_at, verified_by=verified_by)
        if p.id in wanted
        else p
        for p in profiles
    ]


def verify_from_csv(
    store: ProfileStore,
    text: str,
    file_name: str,
    actor_id: Optional[str],
    now: Optional[datetime] = None,
    config: Optional[dict] = None,
    dry_run: bool = False,
) -> VerificationOutcome:
    """Verify every pending profile named in a roster upload.

    The store receives at most one bulk write. Store errors propagate and
    leave the returned snapshot untouched because it is only built after the
    write and the audit entry succeed.
    """
    cfg = config or load_config()
    messages = _messages(cfg)
    parsed = parse_roster(text, config=cfg)
    if not parsed.records:
        logger.info("Roster %s is unusable (rows=%d)", file_name, parsed.data_rows)
        return VerificationOutcome(
            status=STATUS_UNUSABLE,
            message=messages.get("unusable_file", "CSV is empty or missing required columns."),
            skipped_rows=parsed.skipped_rows,
        )

    profiles = store.fetch_profiles()
    result = match(profiles, parsed.records, duplicate_policy=cfg.get("duplicate_key_policy"))
    base = dict(
        match=result,
        profiles=profiles,
        parsed_records=len(parsed.records),
        skipped_rows=parsed.skipped_rows,
    )
    if not result.to_verify:
        return VerificationOutcome(
            status=STATUS_NO_MATCHES,
            message=messages.get("no_matches", "").format(already_verified=result.already_verified),
            **base,
        )

    ids = result.ids
    if dry_run:
        logger.info("Dry run: %d profile(s) would be verified from %s", len(ids), file_name)
        return VerificationOutcome(
            status=STATUS_DRY_RUN,
            message=f"Dry run: {len(ids)} alumni would be verified. Already verified: {result.already_verified}.",
            **base,
        )

    verified_at = utc_now_iso(now)
    store.bulk_set_verified(ids, verified_by=actor_id, verified_at=verified_at)
    store.record_audit(
        cfg.get("audit_actions", {}).get("bulk_verify", "Bulk Verify Alumni (CSV)"),
        f"verified_count={len(ids)}; already_verified={result.already_verified}; file_name={file_name}",
    )
    logger.info("Verified %d profile(s) from %s", len(ids), file_name)
    base["profiles"] = apply_verified(profiles, ids, actor_id, verified_at)
    return VerificationOutcome(
        status=STATUS_VERIFIED,
        message=messages.get("verified", "").format(
            verified_count=len(ids), already_verified=result.already_verified
        ),
        verified_ids=ids,
        **base,
    )


def toggle_verification(
    store: ProfileStore,
    rows: MutableMapping[str, ProfileRecord],
    profile_id: str,
    actor_id: Optional[str],
    now: Optional[datetime] = None,
    config: Optional[dict] = None,
) -> ProfileRecord:
    """Flip one profile between verified and pending.

    ``rows`` is reverted only when the store write fails. An audit failure
    after a successful write propagates with ``rows`` already updated.
    """
    cfg = config or load_config()
    actions = cfg.get("audit_actions", {})
    current = rows[profile_id]
    next_verified = not current.is_verified
    timestamp = utc_now_iso(now) if next_verified else None

    def transition(profile: ProfileRecord) -> ProfileRecord:
        return dataclasses.replace(
            profile,
            verified=next_verified,
            verified_at=timestamp,
            verified_by=actor_id if next_verified else None,
        )

    def commit(profile: ProfileRecord) -> None:
        store.set_verification(profile.id, profile.is_verified, profile.verified_at, profile.verified_by)

    updated = optimistic_apply(rows, profile_id, transition, commit)
    action = actions.get("verify", "Verify Alumni") if next_verified else actions.get("unverify", "Unverify Alumni")
    store.record_audit(
        action,
        f"alumni_id={updated.id}; name={updated.last_name or ''}, {updated.first_name or ''}",
        target_id=updated.id,
    )
    return updated


def search_profiles(profiles: List[ProfileRecord], query: str) -> List[ProfileRecord]:
    """Filter by name, course, graduation year or status word."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(profiles)
    matches = []
    for profile in profiles:
        name = f"{profile.first_name or ''} {profile.last_name or ''}".lower()
        status = "verified" if profile.is_verified else "pending"
        year = str(profile.graduation_year) if profile.graduation_year is not None else ""
        if (
            needle in name
            or needle in (profile.course or "").lower()
            or needle in year
            or needle in status
        ):
            matches.append(profile)
    return matches


__all__ = [
    "STATUS_UNUSABLE",
    "STATUS_NO_MATCHES",
    "STATUS_VERIFIED",
    "STATUS_DRY_RUN",
    "VerificationOutcome",
    "apply_verified",
    "verify_from_csv",
    "toggle_verification",
    "search_profiles",
]
