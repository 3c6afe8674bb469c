#!/usr/bin/env python3
"""Match roster records against alumni profiles and partition the result."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..config import load_config
from .normalize import match_key, profile_match_key
from .records import CsvRecord, ProfileRecord

logger = logging.getLogger(__name__)

CONFIG = load_config()
LAST_WINS = "last_wins"
REJECT = "reject"
DUPLICATE_POLICIES = (LAST_WINS, REJECT)
DEFAULT_DUPLICATE_POLICY = str(CONFIG.get("duplicate_key_policy", LAST_WINS))


@dataclass
class MatchResult:
    """Partition of a roster against the current profile snapshot."""

    to_verify: List[ProfileRecord] = field(default_factory=list)
    already_verified: int = 0
    unmatched_count: int = 0
    ambiguous_count: int = 0
    duplicate_keys: List[str] = field(default_factory=list)

    @property
    def ids(self) -> List[str]:
        return [profile.id for profile in self.to_verify]

    def to_stats(self) -> Dict[str, object]:
        return {
            "to_verify": len(self.to_verify),
            "already_verified": self.already_verified,
            "unmatched": self.unmatched_count,
            "ambiguous": self.ambiguous_count,
            "duplicate_keys": list(self.duplicate_keys),
        }


def build_index(
    profiles: Iterable[ProfileRecord],
    duplicate_policy: str = LAST_WINS,
) -> Tuple[Dict[str, ProfileRecord], Set[str]]:
    """Index eligible profiles by match key.

    Returns the index and the set of keys shared by more than one profile.
    Under ``last_wins`` the later profile occupies a shared key; under
    ``reject`` shared keys are removed from the index.
    """
    if duplicate_policy not in DUPLICATE_POLICIES:
        raise ValueError(f"Unknown duplicate key policy: {duplicate_policy}")
    index: Dict[str, ProfileRecord] = {}
    duplicates: Set[str] = set()
    for profile in profiles:
        key = profile_match_key(profile)
        if key is None:
            continue
        existing = index.get(key)
        if existing is not None and existing.id != profile.id:
            duplicates.add(key)
        index[key] = profile
    if duplicates:
        logger.warning(
            "%d match key(s) shared by several profiles (policy=%s): %s",
            len(duplicates),
            duplicate_policy,
            ", ".join(sorted(duplicates)),
        )
    if duplicate_policy == REJECT:
        for key in duplicates:
            index.pop(key, None)
    return index, duplicates


def match(
    profiles: Iterable[ProfileRecord],
    csv_records: Iterable[CsvRecord],
    duplicate_policy: Optional[str] = None,
) -> MatchResult:
    policy = duplicate_policy or DEFAULT_DUPLICATE_POLICY
    index, duplicates = build_index(profiles, policy)
    result = MatchResult(duplicate_keys=sorted(duplicates))
    pending_seen: Set[str] = set()
    verified_seen: Set[str] = set()

    for record in csv_records:
        key = match_key(record.full_name, record.year)
        profile = index.get(key)
        if profile is None:
            if policy == REJECT and key in duplicates:
                result.ambiguous_count += 1
            else:
                result.unmatched_count += 1
            continue
        if profile.is_verified:
            if profile.id not in verified_seen:
                verified_seen.add(profile.id)
                result.already_verified += 1
            continue
        if profile.id in pending_seen:
            continue
        pending_seen.add(profile.id)
        result.to_verify.append(profile)

    logger.info(
        "Match summary to_verify=%d already_verified=%d unmatched=%d ambiguous=%d",
        len(result.to_verify),
        result.already_verified,
        result.unmatched_count,
        result.ambiguous_count,
    )
    return result


def load_profiles(path: Path) -> List[ProfileRecord]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of profile rows")
    return [ProfileRecord.from_row(row) for row in data]


def main(argv: Optional[Iterable[str]] = None) -> int:
    from ..roster.parser import parse_verification_csv

    parser = argparse.ArgumentParser(description="Match a roster CSV against exported profiles")
    parser.add_argument("--profiles", type=Path, required=True, help="JSON list of profile rows")
    parser.add_argument("--roster", type=Path, required=True, help="Roster CSV")
    parser.add_argument("--duplicate-policy", choices=DUPLICATE_POLICIES)
    args = parser.parse_args(argv)

    profiles = load_profiles(args.profiles)
    records = parse_verification_csv(args.roster.read_text(encoding="utf-8-sig"))
    result = match(profiles, records, duplicate_policy=args.duplicate_policy)
    report = result.to_stats()
    report["ids"] = result.ids
    json.dump(report, sys.stdout, ensure_ascii=False, indent=2)
    return 0


__all__ = [
    "MatchResult",
    "LAST_WINS",
    "REJECT",
    "DUPLICATE_POLICIES",
    "build_index",
    "match",
    "load_profiles",
]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
