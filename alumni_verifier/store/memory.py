"""Dictionary-backed profile store."""
from __future__ import annotations

import dataclasses
from typing import Dict, Iterable, List, Optional, Sequence

from ..utils.telemetry import utc_now_iso
from ..verification.records import ProfileRecord
from .base import ProfileStore, StoreError


class InMemoryStore(ProfileStore):
    def __init__(self, profiles: Iterable[ProfileRecord] = ()) -> None:
        self.profiles: Dict[str, ProfileRecord] = {p.id: p for p in profiles}
        self.audit_log: List[Dict[str, Optional[str]]] = []
        self.write_calls = 0

    def fetch_profiles(self) -> List[ProfileRecord]:
        return list(self.profiles.values())

    def _require(self, profile_id: str) -> ProfileRecord:
        try:
            return self.profiles[profile_id]
        except KeyError:
            raise StoreError(f"profile {profile_id} not found") from None

    def bulk_set_verified(self, ids: Sequence[str], verified_by: Optional[str], verified_at: str) -> None:
        current = [self._require(pid) for pid in ids]
        self.write_calls += 1
        for profile in current:
            self.profiles[profile.id] = dataclasses.replace(
                profile, verified=True, verified_at=verified_at, verified_by=verified_by
            )

    def set_verification(
        self,
        profile_id: str,
        verified: bool,
        verified_at: Optional[str],
        verified_by: Optional[str],
    ) -> None:
        profile = self._require(profile_id)
        self.write_calls += 1
        self.profiles[profile_id] = dataclasses.replace(
            profile, verified=verified, verified_at=verified_at, verified_by=verified_by
        )

    def record_audit(self, action: str, detail: str, target_id: Optional[str] = None) -> None:
        self.audit_log.append(
            {"action": action, "detail": detail, "target_id": target_id, "created_at": utc_now_iso()}
        )


__all__ = ["InMemoryStore"]
