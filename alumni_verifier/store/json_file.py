"""Profile store backed by a JSON export on disk."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ..utils.telemetry import utc_now_iso
from ..verification.records import ProfileRecord
from .base import ProfileStore, StoreError

logger = logging.getLogger(__name__)


class JsonFileStore(ProfileStore):
    """Profiles live in a JSON array of rows; audit entries go to a JSON-lines file.

    Rows keep any extra columns they carry; only the verification fields are
    rewritten.
    """

    def __init__(self, profiles_path: Path, audit_path: Optional[Path] = None) -> None:
        self.profiles_path = Path(profiles_path)
        self.audit_path = Path(audit_path) if audit_path else self.profiles_path.with_suffix(".audit.jsonl")

    def _read_rows(self) -> List[Dict[str, Any]]:
        if not self.profiles_path.exists():
            raise StoreError(f"{self.profiles_path} not found")
        try:
            data = json.loads(self.profiles_path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise StoreError(f"{self.profiles_path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise StoreError(f"{self.profiles_path} must contain a JSON list")
        return data

    def _write_rows(self, rows: List[Dict[str, Any]]) -> None:
        tmp_path = self.profiles_path.with_suffix(self.profiles_path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(rows, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self.profiles_path)

    def fetch_profiles(self) -> List[ProfileRecord]:
        rows = self._read_rows()
        profiles = []
        for row in rows:
            try:
                profiles.append(ProfileRecord.from_row(row))
            except ValueError as exc:
                logger.warning("Skipping profile row: %s", exc)
        return profiles

    def _update(self, ids: Sequence[str], fields: Dict[str, Any]) -> None:
        rows = self._read_rows()
        wanted = {str(pid) for pid in ids}
        found = set()
        for row in rows:
            row_id = str(row.get("id"))
            if row_id in wanted:
                row.update(fields)
                found.add(row_id)
        missing = wanted - found
        if missing:
            raise StoreError(f"profiles not found: {', '.join(sorted(missing))}")
        self._write_rows(rows)

    def bulk_set_verified(self, ids: Sequence[str], verified_by: Optional[str], verified_at: str) -> None:
        self._update(ids, {"is_verified": True, "verified_at": verified_at, "verified_by": verified_by})

    def set_verification(
        self,
        profile_id: str,
        verified: bool,
        verified_at: Optional[str],
        verified_by: Optional[str],
    ) -> None:
        self._update([profile_id], {"is_verified": verified, "verified_at": verified_at, "verified_by": verified_by})

    def record_audit(self, action: str, detail: str, target_id: Optional[str] = None) -> None:
        entry = {"action": action, "detail": detail, "target_id": target_id, "created_at": utc_now_iso()}
        self.audit_path.parent.mkdir(parents=True, exist_ok=True)
        with self.audit_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, ensure_ascii=False) + "\n")


__all__ = ["JsonFileStore"]
