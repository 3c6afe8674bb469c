"""Profile store speaking the PostgREST dialect of a hosted Supabase project."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..config import load_config
from ..verification.records import ProfileRecord
from .base import ProfileStore, StoreError

logger = logging.getLogger(__name__)


def _in_filter(ids: Sequence[str]) -> str:
    quoted = ",".join('"{}"'.format(str(pid).replace('"', '\\"')) for pid in ids)
    return f"in.({quoted})"


class PostgrestStore(ProfileStore):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        config: Optional[dict] = None,
    ) -> None:
        cfg = (config or load_config()).get("store", {})
        self.rest_url = base_url.rstrip("/") + "/rest/v1"
        self.profiles_table = str(cfg.get("profiles_table", "profiles"))
        self.audit_table = str(cfg.get("audit_table", "activity_logs"))
        self.select = str(cfg.get("select", "*"))
        self.order = str(cfg.get("order", "last_name.asc"))
        self.limit = int(cfg.get("limit", 1000))
        self.timeout = float(cfg.get("timeout", 20))
        self.session = session or requests.Session()
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, table: str, **kwargs: Any) -> requests.Response:
        url = f"{self.rest_url}/{table}"
        headers = dict(self.headers)
        headers.update(kwargs.pop("headers", {}))
        try:
            resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.Timeout as exc:
            raise StoreError(f"{method} {table} timed out") from exc
        except requests.RequestException as exc:
            raise StoreError(f"{method} {table} failed: {exc}") from exc
        if resp.status_code >= 300:
            raise StoreError(f"{method} {table} returned HTTP {resp.status_code}: {resp.text.strip()}")
        return resp

    def fetch_profiles(self) -> List[ProfileRecord]:
        resp = self._request(
            "GET",
            self.profiles_table,
            params={"select": self.select, "order": self.order, "limit": str(self.limit)},
        )
        rows = resp.json() or []
        logger.debug("Fetched %d profile rows", len(rows))
        return [ProfileRecord.from_row(row) for row in rows]

    def _patch(self, ids: Sequence[str], payload: Dict[str, Any]) -> None:
        self._request(
            "PATCH",
            self.profiles_table,
            params={"id": _in_filter(ids)},
            json=payload,
            headers={"Prefer": "return=minimal"},
        )

    def bulk_set_verified(self, ids: Sequence[str], verified_by: Optional[str], verified_at: str) -> None:
        if not ids:
            return
        self._patch(ids, {"is_verified": True, "verified_at": verified_at, "verified_by": verified_by})

    def set_verification(
        self,
        profile_id: str,
        verified: bool,
        verified_at: Optional[str],
        verified_by: Optional[str],
    ) -> None:
        self._patch([profile_id], {"is_verified": verified, "verified_at": verified_at, "verified_by": verified_by})

    def record_audit(self, action: str, detail: str, target_id: Optional[str] = None) -> None:
        payload: Dict[str, Any] = {"action": action, "details": detail}
        if target_id is not None:
            payload["target_id"] = target_id
        self._request("POST", self.audit_table, json=payload, headers={"Prefer": "return=minimal"})


__all__ = ["PostgrestStore"]
