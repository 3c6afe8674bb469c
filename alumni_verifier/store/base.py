"""Contract for the external profile data store."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..verification.records import ProfileRecord


class StoreError(RuntimeError):
    """Raised when the data store rejects or fails a request."""


class ProfileStore(ABC):
    """Reads profiles, writes verification state and records audit entries."""

    @abstractmethod
    def fetch_profiles(self) -> List[ProfileRecord]:
        """Return a fresh snapshot of all alumni profiles."""

    @abstractmethod
    def bulk_set_verified(self, ids: Sequence[str], verified_by: Optional[str], verified_at: str) -> None:
        """Mark every profile in ``ids`` verified with one write."""

    @abstractmethod
    def set_verification(
        self,
        profile_id: str,
        verified: bool,
        verified_at: Optional[str],
        verified_by: Optional[str],
    ) -> None:
        """Write the verification fields of a single profile."""

    @abstractmethod
    def record_audit(self, action: str, detail: str, target_id: Optional[str] = None) -> None:
        """Append an entry to the administrative activity log."""


__all__ = ["ProfileStore", "StoreError"]
