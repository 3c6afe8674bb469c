"""Profile and roster records shared by the parser, matcher and stores."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

VERIFIED_KEYS = ("is_verified", "verified")
YEAR_KEYS = ("graduation_year", "year_graduated", "batch")


def parse_year(value: Any) -> Optional[int]:
    """Read the leading integer of a year cell; ``None`` when there is none."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def _coerce_flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"true", "t", "1", "yes", "y"}:
        return True
    if text in {"false", "f", "0", "no", "n", ""}:
        return False
    return None


def _first_present(row: Mapping[str, Any], keys) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class ProfileRecord:
    """Read-only snapshot of an alumni profile."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    graduation_year: Optional[int] = None
    verified: Optional[bool] = None
    verified_at: Optional[str] = None
    verified_by: Optional[str] = None
    course: Optional[str] = None

    @property
    def is_verified(self) -> bool:
        return bool(self.verified)

    @property
    def display_name(self) -> str:
        """``Last, First`` as shown in the admin table."""
        last = (self.last_name or "").strip()
        first = (self.first_name or "").strip()
        return f"{last}, {first}".strip().strip(",").strip()

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProfileRecord":
        """Build a record from a store row, accepting the known key variants."""
        if row.get("id") is None:
            raise ValueError("profile row is missing an id")
        return cls(
            id=str(row["id"]),
            first_name=_optional_str(row.get("first_name")),
            last_name=_optional_str(row.get("last_name")),
            graduation_year=parse_year(_first_present(row, YEAR_KEYS)),
            verified=_coerce_flag(_first_present(row, VERIFIED_KEYS)),
            verified_at=_optional_str(row.get("verified_at")),
            verified_by=_optional_str(row.get("verified_by")),
            course=_optional_str(row.get("course")),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "course": self.course,
            "graduation_year": self.graduation_year,
            "is_verified": self.verified,
            "verified_at": self.verified_at,
            "verified_by": self.verified_by,
        }


@dataclass(frozen=True)
class CsvRecord:
    """One usable row of an uploaded roster."""

    full_name: str
    year: int


__all__ = ["ProfileRecord", "CsvRecord", "parse_year"]
