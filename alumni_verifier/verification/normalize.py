"""Name/year normalization used to build match keys."""
from __future__ import annotations

import re
from typing import Optional, Union

from .records import ProfileRecord

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(first_or_full: Optional[str], last: Optional[str] = None) -> str:
    first = (first_or_full or "").strip().lower()
    last_part = (last or "").strip().lower()
    joined = " ".join(part for part in (first, last_part) if part)
    return _WHITESPACE_RE.sub(" ", joined)


def match_key(name: str, year: Union[int, str]) -> str:
    """``<normalized-name>|<year>`` with the year compared as an integer."""
    return f"{normalize_name(name)}|{int(year)}"


def is_indexable(profile: ProfileRecord) -> bool:
    return bool(profile.first_name and profile.last_name and profile.graduation_year)


def profile_match_key(profile: ProfileRecord) -> Optional[str]:
    if not is_indexable(profile):
        return None
    return match_key(f"{profile.first_name} {profile.last_name}", profile.graduation_year)


__all__ = ["normalize_name", "match_key", "is_indexable", "profile_match_key"]
