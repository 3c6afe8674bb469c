"""Verification package exports."""

from .matcher import MatchResult, build_index, match
from .normalize import match_key, normalize_name, profile_match_key
from .optimistic import optimistic_apply
from .records import CsvRecord, ProfileRecord

__all__ = [
    "MatchResult",
    "build_index",
    "match",
    "match_key",
    "normalize_name",
    "profile_match_key",
    "optimistic_apply",
    "CsvRecord",
    "ProfileRecord",
]
