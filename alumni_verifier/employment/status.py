"""Employment status detection over the row shapes found in profile data.

Profile rows carry employment information in several historical layouts.
``detect_employment_variants`` reads a row once and returns the variants it
carries in precedence order; ``classify`` maps a single variant to an
``EmploymentStatus`` without looking at the raw row again.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Union

from ..config import load_config

CONFIG = load_config()

_EXACT_EMPLOYED_RE = re.compile(r"^(self[-\s]?employed|employed)$")
_EMPLOYED_HINT_RE = re.compile(r"(^|\b)(freelance|entrepreneur|business owner|working|full[-\s]?time|part[-\s]?time)(\b|$)")
_SELF_EMPLOYED_RE = re.compile(r"(^|\b)self[-\s]?employed(\b|$)")
_UNEMPLOYED_RE = re.compile(r"unemployed|not\s*employed|jobless|none")
_YES = {"true", "yes", "1"}
_NO = {"false", "no", "0"}


class EmploymentStatus(str, Enum):
    EMPLOYED = "employed"
    UNEMPLOYED = "unemployed"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExplicitStatus:
    """Free-text answer from the profile questionnaire."""

    text: str


@dataclass(frozen=True)
class BooleanFlag:
    field: str
    value: Any


@dataclass(frozen=True)
class StatusField:
    """Free-text status stored on the profile row itself."""

    field: str
    text: str


@dataclass(frozen=True)
class NoEmploymentData:
    pass


EmploymentVariant = Union[ExplicitStatus, BooleanFlag, StatusField, NoEmploymentData]


def _field_names(config: Optional[dict], key: str) -> Sequence[str]:
    return tuple((config or CONFIG).get(key, []))


def detect_employment_variants(
    row: Mapping[str, Any],
    override: Optional[str] = None,
    config: Optional[dict] = None,
) -> List[EmploymentVariant]:
    """Variants present on ``row``; a boolean flag ends the list."""
    variants: List[EmploymentVariant] = []
    if override:
        variants.append(ExplicitStatus(str(override)))
    for name in _field_names(config, "employment_flag_fields"):
        if name in row:
            variants.append(BooleanFlag(name, row[name]))
            return variants
    for name in _field_names(config, "employment_status_fields"):
        if row.get(name) is not None:
            variants.append(StatusField(name, str(row[name])))
    return variants or [NoEmploymentData()]


def _classify_flag(value: Any) -> EmploymentStatus:
    text = str(value).strip().lower()
    if text in _YES:
        return EmploymentStatus.EMPLOYED
    if text in _NO:
        return EmploymentStatus.UNEMPLOYED
    return EmploymentStatus.UNKNOWN


def _classify_explicit(text: str) -> EmploymentStatus:
    s = text.strip().lower()
    if _EXACT_EMPLOYED_RE.search(s):
        return EmploymentStatus.EMPLOYED
    if _EMPLOYED_HINT_RE.search(s) and not _UNEMPLOYED_RE.search(s):
        return EmploymentStatus.EMPLOYED
    if _UNEMPLOYED_RE.search(s):
        return EmploymentStatus.UNEMPLOYED
    return EmploymentStatus.UNKNOWN


def _classify_field(text: str) -> EmploymentStatus:
    s = text.lower()
    if _SELF_EMPLOYED_RE.search(s):
        return EmploymentStatus.EMPLOYED
    if "employed" in s and not _UNEMPLOYED_RE.search(s):
        return EmploymentStatus.EMPLOYED
    if _UNEMPLOYED_RE.search(s):
        return EmploymentStatus.UNEMPLOYED
    return EmploymentStatus.UNKNOWN


def classify(variant: EmploymentVariant) -> EmploymentStatus:
    if isinstance(variant, ExplicitStatus):
        return _classify_explicit(variant.text)
    if isinstance(variant, BooleanFlag):
        return _classify_flag(variant.value)
    if isinstance(variant, StatusField):
        return _classify_field(variant.text)
    return EmploymentStatus.UNKNOWN


def employment_status(
    row: Mapping[str, Any],
    override: Optional[str] = None,
    config: Optional[dict] = None,
) -> EmploymentStatus:
    """First decisive variant wins; a boolean flag is decisive even when unclear."""
    for variant in detect_employment_variants(row, override, config):
        status = classify(variant)
        if status is not EmploymentStatus.UNKNOWN or isinstance(variant, BooleanFlag):
            return status
    return EmploymentStatus.UNKNOWN


__all__ = [
    "EmploymentStatus",
    "ExplicitStatus",
    "BooleanFlag",
    "StatusField",
    "NoEmploymentData",
    "EmploymentVariant",
    "detect_employment_variants",
    "classify",
    "employment_status",
]
