"""CSV export helpers for administrator downloads."""
from __future__ import annotations

import csv
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..employment.batches import BatchEmployment
from ..verification.records import YEAR_KEYS, ProfileRecord, parse_year

EMPLOYMENT_HEADER = [
    "Batch (Graduation Year)",
    "Total Alumni",
    "Employed",
    "Unemployed",
    "Employment Rate (%)",
]
VERIFICATION_HEADER = ["Name", "Course", "Year Graduated", "Status", "Verified At"]
REGISTRATIONS_HEADER = ["Full Name", "Course", "Original Course", "Graduation Year", "Registration Date"]
UNCLASSIFIED = "Unclassified"
STANDARD_COURSES = [
    "BSIT",
    "BSEd English",
    "BSEd Math",
    "BEEd",
    "BECEd",
    "BSBA - Financial Management",
    "BSBA - Marketing Management",
    "BSBA - Operations Management",
]
_IT_WORD_RE = re.compile(r"\bIT\b")
_WHITESPACE_RE = re.compile(r"\s+")
RUN_SUMMARY_FIELDS = [
    "timestamp",
    "file_name",
    "actor",
    "status",
    "parsed_records",
    "skipped_rows",
    "verified_count",
    "already_verified",
    "unmatched",
    "ambiguous",
]


def default_report_name(prefix: str, today: Optional[date] = None) -> str:
    return f"{prefix}_{(today or date.today()).isoformat()}.csv"


def append_run_summary(summary_csv: Path, record: Dict[str, object]) -> None:
    """Append one verification run to the shared history CSV."""
    summary_csv.parent.mkdir(parents=True, exist_ok=True)
    needs_header = not summary_csv.exists()
    with summary_csv.open("a", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=RUN_SUMMARY_FIELDS, extrasaction="ignore")
        if needs_header:
            writer.writeheader()
        writer.writerow(record)


def write_employment_report(path: Path, batches: Iterable[BatchEmployment]) -> int:
    """Write the employment-rate-per-batch report; returns the number of batches."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(EMPLOYMENT_HEADER)
        for batch in batches:
            writer.writerow([batch.year, batch.total, batch.employed, batch.unemployed, f"{batch.rate:.2f}"])
            count += 1
    return count


def write_verification_export(path: Path, profiles: Iterable[ProfileRecord]) -> int:
    """Write the verification table; UTF-8 with BOM so spreadsheets detect the encoding."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8-sig", newline="") as handle:
        writer = csv.writer(handle, lineterminator="\n")
        writer.writerow(VERIFICATION_HEADER)
        for profile in profiles:
            writer.writerow(
                [
                    profile.display_name,
                    profile.course or "",
                    profile.graduation_year if profile.graduation_year is not None else "",
                    "Verified" if profile.is_verified else "Pending",
                    profile.verified_at or "",
                ]
            )
            count += 1
    return count


def normalize_course(course: Optional[str]) -> str:
    """Map a free-text course to one of ``STANDARD_COURSES`` or ``Unclassified``."""
    if not course or not str(course).strip():
        return UNCLASSIFIED
    s = str(course).strip().upper()
    if "BSIT" in s or "INFORMATION TECHNOLOGY" in s or _IT_WORD_RE.search(s):
        return "BSIT"
    if "BSED" in s and "ENGLISH" in s:
        return "BSEd English"
    if "BSED" in s and "MATH" in s:
        return "BSEd Math"
    if any(k in s for k in ("BEED", "TEACHER EDUCATION", "TEACHERS EDUCATION", "BACHELOR OF ELEMENTARY EDUCATION")):
        return "BEEd"
    if "BECED" in s or "BACHELOR OF EARLY CHILDHOOD EDUCATION" in s:
        return "BECEd"
    if ("BSBA" in s and ("FINANCIAL" in s or "FINANCE" in s)) or s == "FINANCE":
        return "BSBA - Financial Management"
    if ("BSBA" in s and "MARKETING" in s) or s == "BUSINESS ADMINISTRATION":
        return "BSBA - Marketing Management"
    if "BSBA" in s and "OPERATIONS" in s:
        return "BSBA - Operations Management"
    return UNCLASSIFIED


def _row_year(row: Mapping[str, Any]) -> Optional[int]:
    for key in YEAR_KEYS:
        year = parse_year(row.get(key))
        if year is not None:
            return year
    return None


def filter_registrations(
    rows: Iterable[Mapping[str, Any]],
    course: Optional[str] = None,
    year: Optional[int] = None,
) -> List[Mapping[str, Any]]:
    """Alumni rows, optionally limited to one normalized course and one batch."""
    selected = []
    for row in rows:
        if row.get("role") != "alumni":
            continue
        if year is not None and _row_year(row) != year:
            continue
        if course and normalize_course(row.get("course")) != course:
            continue
        selected.append(row)
    return selected


def registrations_report_name(
    course: Optional[str] = None,
    year: Optional[int] = None,
    today: Optional[date] = None,
) -> str:
    prefix = "alumni_registrations"
    if course:
        prefix += "_" + _WHITESPACE_RE.sub("_", course)
    if year is not None:
        prefix += f"_{year}"
    return default_report_name(prefix, today)


def _full_name(row: Mapping[str, Any]) -> str:
    full = str(row.get("full_name") or "").strip()
    if full:
        return full
    combined = f"{row.get('first_name') or ''} {row.get('last_name') or ''}".strip()
    return combined or "N/A"


def write_registrations_export(path: Path, rows: Iterable[Mapping[str, Any]]) -> int:
    """Write the filtered registrations download; every cell quoted, gaps as ``N/A``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(REGISTRATIONS_HEADER)
        for row in rows:
            year = _row_year(row)
            created = str(row.get("created_at") or "").strip()
            writer.writerow(
                [
                    _full_name(row),
                    normalize_course(row.get("course")),
                    row.get("course") or "N/A",
                    year if year else "N/A",
                    created.split("T")[0] if created else "N/A",
                ]
            )
            count += 1
    return count


__all__ = [
    "EMPLOYMENT_HEADER",
    "VERIFICATION_HEADER",
    "REGISTRATIONS_HEADER",
    "STANDARD_COURSES",
    "RUN_SUMMARY_FIELDS",
    "normalize_course",
    "filter_registrations",
    "registrations_report_name",
    "write_registrations_export",
    "append_run_summary",
    "default_report_name",
    "write_employment_report",
    "write_verification_export",
]
