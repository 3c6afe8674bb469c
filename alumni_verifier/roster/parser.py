#!/usr/bin/env python3
"""Parse registrar roster CSV files into name/year records."""
from __future__ import annotations

import argparse
import json
import logging
import re
import sys
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import load_config
from ..verification.records import CsvRecord, parse_year

logger = logging.getLogger(__name__)

CONFIG = load_config()
HEADER_SYNONYMS: Dict[str, List[str]] = CONFIG.get("header_synonyms", {})
_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass
class RosterColumns:
    """Resolved header positions; -1 marks a missing column."""

    first_name: int = -1
    last_name: int = -1
    full_name: int = -1
    year: int = -1

    @property
    def usable(self) -> bool:
        if self.year == -1:
            return False
        return self.full_name != -1 or (self.first_name != -1 and self.last_name != -1)

    @property
    def max_index(self) -> int:
        return max(self.first_name, self.last_name, self.full_name, self.year)


@dataclass
class RosterParse:
    """Parsed records plus diagnostics for one roster upload."""

    records: List[CsvRecord] = field(default_factory=list)
    delimiter: str = ","
    columns: RosterColumns = field(default_factory=RosterColumns)
    data_rows: int = 0
    skipped_rows: int = 0

    @property
    def usable(self) -> bool:
        return self.columns.usable


def detect_delimiter(header_line: str) -> str:
    if ";" in header_line and "," not in header_line:
        return ";"
    if "\t" in header_line and "," not in header_line:
        return "\t"
    return ","


def split_fields(line: str, delimiter: str) -> List[str]:
    """Split one line; only a single leading/trailing double quote is stripped."""
    fields = []
    for part in line.split(delimiter):
        part = part.strip()
        if part.startswith('"'):
            part = part[1:]
        if part.endswith('"'):
            part = part[:-1]
        fields.append(part)
    return fields


def _find_index(headers: Sequence[str], candidates: Iterable[str]) -> int:
    wanted = {c.lower() for c in candidates}
    for idx, header in enumerate(headers):
        if header in wanted:
            return idx
    return -1


def resolve_columns(headers: Sequence[str], synonyms: Optional[Dict[str, List[str]]] = None) -> RosterColumns:
    synonyms = synonyms if synonyms is not None else HEADER_SYNONYMS
    lowered = [h.lower() for h in headers]
    return RosterColumns(
        first_name=_find_index(lowered, synonyms.get("first_name", [])),
        last_name=_find_index(lowered, synonyms.get("last_name", [])),
        full_name=_find_index(lowered, synonyms.get("full_name", [])),
        year=_find_index(lowered, synonyms.get("year", [])),
    )


def _row_name(fields: Sequence[str], columns: RosterColumns) -> str:
    full_name = ""
    if columns.full_name != -1:
        full_name = fields[columns.full_name].strip()
    if not full_name and columns.first_name != -1 and columns.last_name != -1:
        first = fields[columns.first_name].strip()
        last = fields[columns.last_name].strip()
        full_name = f"{first} {last}".strip()
    return full_name


def parse_roster(text: str, config: Optional[dict] = None) -> RosterParse:
    """Parse roster text, keeping diagnostics about columns and skipped rows."""
    synonyms = config.get("header_synonyms") if config else None
    lines = [line.strip() for line in _LINE_SPLIT_RE.split((text or "").lstrip("\ufeff"))]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        logger.debug("Roster has %d non-empty line(s); nothing to parse", len(lines))
        return RosterParse(data_rows=max(0, len(lines) - 1))

    delimiter = detect_delimiter(lines[0])
    columns = resolve_columns(split_fields(lines[0], delimiter), synonyms)
    result = RosterParse(delimiter=delimiter, columns=columns, data_rows=len(lines) - 1)
    if not columns.usable:
        logger.info("Roster header lacks a year column or a usable name column: %s", lines[0])
        return result

    for line in lines[1:]:
        fields = split_fields(line, delimiter)
        if len(fields) <= columns.max_index:
            result.skipped_rows += 1
            continue
        name = _row_name(fields, columns)
        year = parse_year(fields[columns.year])
        if not name or year is None:
            result.skipped_rows += 1
            continue
        result.records.append(CsvRecord(full_name=name, year=year))

    logger.info(
        "Parsed roster delimiter=%r records=%d skipped=%d",
        delimiter,
        len(result.records),
        result.skipped_rows,
    )
    return result


def parse_verification_csv(text: str, config: Optional[dict] = None) -> List[CsvRecord]:
    """Return the usable name/year records of a roster; empty when unusable."""
    return parse_roster(text, config=config).records


def report_payload(parsed: RosterParse) -> Dict[str, object]:
    return {
        "usable": parsed.usable,
        "delimiter": parsed.delimiter,
        "columns": asdict(parsed.columns),
        "data_rows": parsed.data_rows,
        "skipped_rows": parsed.skipped_rows,
        "records": [asdict(rec) for rec in parsed.records],
    }


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Parse a registrar roster CSV")
    parser.add_argument("roster", type=Path)
    parser.add_argument("--output", type=Path)
    args = parser.parse_args(argv)

    parsed = parse_roster(args.roster.read_text(encoding="utf-8-sig"))
    text = json.dumps(report_payload(parsed), ensure_ascii=False, indent=2)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
    else:
        sys.stdout.write(text + "\n")
    return 0


__all__ = [
    "RosterColumns",
    "RosterParse",
    "detect_delimiter",
    "split_fields",
    "resolve_columns",
    "parse_roster",
    "parse_verification_csv",
    "report_payload",
]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
