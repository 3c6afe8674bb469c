"""Employment statistics grouped by graduating batch."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..verification.records import YEAR_KEYS, parse_year
from .status import EmploymentStatus, employment_status

logger = logging.getLogger(__name__)


@dataclass
class BatchEmployment:
    year: int
    total: int = 0
    employed: int = 0
    unemployed: int = 0

    @property
    def rate(self) -> float:
        if not self.total:
            return 0.0
        return round(self.employed / self.total * 100, 2)


@dataclass
class EmploymentSummary:
    total: int = 0
    employed: int = 0
    unemployed: int = 0
    unknown: int = 0


def _status_for(
    row: Mapping[str, Any],
    status_map: Mapping[str, str],
    config: Optional[dict],
) -> EmploymentStatus:
    override = status_map.get(str(row.get("id"))) if row.get("id") is not None else None
    return employment_status(row, override, config)


def employment_by_batch(
    rows: Iterable[Mapping[str, Any]],
    status_map: Optional[Mapping[str, str]] = None,
    config: Optional[dict] = None,
) -> List[BatchEmployment]:
    """Count alumni per graduation year, newest batch first; rows without a year are left out."""
    status_map = status_map or {}
    batches: Dict[int, BatchEmployment] = {}
    skipped = 0
    for row in rows:
        year = None
        for key in YEAR_KEYS:
            year = parse_year(row.get(key))
            if year is not None:
                break
        if year is None:
            skipped += 1
            continue
        batch = batches.setdefault(year, BatchEmployment(year=year))
        batch.total += 1
        status = _status_for(row, status_map, config)
        if status is EmploymentStatus.EMPLOYED:
            batch.employed += 1
        elif status is EmploymentStatus.UNEMPLOYED:
            batch.unemployed += 1
    if skipped:
        logger.debug("Skipped %d row(s) without a graduation year", skipped)
    return [batches[year] for year in sorted(batches, reverse=True)]


def summarize_employment(
    rows: Iterable[Mapping[str, Any]],
    status_map: Optional[Mapping[str, str]] = None,
    config: Optional[dict] = None,
) -> EmploymentSummary:
    status_map = status_map or {}
    summary = EmploymentSummary()
    for row in rows:
        summary.total += 1
        status = _status_for(row, status_map, config)
        if status is EmploymentStatus.EMPLOYED:
            summary.employed += 1
        elif status is EmploymentStatus.UNEMPLOYED:
            summary.unemployed += 1
        else:
            summary.unknown += 1
    return summary


__all__ = ["BatchEmployment", "EmploymentSummary", "employment_by_batch", "summarize_employment"]
