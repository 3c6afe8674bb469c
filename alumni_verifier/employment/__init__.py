"""Employment status classification and batch statistics."""

from .batches import BatchEmployment, EmploymentSummary, employment_by_batch, summarize_employment
from .status import EmploymentStatus, classify, detect_employment_variants, employment_status

__all__ = [
    "BatchEmployment",
    "EmploymentSummary",
    "employment_by_batch",
    "summarize_employment",
    "EmploymentStatus",
    "classify",
    "detect_employment_variants",
    "employment_status",
]
