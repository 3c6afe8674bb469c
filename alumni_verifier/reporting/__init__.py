"""Report writers."""

from .csv_export import (
    default_report_name,
    filter_registrations,
    normalize_course,
    registrations_report_name,
    write_employment_report,
    write_registrations_export,
    write_verification_export,
)

__all__ = [
    "default_report_name",
    "filter_registrations",
    "normalize_course",
    "registrations_report_name",
    "write_employment_report",
    "write_registrations_export",
    "write_verification_export",
]
