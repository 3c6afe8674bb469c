#!/usr/bin/env python3
"""Configuration loader for the alumni verification tools."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict

import yaml

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_FILE = PACKAGE_ROOT / "config" / "default.yml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "header_synonyms": {
        "first_name": ["first name", "first_name", "firstname", "given name", "given_name"],
        "last_name": ["last name", "last_name", "lastname", "surname", "family name", "family_name"],
        "full_name": ["full name", "fullname", "full_name", "name", "display_full_name"],
        "year": [
            "year graduated",
            "year_graduated",
            "yeargraduated",
            "graduation_year",
            "year of graduation",
            "yearofgraduation",
            "grad year",
            "grad_year",
            "batch",
            "batch year",
            "batch_year",
            "year",
        ],
    },
    "duplicate_key_policy": "last_wins",
    "messages": {
        "unusable_file": "CSV is empty or missing required columns (First Name, Last Name, Year Graduated).",
        "no_matches": "No matching pending alumni found to verify. Already verified: {already_verified}.",
        "verified": "Successfully verified {verified_count} alumni from CSV. Already verified: {already_verified}.",
    },
    "audit_actions": {
        "bulk_verify": "Bulk Verify Alumni (CSV)",
        "verify": "Verify Alumni",
        "unverify": "Unverify Alumni",
    },
    "store": {
        "profiles_table": "profiles",
        "audit_table": "activity_logs",
        "select": "id,first_name,last_name,course,graduation_year,is_verified,verified_at,verified_by",
        "order": "last_name.asc",
        "limit": 1000,
        "timeout": 20,
    },
    "geocoder": {
        "endpoint": "https://nominatim.openstreetmap.org/search",
        "user_agent": "alumni-verifier/0.3 (alumni office)",
        "query_suffix": ", Philippines",
        "country_codes": "ph",
        "limit": 3,
        "delay": 0.35,
        "timeout": 20,
        "cache_file": "alumni-geocode-cache.json",
    },
    "colleges": ["IBM", "ICS", "ITE"],
    "location_fields": ["location", "address", "city", "municipality", "province", "region"],
    "employment_status_fields": [
        "employment_status",
        "employmentStatus",
        "employment",
        "job_status",
        "work_status",
        "status_of_employment",
    ],
    "employment_flag_fields": ["is_employed", "employed"],
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load configuration from a YAML file layered over the defaults."""
    cfg = dict(DEFAULT_CONFIG)
    config_path = path or os.getenv("ALUMNI_CONFIG_FILE")
    candidates = [Path(p) for p in [DEFAULT_CONFIG_FILE, config_path] if p]
    for file in candidates:
        if not file.exists():
            continue
        data = yaml.safe_load(file.read_text(encoding="utf-8")) or {}
        if isinstance(data, dict):
            cfg = _deep_merge(cfg, data)
    return cfg


__all__ = ["DEFAULT_CONFIG", "load_config"]
