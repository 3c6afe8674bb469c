"""Command-line interface for alumni-verifier."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from . import __version__
from .config import load_config
from .employment import employment_by_batch
from .geo import GeocodeCache, NominatimGeocoder, build_markers
from .reporting.csv_export import (
    append_run_summary,
    default_report_name,
    filter_registrations,
    registrations_report_name,
    write_employment_report,
    write_registrations_export,
    write_verification_export,
)
from .reporting.summary import summary_record, write_review_markdown
from .roster.parser import parse_roster, report_payload
from .store import StoreError, open_store
from .utils import configure_logging, ensure_file, write_stats
from .verification.service import search_profiles, toggle_verification, verify_from_csv

logger = logging.getLogger(__name__)


def _write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


def _load_rows(path: Path) -> List[Dict[str, Any]]:
    data = json.loads(ensure_file(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON list of rows")
    return data


def _load_status_map(path: Optional[Path]) -> Dict[str, str]:
    """Accept either ``{user_id: status}`` or a list of ``{user_id, employment_status}`` rows."""
    if path is None:
        return {}
    data = json.loads(ensure_file(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        return {str(k): str(v) for k, v in data.items() if v}
    statuses: Dict[str, str] = {}
    for row in data or []:
        if isinstance(row, dict) and row.get("user_id") and row.get("employment_status"):
            statuses[str(row["user_id"])] = str(row["employment_status"])
    return statuses


def handle_parse(args: argparse.Namespace) -> None:
    text = ensure_file(args.roster).read_text(encoding="utf-8-sig")
    payload = report_payload(parse_roster(text, config=args.cfg))
    if args.output:
        _write_json(args.output, payload)
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))


def handle_verify(args: argparse.Namespace) -> None:
    roster = ensure_file(args.roster)
    store = open_store(args.store, config=args.cfg)
    outcome = verify_from_csv(
        store,
        roster.read_text(encoding="utf-8-sig"),
        file_name=roster.name,
        actor_id=args.actor,
        config=args.cfg,
        dry_run=args.dry_run,
    )
    print(outcome.message)
    if args.stats:
        stats = outcome.to_stats()
        stats["verified_ids"] = outcome.verified_ids
        write_stats(args.stats, stats)
    if args.summary_csv:
        append_run_summary(args.summary_csv, summary_record(outcome, roster.name, args.actor))
    if args.review:
        write_review_markdown(args.review, outcome, roster.name)


def handle_toggle(args: argparse.Namespace) -> None:
    store = open_store(args.store, config=args.cfg)
    rows = {profile.id: profile for profile in store.fetch_profiles()}
    if args.profile_id not in rows:
        raise StoreError(f"profile {args.profile_id} not found")
    updated = toggle_verification(store, rows, args.profile_id, args.actor, config=args.cfg)
    state = "verified" if updated.is_verified else "pending"
    print(f"{updated.display_name or updated.id}: {state}")


def handle_search(args: argparse.Namespace) -> None:
    store = open_store(args.store, config=args.cfg)
    for profile in search_profiles(store.fetch_profiles(), args.query):
        state = "Verified" if profile.is_verified else "Pending"
        year = profile.graduation_year if profile.graduation_year is not None else "—"
        print(f"{profile.id}\t{profile.display_name or '—'}\t{profile.course or '—'}\t{year}\t{state}")


def handle_export(args: argparse.Namespace) -> None:
    store = open_store(args.store, config=args.cfg)
    profiles = search_profiles(store.fetch_profiles(), args.query or "")
    output = args.output or Path(default_report_name("alumni_verification"))
    count = write_verification_export(output, profiles)
    print(f"Wrote {count} profile(s) to {output}")


def handle_employment(args: argparse.Namespace) -> None:
    rows = _load_rows(args.profiles)
    batches = employment_by_batch(rows, _load_status_map(args.statuses), config=args.cfg)
    if not batches:
        print("No alumni with a graduation year found")
        return
    output = args.output or Path(default_report_name("employment_rate_per_batch"))
    write_employment_report(output, batches)
    print(f"Wrote {len(batches)} batch(es) to {output}")


def handle_registrations(args: argparse.Namespace) -> None:
    rows = filter_registrations(_load_rows(args.profiles), course=args.course, year=args.year)
    if not rows:
        print("No data to download with current filters")
        return
    output = args.output or Path(registrations_report_name(args.course, args.year))
    count = write_registrations_export(output, rows)
    print(f"Wrote {count} registration(s) to {output}")


def handle_markers(args: argparse.Namespace) -> None:
    rows = _load_rows(args.profiles)
    cache_path = args.cache or Path(args.cfg.get("geocoder", {}).get("cache_file", "alumni-geocode-cache.json"))
    cache = GeocodeCache(cache_path)
    geocoder = NominatimGeocoder(config=args.cfg) if args.geocode else None
    batch = build_markers(rows, cache, geocoder=geocoder, config=args.cfg)
    payload = {
        "markers": [asdict(m) for m in batch.markers],
        "pending": batch.pending,
        "geocoded": batch.geocoded,
        "failed": batch.failed,
    }
    if args.output:
        _write_json(args.output, payload)
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="alumni-verifier",
        description="Alumni verification CLI – match registrar rosters, verify profiles, export reports.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="Optional YAML config override")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_p = subparsers.add_parser(
        "parse",
        help="Parse a roster CSV and show the usable records",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parse_p.add_argument("roster", type=Path, help="Roster CSV from the registrar")
    parse_p.add_argument("--output", type=Path, help="Write the parse report JSON here (defaults to stdout)")
    parse_p.set_defaults(func=handle_parse)

    verify_p = subparsers.add_parser(
        "verify",
        help="Verify pending profiles named in a roster CSV",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    verify_p.add_argument("roster", type=Path, help="Roster CSV from the registrar")
    verify_p.add_argument("--store", required=True, help="Profiles JSON file or project URL")
    verify_p.add_argument("--actor", required=True, help="Administrator id recorded as the verifier")
    verify_p.add_argument("--dry-run", action="store_true", help="Report the match without writing")
    verify_p.add_argument("--stats", type=Path, help="Optional JSON stats file for match counters")
    verify_p.add_argument("--summary-csv", type=Path, help="CSV path to append run summaries")
    verify_p.add_argument("--review", type=Path, help="Write a markdown review of the run")
    verify_p.set_defaults(func=handle_verify)

    toggle_p = subparsers.add_parser(
        "toggle",
        help="Flip one profile between verified and pending",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    toggle_p.add_argument("profile_id", help="Profile id to flip")
    toggle_p.add_argument("--store", required=True, help="Profiles JSON file or project URL")
    toggle_p.add_argument("--actor", required=True, help="Administrator id recorded as the verifier")
    toggle_p.set_defaults(func=handle_toggle)

    search_p = subparsers.add_parser(
        "search",
        help="List profiles by name, course, year or status",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    search_p.add_argument("query", help="Case-insensitive search text")
    search_p.add_argument("--store", required=True, help="Profiles JSON file or project URL")
    search_p.set_defaults(func=handle_search)

    export_p = subparsers.add_parser(
        "export",
        help="Export the verification table as CSV",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    export_p.add_argument("--store", required=True, help="Profiles JSON file or project URL")
    export_p.add_argument("--query", help="Only export profiles matching this search")
    export_p.add_argument("--output", type=Path, help="Destination CSV (defaults to alumni_verification_<date>.csv)")
    export_p.set_defaults(func=handle_export)

    employment_p = subparsers.add_parser(
        "employment-report",
        help="Employment rate per graduating batch",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    employment_p.add_argument("profiles", type=Path, help="JSON list of profile rows")
    employment_p.add_argument("--statuses", type=Path, help="JSON employment answers keyed by user id")
    employment_p.add_argument("--output", type=Path, help="Destination CSV (defaults to employment_rate_per_batch_<date>.csv)")
    employment_p.set_defaults(func=handle_employment)

    registrations_p = subparsers.add_parser(
        "registrations",
        help="Export alumni registrations filtered by course and batch",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    registrations_p.add_argument("profiles", type=Path, help="JSON list of profile rows")
    registrations_p.add_argument("--course", help="Normalized course, e.g. BSIT or \"BSEd Math\"")
    registrations_p.add_argument("--year", type=int, help="Graduation year")
    registrations_p.add_argument(
        "--output", type=Path, help="Destination CSV (defaults to alumni_registrations[_course][_year]_<date>.csv)"
    )
    registrations_p.set_defaults(func=handle_registrations)

    markers_p = subparsers.add_parser(
        "markers",
        help="Build map markers, geocoding free-text locations",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    markers_p.add_argument("profiles", type=Path, help="JSON list of profile rows")
    markers_p.add_argument("--cache", type=Path, help="Geocode cache JSON (defaults to the configured cache file)")
    markers_p.add_argument("--geocode", action="store_true", help="Query Nominatim for locations missing from the cache")
    markers_p.add_argument("--output", type=Path, help="Write markers JSON here (defaults to stdout)")
    markers_p.set_defaults(func=handle_markers)

    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    args.cfg = load_config(str(args.config) if args.config else None)
    try:
        args.func(args)
    except (StoreError, FileNotFoundError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


__all__ = ["main", "build_parser"]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
