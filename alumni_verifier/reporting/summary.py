"""Per-run review markdown for roster verification uploads."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..verification.service import VerificationOutcome

MAX_LISTED = 50


def summary_record(outcome: VerificationOutcome, file_name: str, actor: Optional[str]) -> Dict[str, object]:
    """Flatten an outcome into the row shape used by the run history CSV."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "file_name": file_name,
        "actor": actor or "",
        "status": outcome.status,
        "parsed_records": outcome.parsed_records,
        "skipped_rows": outcome.skipped_rows,
        "verified_count": outcome.verified_count,
        "already_verified": outcome.match.already_verified,
        "unmatched": outcome.match.unmatched_count,
        "ambiguous": outcome.match.ambiguous_count,
    }


def write_review_markdown(path: Path, outcome: VerificationOutcome, file_name: str) -> None:
    timestamp = datetime.now(timezone.utc).isoformat()
    by_id = {p.id: p for p in outcome.profiles}
    lines: List[str] = [
        f"# Roster Verification – {file_name}",
        "",
        f"*Status:* `{outcome.status}`  |  *Generated:* {timestamp}",
        "",
        outcome.message,
        "",
        "| Metric | Value |",
        "| --- | --- |",
        f"| Roster rows used | {outcome.parsed_records} |",
        f"| Roster rows skipped | {outcome.skipped_rows} |",
        f"| Newly verified | {outcome.verified_count} |",
        f"| Already verified | {outcome.match.already_verified} |",
        f"| Unmatched rows | {outcome.match.unmatched_count} |",
        f"| Ambiguous rows | {outcome.match.ambiguous_count} |",
        "",
    ]
    if outcome.match.duplicate_keys:
        lines.extend(["## Shared match keys", ""])
        lines.extend(f"- `{key}`" for key in outcome.match.duplicate_keys)
        lines.append("")
    if outcome.verified_ids:
        lines.extend(["## Verified profiles", ""])
        for pid in outcome.verified_ids[:MAX_LISTED]:
            profile = by_id.get(pid)
            label = profile.display_name if profile else pid
            lines.append(f"- {label} ({pid})")
        if len(outcome.verified_ids) > MAX_LISTED:
            lines.append(f"- … and {len(outcome.verified_ids) - MAX_LISTED} more")
        lines.append("")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines), encoding="utf-8")


__all__ = ["summary_record", "write_review_markdown"]
