"""Input checks shared by the CLI handlers."""
from __future__ import annotations

from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def ensure_file(path: PathLike) -> Path:
    """Return ``path`` as a ``Path`` when it names an existing regular file."""
    candidate = Path(path)
    if not candidate.is_file():
        reason = "is not a regular file" if candidate.exists() else "not found"
        raise FileNotFoundError(f"{candidate} {reason}")
    return candidate


__all__ = ["ensure_file"]
