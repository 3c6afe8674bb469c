"""Apply a local change first, commit it remotely, restore it on failure."""
from __future__ import annotations

import logging
from typing import Callable, MutableMapping, TypeVar

K = TypeVar("K")
V = TypeVar("V")

logger = logging.getLogger(__name__)


def optimistic_apply(
    state: MutableMapping[K, V],
    key: K,
    transition: Callable[[V], V],
    commit: Callable[[V], None],
) -> V:
    """Write ``transition(state[key])`` into ``state`` and commit it.

    When ``commit`` raises, the previous value is put back and the error
    propagates unchanged.
    """
    previous = state[key]
    tentative = transition(previous)
    state[key] = tentative
    try:
        commit(tentative)
    except Exception:
        logger.warning("Commit failed for %r; restoring previous value", key)
        state[key] = previous
        raise
    return tentative


__all__ = ["optimistic_apply"]
