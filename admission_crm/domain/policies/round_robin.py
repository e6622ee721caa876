"""RoundRobinPolicy — per-program rotation over the team roster, with workload override."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Mapping, Sequence


def pick_next(roster: Sequence[str], cursor: int) -> tuple[str, int]:
    """Deterministic round-robin pick.

    Args:
        roster: non-empty ordered team roster.
        cursor: current cursor for the program.

    Returns:
        (chosen_member, next_cursor) where next_cursor is already wrapped to the roster size.

    Raises:
        ValueError: if the roster is empty.
    """
    if not roster:
        raise ValueError("Cannot pick from an empty roster")

    index = cursor % len(roster)
    return roster[index], (index + 1) % len(roster)


def workload_snapshot(roster: Sequence[str], assignees: Iterable[str | None]) -> dict[str, int]:
    """Count leads per roster member. Null assignees and non-roster names are ignored."""
    counts = Counter(a for a in assignees if a)
    return {member: counts.get(member, 0) for member in roster}


def rebalance(
    roster: Sequence[str],
    cursor: int,
    workload: Mapping[str, int],
    threshold: int,
) -> int:
    """Return the roster index that should receive the next lead.

    The round-robin candidate at *cursor* is kept unless its load exceeds the
    lightest member's load by more than *threshold*. In that case the roster is
    scanned forward from *cursor* (wrapping) for the first member at minimum load.
    """
    if not roster:
        raise ValueError("Cannot pick from an empty roster")

    size = len(roster)
    start = cursor % size
    loads = [workload.get(member, 0) for member in roster]
    min_load = min(loads)

    if loads[start] <= min_load + threshold:
        return start

    for offset in range(size):
        index = (start + offset) % size
        if loads[index] == min_load:
            return index

    return start  # unreachable: min_load is always present
