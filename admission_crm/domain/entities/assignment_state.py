"""AssignmentState — per-program round-robin cursors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping


def normalize_cursor(value: Any, roster_size: int) -> int:
    """Bring a stored cursor back into [0, roster_size); missing or corrupt values become 0."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value % roster_size


@dataclass
class AssignmentState:
    """Cursor per program: index of the next roster member due for that program."""

    cursors: dict[str, int] = field(default_factory=dict)

    @classmethod
    def restored(
        cls,
        raw: Any,
        programs: Iterable[str],
        roster_size: int,
    ) -> AssignmentState:
        """Build a state from persisted data, tolerating missing or corrupt entries.

        Unknown programs are dropped, missing programs start at 0, and every
        cursor is brought back into [0, roster_size).
        """
        if not isinstance(raw, Mapping):
            raw = {}
        return cls(cursors={p: normalize_cursor(raw.get(p), roster_size) for p in programs})

    def cursor_for(self, program: str) -> int:
        return self.cursors.get(program, 0)

    def advance(self, program: str, cursor: int) -> None:
        self.cursors[program] = cursor
