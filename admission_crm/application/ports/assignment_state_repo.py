from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping


class AssignmentStateRepository(ABC):
    @abstractmethod
    async def load_state(self) -> Mapping[str, Any] | None:
        """Return the persisted program → cursor mapping, or None if nothing is stored.

        Values are returned raw; the allocator normalizes them.
        """
        ...

    @abstractmethod
    async def advance(self, program: str, step: Callable[[Any], int]) -> tuple[Any, int]:
        """Atomically replace *program*'s stored cursor with ``step(current)``.

        *current* is the raw stored value, or None when the program has no
        cursor yet. Only this program's cursor is written. Concurrent callers,
        in this process or another one sharing the store, never observe the
        same *current*.

        Returns:
            (current, new)
        """
        ...

    @abstractmethod
    async def save_state(self, cursors: Mapping[str, int]) -> None:
        """Overwrite the cursors of every program in *cursors*."""
        ...
