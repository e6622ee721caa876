"""JSON-file cursor store for single-process deployments."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Mapping

from admission_crm.application.ports.assignment_state_repo import AssignmentStateRepository

logger = logging.getLogger(__name__)

STATE_KEY = "assignmentState"


class JsonFileAssignmentStateRepository(AssignmentStateRepository):
    """Keeps cursors under ``{"assignmentState": {...}}`` in a local file.

    Writes go through a temp file + rename so a crash never leaves half a file.
    ``advance`` is serialized by an in-process lock only; the file is not
    shared safely between processes.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def load_state(self) -> Any:
        return await asyncio.to_thread(self._read)

    async def save_state(self, cursors: Mapping[str, int]) -> None:
        async with self._lock:
            await asyncio.to_thread(self._write, dict(cursors))

    def _read(self) -> Any:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable assignment state file %s", self._path)
            return None
        if not isinstance(data, dict):
            return None
        return data.get(STATE_KEY)

    def _write(self, cursors: dict[str, int]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".assignment-state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({STATE_KEY: cursors}, f, indent=2, sort_keys=True)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    async def advance(self, program: str, step: Callable[[Any], int]) -> tuple[Any, int]:
        async with self._lock:
            raw = await asyncio.to_thread(self._read)
            cursors = dict(raw) if isinstance(raw, dict) else {}
            current = cursors.get(program)
            cursors[program] = new = step(current)
            await asyncio.to_thread(self._write, cursors)
        return current, new
