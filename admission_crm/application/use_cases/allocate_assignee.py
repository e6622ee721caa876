"""AssignmentAllocator — picks the team member who receives the next lead of a program.

Two modes share one algorithm:

* workload-aware (default): per-program round-robin, overridden when the
  round-robin candidate carries noticeably more leads than the lightest member;
* round-robin only: used when workload balancing is disabled or the lead store
  can't be queried in time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Sequence

from admission_crm.application.ports.assignment_state_repo import AssignmentStateRepository
from admission_crm.application.ports.lead_repo import LeadAssignmentsQuery
from admission_crm.domain.entities.assignment_state import AssignmentState, normalize_cursor
from admission_crm.domain.errors import (
    InvalidProgram,
    StatePersistenceFailed,
    WorkloadLookupFailed,
)
from admission_crm.domain.policies.round_robin import pick_next, rebalance, workload_snapshot

logger = logging.getLogger(__name__)


@dataclass
class Allocation:
    """Outcome of one allocation."""

    program: str
    member: str
    round_robin_candidate: str
    cursor: int
    rebalanced: bool
    workload: dict[str, int] | None
    persisted: bool


class AssignmentAllocator:
    """Hands out assignees from per-program cursors kept in a shared state store.

    One instance per process. Within a process, allocations for the same
    program run one at a time and different programs proceed in parallel;
    across processes the store's atomic ``advance`` keeps cursors consistent.
    The local copy of each cursor is only used while the store is unreachable.
    """

    def __init__(
        self,
        roster: Sequence[str],
        programs: Sequence[str],
        state_repo: AssignmentStateRepository,
        leads: LeadAssignmentsQuery | None = None,
        workload_aware: bool = True,
        rebalance_threshold: int = 2,
        workload_timeout: float = 3.0,
        state_timeout: float = 5.0,
    ):
        if not roster:
            raise ValueError("Team roster must not be empty")
        if len(set(roster)) != len(roster):
            raise ValueError("Team roster members must be unique")
        if not programs:
            raise ValueError("Program set must not be empty")
        if rebalance_threshold < 0:
            raise ValueError("rebalance_threshold must be >= 0")

        self._roster = tuple(roster)
        self._programs = tuple(dict.fromkeys(programs))
        self._state_repo = state_repo
        self._leads = leads
        self._workload_aware = workload_aware and leads is not None
        self._threshold = rebalance_threshold
        self._workload_timeout = workload_timeout
        self._state_timeout = state_timeout

        self._local = AssignmentState()
        self._locks = {p: asyncio.Lock() for p in self._programs}

    # ─── Read-only accessors ─────────────────────────────────────────

    def current_roster(self) -> list[str]:
        return list(self._roster)

    def current_programs(self) -> set[str]:
        return set(self._programs)

    @property
    def workload_aware(self) -> bool:
        return self._workload_aware

    async def current_state(self) -> dict[str, int]:
        """Cursor per program as stored; this process's last known cursors if the store is unreachable."""
        try:
            raw = await asyncio.wait_for(self._state_repo.load_state(), timeout=self._state_timeout)
        except Exception:
            logger.warning("Could not load assignment state, showing local cursors", exc_info=True)
            raw = self._local.cursors
        return AssignmentState.restored(raw, self._programs, len(self._roster)).cursors

    # ─── Allocation ──────────────────────────────────────────────────

    async def allocate_next(self, program: str) -> str:
        """Return the member who should receive the next lead for *program*."""
        allocation = await self.allocate(program)
        return allocation.member

    async def allocate(self, program: str) -> Allocation:
        """Choose the next assignee for *program* and advance its cursor.

        The cursor is read, advanced and written in one atomic step of the
        state store, so allocators in other processes sharing the store never
        hand out the same position twice.

        Raises:
            InvalidProgram: *program* is not configured. No state changes.
        """
        if program not in self._locks:
            raise InvalidProgram(program, list(self._programs))

        workload = None
        if self._workload_aware:
            try:
                workload = await self._fetch_workload()
            except WorkloadLookupFailed as e:
                logger.warning("%s; using plain round-robin for %s", e, program)

        def step(current) -> int:
            _, next_cursor = self._choose(normalize_cursor(current, len(self._roster)), workload)
            return next_cursor

        async with self._locks[program]:
            try:
                current, _ = await asyncio.wait_for(
                    self._state_repo.advance(program, step), timeout=self._state_timeout
                )
                persisted = True
            except Exception as e:
                warning = StatePersistenceFailed(f"Could not advance cursor for {program}: {e}")
                logger.warning("%s (using local cursor)", warning)
                current = self._local.cursor_for(program)
                persisted = False

            cursor = normalize_cursor(current, len(self._roster))
            chosen, next_cursor = self._choose(cursor, workload)
            self._local.advance(program, next_cursor)

        allocation = Allocation(
            program=program,
            member=self._roster[chosen],
            round_robin_candidate=self._roster[cursor],
            cursor=next_cursor,
            rebalanced=chosen != cursor,
            workload=workload,
            persisted=persisted,
        )
        if allocation.rebalanced:
            logger.info(
                "Program %s: %s skipped (load %d) → %s (load %d)",
                program, allocation.round_robin_candidate,
                workload[allocation.round_robin_candidate],
                allocation.member, workload[allocation.member],
            )
        else:
            logger.info("Program %s → %s (next cursor %d)", program, allocation.member, next_cursor)
        return allocation

    async def reset(self) -> bool:
        """Zero every program's cursor. Returns False if the store could not be written."""
        locks = [self._locks[p] for p in sorted(self._locks)]
        for lock in locks:
            await lock.acquire()
        try:
            zeros = {p: 0 for p in self._programs}
            self._local = AssignmentState(cursors=dict(zeros))
            try:
                await asyncio.wait_for(self._state_repo.save_state(zeros), timeout=self._state_timeout)
            except Exception as e:
                logger.warning("%s", StatePersistenceFailed(f"Could not reset assignment state: {e}"))
                return False
        finally:
            for lock in reversed(locks):
                lock.release()
        logger.info("Assignment state reset for %d programs", len(self._programs))
        return True

    async def assignment_stats(self) -> dict[str, dict[str, int]]:
        """Count currently assigned leads per program and member."""
        stats = {p: {m: 0 for m in self._roster} for p in self._programs}
        if self._leads is None:
            return stats

        rows = await self._leads.query_program_assignments()
        for program, assignee in rows:
            if program in stats and assignee in stats[program]:
                stats[program][assignee] += 1
        return stats

    # ─── Internals ───────────────────────────────────────────────────

    def _choose(self, cursor: int, workload: dict[str, int] | None) -> tuple[int, int]:
        """Return (chosen index, next cursor) for a normalized *cursor*."""
        _, next_cursor = pick_next(self._roster, cursor)
        if workload is None:
            return cursor, next_cursor

        chosen = rebalance(self._roster, cursor, workload, self._threshold)
        if chosen != cursor:
            _, next_cursor = pick_next(self._roster, chosen)
        return chosen, next_cursor

    async def _fetch_workload(self) -> dict[str, int]:
        try:
            assignees = await asyncio.wait_for(
                self._leads.query_lead_assignments(), timeout=self._workload_timeout
            )
        except asyncio.TimeoutError as e:
            raise WorkloadLookupFailed(
                f"Workload query timed out after {self._workload_timeout:.1f}s"
            ) from e
        except Exception as e:
            raise WorkloadLookupFailed(f"Workload query failed: {e}") from e
        return workload_snapshot(self._roster, assignees)
