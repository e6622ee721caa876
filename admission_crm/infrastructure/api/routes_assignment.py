"""Assignment endpoints — roster, cursors, manual allocation and reset."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from admission_crm.application.use_cases.allocate_assignee import AssignmentAllocator
from admission_crm.domain.errors import InvalidProgram, LeadStoreUnavailable
from admission_crm.infrastructure.api.dependencies import get_allocator
from admission_crm.infrastructure.api.schemas import serialize_allocation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assignment", tags=["assignment"])


@router.get("/roster")
async def get_roster(allocator: AssignmentAllocator = Depends(get_allocator)):
    return {"roster": allocator.current_roster()}


@router.get("/programs")
async def get_programs(allocator: AssignmentAllocator = Depends(get_allocator)):
    return {"programs": sorted(allocator.current_programs())}


@router.get("/state")
async def get_state(allocator: AssignmentAllocator = Depends(get_allocator)):
    """Current cursor per program and who is next in plain round-robin order."""
    roster = allocator.current_roster()
    cursors = await allocator.current_state()
    return {
        "workload_aware": allocator.workload_aware,
        "programs": {
            program: {"cursor": cursor, "next": roster[cursor % len(roster)]}
            for program, cursor in sorted(cursors.items())
        },
    }


@router.get("/stats")
async def get_stats(allocator: AssignmentAllocator = Depends(get_allocator)):
    """Assigned lead counts per program and team member."""
    try:
        return {"stats": await allocator.assignment_stats()}
    except LeadStoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("Assignment stats query failed: %s", e)
        raise HTTPException(status_code=503, detail="Lead store unavailable")


@router.post("/next/{program}")
async def allocate_next(program: str, allocator: AssignmentAllocator = Depends(get_allocator)):
    """Advance the rotation for *program* without creating a lead."""
    try:
        allocation = await allocator.allocate(program)
    except InvalidProgram as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"status": "ok", **serialize_allocation(allocation)}


@router.post("/reset")
async def reset_state(allocator: AssignmentAllocator = Depends(get_allocator)):
    persisted = await allocator.reset()
    return {"status": "ok", "persisted": persisted, "state": await allocator.current_state()}
