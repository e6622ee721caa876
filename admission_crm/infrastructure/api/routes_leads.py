"""Lead endpoints — public submission + dashboard listing and edits."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from admission_crm.adapters.persistence.database import get_session
from admission_crm.application.use_cases.manage_leads import ManageLeadsUseCase
from admission_crm.application.use_cases.submit_lead import SubmitLeadUseCase
from admission_crm.domain.entities.lead import Lead
from admission_crm.domain.errors import (
    DuplicateLead,
    InvalidAssignee,
    InvalidProgram,
    LeadNotFound,
    LeadStoreUnavailable,
)
from admission_crm.domain.value_objects.enums import LeadStatus
from admission_crm.infrastructure.api.dependencies import get_manage_leads_uc, get_submit_lead_uc
from admission_crm.infrastructure.api.schemas import (
    AssigneeUpdate,
    DialogLeadCreate,
    LeadCreate,
    LeadUpdate,
    StatusUpdate,
    serialize_allocation,
    serialize_lead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


@router.post("", status_code=201)
async def submit_lead(
    body: LeadCreate,
    submit_uc: SubmitLeadUseCase = Depends(get_submit_lead_uc),
    session: AsyncSession = Depends(get_session),
):
    """Public application form: the lead always starts at No Contact."""
    return await _submit(session, submit_uc, Lead(id=None, **body.model_dump()))


@router.post("/dialog", status_code=201)
async def submit_dialog_lead(
    body: DialogLeadCreate,
    submit_uc: SubmitLeadUseCase = Depends(get_submit_lead_uc),
    session: AsyncSession = Depends(get_session),
):
    """Dashboard "add lead" dialog: staff may pick the starting status."""
    return await _submit(session, submit_uc, Lead(id=None, **body.model_dump()))


async def _submit(session: AsyncSession, submit_uc: SubmitLeadUseCase, lead: Lead) -> dict:
    try:
        result = await submit_uc.execute(lead)
        await session.commit()
    except DuplicateLead as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidProgram as e:
        raise HTTPException(status_code=422, detail=str(e))
    except LeadStoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {
        "status": "ok",
        "lead": serialize_lead(result.lead),
        "assignment": serialize_allocation(result.allocation),
    }


@router.get("")
async def list_leads(
    status: LeadStatus | None = None,
    program: str | None = None,
    assignee: str | None = None,
    follow_up_due: bool = False,
    uc: ManageLeadsUseCase = Depends(get_manage_leads_uc),
):
    """List leads newest first, with optional dashboard filters."""
    try:
        leads = await uc.list_leads(
            status=status, program=program, assignee=assignee, follow_up_due=follow_up_due
        )
    except LeadStoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    by_status = {s.value: 0 for s in LeadStatus}
    for lead in leads:
        by_status[lead.status.value] += 1

    return {
        "total": len(leads),
        "by_status": by_status,
        "leads": [serialize_lead(lead) for lead in leads],
    }


@router.get("/{lead_id}")
async def get_lead(lead_id: int, uc: ManageLeadsUseCase = Depends(get_manage_leads_uc)):
    try:
        return serialize_lead(await uc.get_lead(lead_id))
    except LeadNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LeadStoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.patch("/{lead_id}")
async def update_lead(
    lead_id: int,
    body: LeadUpdate,
    uc: ManageLeadsUseCase = Depends(get_manage_leads_uc),
    session: AsyncSession = Depends(get_session),
):
    """Edit one or more lead fields from the dashboard table."""
    return await _commit_update(session, uc.update_lead(lead_id, body.model_dump(exclude_unset=True)))


@router.put("/{lead_id}/status")
async def update_status(
    lead_id: int,
    body: StatusUpdate,
    uc: ManageLeadsUseCase = Depends(get_manage_leads_uc),
    session: AsyncSession = Depends(get_session),
):
    return await _commit_update(session, uc.update_status(lead_id, body.status))


@router.put("/{lead_id}/assignee")
async def reassign(
    lead_id: int,
    body: AssigneeUpdate,
    uc: ManageLeadsUseCase = Depends(get_manage_leads_uc),
    session: AsyncSession = Depends(get_session),
):
    return await _commit_update(session, uc.reassign(lead_id, body.assignee))


async def _commit_update(session: AsyncSession, update) -> dict:
    try:
        lead = await update
        await session.commit()
    except LeadNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (InvalidAssignee, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except LeadStoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return serialize_lead(lead)
