"""Admission team directory endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from admission_crm.application.use_cases.list_team import ListTeamUseCase
from admission_crm.domain.errors import LeadStoreUnavailable
from admission_crm.infrastructure.api.dependencies import get_list_team_uc

router = APIRouter(prefix="/team", tags=["team"])


@router.get("")
async def list_team(uc: ListTeamUseCase = Depends(get_list_team_uc)):
    try:
        members = await uc.execute()
    except LeadStoreUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {
        "total": len(members),
        "members": [{"id": m.id, "email": m.email, "role": m.role} for m in members],
    }
