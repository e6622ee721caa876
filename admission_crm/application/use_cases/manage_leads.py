"""ManageLeadsUseCase — dashboard listing and edits."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Sequence

from admission_crm.application.ports.lead_repo import LeadRepository
from admission_crm.domain.entities.lead import EDITABLE_FIELDS, Lead
from admission_crm.domain.errors import InvalidAssignee, LeadNotFound
from admission_crm.domain.value_objects.enums import LeadStatus

logger = logging.getLogger(__name__)


class ManageLeadsUseCase:
    def __init__(self, lead_repo: LeadRepository, roster: Sequence[str]):
        self._leads = lead_repo
        self._roster = tuple(roster)

    async def list_leads(
        self,
        status: LeadStatus | None = None,
        program: str | None = None,
        assignee: str | None = None,
        follow_up_due: bool = False,
        today: date | None = None,
    ) -> list[Lead]:
        leads = await self._leads.get_all(status=status, program=program, assignee=assignee)
        if follow_up_due:
            today = today or date.today()
            leads = [lead for lead in leads if lead.is_follow_up_due(today)]
        return leads

    async def get_lead(self, lead_id: int) -> Lead:
        lead = await self._leads.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFound(lead_id)
        return lead

    async def update_lead(self, lead_id: int, changes: dict[str, Any]) -> Lead:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")
        if not changes:
            return await self.get_lead(lead_id)
        return await self._apply(lead_id, changes)

    async def update_status(self, lead_id: int, status: LeadStatus) -> Lead:
        return await self._apply(lead_id, {"status": LeadStatus(status)})

    async def reassign(self, lead_id: int, member: str) -> Lead:
        if member not in self._roster:
            raise InvalidAssignee(member)
        return await self._apply(lead_id, {"assign_to": member})

    async def _apply(self, lead_id: int, changes: dict[str, Any]) -> Lead:
        lead = await self._leads.update_fields(lead_id, changes)
        if lead is None:
            raise LeadNotFound(lead_id)
        logger.info("Lead %s updated: %s", lead_id, ", ".join(sorted(changes)))
        return lead
