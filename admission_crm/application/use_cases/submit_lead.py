"""SubmitLeadUseCase — duplicate check → assign → insert."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from admission_crm.application.ports.lead_repo import LeadRepository
from admission_crm.application.use_cases.allocate_assignee import Allocation, AssignmentAllocator
from admission_crm.domain.entities.lead import Lead
from admission_crm.domain.errors import DuplicateLead, LeadStoreUnavailable

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    lead: Lead
    allocation: Allocation


class SubmitLeadUseCase:
    """Creates a lead from the application form or the dashboard dialog."""

    def __init__(
        self,
        lead_repo: LeadRepository,
        allocator: AssignmentAllocator,
        duplicate_check_timeout: float = 5.0,
        submit_timeout: float = 8.0,
    ):
        self._leads = lead_repo
        self._allocator = allocator
        self._check_timeout = duplicate_check_timeout
        self._submit_timeout = submit_timeout

    async def execute(self, lead: Lead) -> SubmissionResult:
        """Persist *lead* with an assignee.

        Pipeline:
        1. Reject phone numbers that already have an application
        2. Allocate an assignee for the lead's program
        3. Insert the lead

        Raises:
            DuplicateLead: phone already on file (no cursor is advanced).
            InvalidProgram: program not configured.
            LeadStoreUnavailable: the store timed out on step 1 or 3.
        """
        # Step 1: duplicate check
        try:
            existing = await asyncio.wait_for(
                self._leads.get_by_phone(lead.phone), timeout=self._check_timeout
            )
        except asyncio.TimeoutError as e:
            raise LeadStoreUnavailable("Timeout checking existing lead") from e
        if existing is not None:
            logger.info("Rejected duplicate application for lead %s", existing.id)
            raise DuplicateLead(lead.phone)

        # Step 2: assignee
        allocation = await self._allocator.allocate(lead.program)
        lead.assign_to = allocation.member

        # Step 3: insert
        try:
            saved = await asyncio.wait_for(self._leads.save(lead), timeout=self._submit_timeout)
        except asyncio.TimeoutError as e:
            raise LeadStoreUnavailable("Timeout submitting application") from e

        logger.info(
            "Lead %s (%s) → %s%s",
            saved.id, saved.program, saved.assign_to,
            " [rebalanced]" if allocation.rebalanced else "",
        )
        return SubmissionResult(lead=saved, allocation=allocation)
