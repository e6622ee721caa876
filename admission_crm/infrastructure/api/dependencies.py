"""FastAPI dependency injection — wires adapters into use cases."""

from __future__ import annotations

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from admission_crm.adapters.persistence.database import async_session_factory, get_session
from admission_crm.adapters.persistence.repositories import (
    SqlAssignmentStateRepository,
    SqlLeadAssignmentsQuery,
    SqlLeadRepository,
    SqlTeamRepository,
)
from admission_crm.adapters.state_file.json_store import JsonFileAssignmentStateRepository
from admission_crm.adapters.supabase.client import SupabaseRestClient
from admission_crm.adapters.supabase.repositories import (
    SupabaseAssignmentStateRepository,
    SupabaseLeadRepository,
    SupabaseTeamRepository,
)
from admission_crm.application.ports.assignment_state_repo import AssignmentStateRepository
from admission_crm.application.ports.lead_repo import LeadAssignmentsQuery, LeadRepository
from admission_crm.application.ports.team_repo import TeamRepository
from admission_crm.application.use_cases.allocate_assignee import AssignmentAllocator
from admission_crm.application.use_cases.list_team import ListTeamUseCase
from admission_crm.application.use_cases.manage_leads import ManageLeadsUseCase
from admission_crm.application.use_cases.submit_lead import SubmitLeadUseCase
from admission_crm.config import settings

logger = logging.getLogger(__name__)

# Process-wide singletons: the allocator owns the cursors and their locks
_supabase_client: SupabaseRestClient | None = None
_allocator: AssignmentAllocator | None = None


def get_supabase_client() -> SupabaseRestClient:
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = SupabaseRestClient(
            settings.supabase_url,
            settings.supabase_key,
            timeout=settings.http_timeout_seconds,
        )
    return _supabase_client


async def close_supabase_client() -> None:
    global _supabase_client
    if _supabase_client is not None:
        await _supabase_client.aclose()
        _supabase_client = None


def _build_state_repo() -> AssignmentStateRepository:
    if settings.assignment_state_store == "file":
        return JsonFileAssignmentStateRepository(settings.assignment_state_path)
    if settings.assignment_state_store == "supabase":
        return SupabaseAssignmentStateRepository(get_supabase_client())
    return SqlAssignmentStateRepository(async_session_factory)


def _build_workload_query() -> LeadAssignmentsQuery:
    if settings.lead_store == "supabase":
        return SupabaseLeadRepository(get_supabase_client())
    return SqlLeadAssignmentsQuery(async_session_factory)


def get_allocator() -> AssignmentAllocator:
    global _allocator
    if _allocator is None:
        _allocator = AssignmentAllocator(
            roster=settings.team_roster,
            programs=settings.programs,
            state_repo=_build_state_repo(),
            leads=_build_workload_query(),
            workload_aware=settings.workload_aware,
            rebalance_threshold=settings.rebalance_threshold,
            workload_timeout=settings.workload_timeout_seconds,
            state_timeout=settings.state_timeout_seconds,
        )
        logger.info(
            "Allocator ready: %d members, %d programs, workload_aware=%s, state=%s",
            len(settings.team_roster), len(settings.programs),
            _allocator.workload_aware, settings.assignment_state_store,
        )
    return _allocator


def get_lead_repo(session: AsyncSession = Depends(get_session)) -> LeadRepository:
    if settings.lead_store == "supabase":
        return SupabaseLeadRepository(get_supabase_client())
    return SqlLeadRepository(session)


def get_team_repo(session: AsyncSession = Depends(get_session)) -> TeamRepository:
    if settings.lead_store == "supabase":
        return SupabaseTeamRepository(get_supabase_client())
    return SqlTeamRepository(session)


def get_submit_lead_uc(
    lead_repo: LeadRepository = Depends(get_lead_repo),
    allocator: AssignmentAllocator = Depends(get_allocator),
) -> SubmitLeadUseCase:
    return SubmitLeadUseCase(
        lead_repo=lead_repo,
        allocator=allocator,
        duplicate_check_timeout=settings.duplicate_check_timeout_seconds,
        submit_timeout=settings.submit_timeout_seconds,
    )


def get_manage_leads_uc(
    lead_repo: LeadRepository = Depends(get_lead_repo),
    allocator: AssignmentAllocator = Depends(get_allocator),
) -> ManageLeadsUseCase:
    return ManageLeadsUseCase(lead_repo=lead_repo, roster=allocator.current_roster())


def get_list_team_uc(team_repo: TeamRepository = Depends(get_team_repo)) -> ListTeamUseCase:
    return ListTeamUseCase(team_repo=team_repo)
