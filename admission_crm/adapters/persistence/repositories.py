"""SQLAlchemy repository implementations."""

from __future__ import annotations

from typing import Any, Callable, Mapping

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from admission_crm.adapters.persistence.models import (
    AdmissionTeamModel,
    AssignmentStateModel,
    LeadModel,
)
from admission_crm.application.ports.assignment_state_repo import AssignmentStateRepository
from admission_crm.application.ports.lead_repo import LeadAssignmentsQuery, LeadRepository
from admission_crm.application.ports.team_repo import TeamRepository
from admission_crm.domain.entities.lead import Lead
from admission_crm.domain.entities.team_member import TeamMember
from admission_crm.domain.value_objects.enums import LeadStatus

# ─── Mappers ─────────────────────────────────────────────────────────


def _lead_to_domain(m: LeadModel) -> Lead:
    return Lead(
        id=m.id,
        name=m.name,
        dob=m.dob,
        phone=m.phone,
        education=m.education,
        email=m.email,
        source=m.source,
        program=m.program,
        status=LeadStatus(m.status),
        assign_to=m.assign_to,
        follow_up_date=m.follow_up_date,
        communication=m.communication,
        pulse=m.pulse,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _team_member_to_domain(m: AdmissionTeamModel) -> TeamMember:
    return TeamMember(id=m.id, email=m.email, role=m.role)


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, LeadStatus) else value


# ─── Repositories ────────────────────────────────────────────────────


class SqlLeadRepository(LeadRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, lead: Lead) -> Lead:
        m = LeadModel(
            name=lead.name,
            dob=lead.dob,
            phone=lead.phone,
            education=lead.education,
            email=lead.email,
            source=lead.source,
            program=lead.program,
            status=lead.status.value,
            assign_to=lead.assign_to,
            follow_up_date=lead.follow_up_date,
            communication=lead.communication,
            pulse=lead.pulse,
        )
        self._s.add(m)
        await self._s.flush()
        await self._s.refresh(m)
        return _lead_to_domain(m)

    async def get_by_id(self, lead_id: int) -> Lead | None:
        m = await self._s.get(LeadModel, lead_id)
        return _lead_to_domain(m) if m else None

    async def get_by_phone(self, phone: str) -> Lead | None:
        result = await self._s.execute(
            select(LeadModel).where(LeadModel.phone == phone).order_by(LeadModel.id).limit(1)
        )
        m = result.scalar_one_or_none()
        return _lead_to_domain(m) if m else None

    async def get_all(
        self,
        status: LeadStatus | None = None,
        program: str | None = None,
        assignee: str | None = None,
    ) -> list[Lead]:
        stmt = select(LeadModel).order_by(LeadModel.created_at.desc(), LeadModel.id.desc())
        if status is not None:
            stmt = stmt.where(LeadModel.status == LeadStatus(status).value)
        if program is not None:
            stmt = stmt.where(LeadModel.program == program)
        if assignee is not None:
            stmt = stmt.where(LeadModel.assign_to == assignee)
        result = await self._s.execute(stmt)
        return [_lead_to_domain(m) for m in result.scalars()]

    async def update_fields(self, lead_id: int, changes: dict[str, Any]) -> Lead | None:
        m = await self._s.get(LeadModel, lead_id)
        if m is None:
            return None
        for name, value in changes.items():
            setattr(m, name, _column_value(value))
        await self._s.flush()
        await self._s.refresh(m)
        return _lead_to_domain(m)

    async def query_lead_assignments(self) -> list[str | None]:
        result = await self._s.execute(select(LeadModel.assign_to))
        return list(result.scalars())

    async def query_program_assignments(self) -> list[tuple[str, str | None]]:
        result = await self._s.execute(select(LeadModel.program, LeadModel.assign_to))
        return [(program, assignee) for program, assignee in result.all()]


class SqlLeadAssignmentsQuery(LeadAssignmentsQuery):
    """Workload queries on short-lived sessions, for the process-wide allocator."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sf = session_factory

    async def query_lead_assignments(self) -> list[str | None]:
        async with self._sf() as session:
            return await SqlLeadRepository(session).query_lead_assignments()

    async def query_program_assignments(self) -> list[tuple[str, str | None]]:
        async with self._sf() as session:
            return await SqlLeadRepository(session).query_program_assignments()


class SqlTeamRepository(TeamRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_all(self) -> list[TeamMember]:
        result = await self._s.execute(
            select(AdmissionTeamModel).order_by(AdmissionTeamModel.role, AdmissionTeamModel.id)
        )
        return [_team_member_to_domain(m) for m in result.scalars()]


class SqlAssignmentStateRepository(AssignmentStateRepository):
    """One row per program in ``assignment_state``.

    ``advance`` locks the program's row (``SELECT … FOR UPDATE``) for the
    read-modify-write, so workers sharing the database serialize on it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sf = session_factory

    async def load_state(self) -> dict[str, int] | None:
        async with self._sf() as session:
            result = await session.execute(select(AssignmentStateModel))
            rows = result.scalars().all()
        if not rows:
            return None
        return {row.program: row.cursor for row in rows}

    async def save_state(self, cursors: Mapping[str, int]) -> None:
        if not cursors:
            return
        stmt = insert(AssignmentStateModel).values(
            [{"program": program, "cursor": cursor} for program, cursor in cursors.items()]
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[AssignmentStateModel.program],
            set_={"cursor": stmt.excluded.cursor, "updated_at": func.now()},
        )
        async with self._sf() as session, session.begin():
            await session.execute(stmt)

    async def advance(self, program: str, step: Callable[[Any], int]) -> tuple[int, int]:
        async with self._sf() as session, session.begin():
            row = await self._locked_row(session, program)
            if row is None:
                await session.execute(
                    insert(AssignmentStateModel)
                    .values(program=program, cursor=0)
                    .on_conflict_do_nothing(index_elements=[AssignmentStateModel.program])
                )
                row = await self._locked_row(session, program)
            current = row.cursor
            row.cursor = new = step(current)
        return current, new

    @staticmethod
    async def _locked_row(session: AsyncSession, program: str) -> AssignmentStateModel | None:
        result = await session.execute(
            select(AssignmentStateModel)
            .where(AssignmentStateModel.program == program)
            .with_for_update()
        )
        return result.scalar_one_or_none()
