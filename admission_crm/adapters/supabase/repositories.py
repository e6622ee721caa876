"""Repository implementations backed by the hosted backend's REST interface."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Mapping

from admission_crm.adapters.supabase.client import SupabaseRestClient, eq, quote_column
from admission_crm.application.ports.assignment_state_repo import AssignmentStateRepository
from admission_crm.application.ports.lead_repo import LeadRepository
from admission_crm.application.ports.team_repo import TeamRepository
from admission_crm.domain.entities.lead import Lead
from admission_crm.domain.entities.team_member import TeamMember
from admission_crm.domain.errors import StatePersistenceFailed
from admission_crm.domain.value_objects.enums import LeadStatus

logger = logging.getLogger(__name__)

LEADS = "leads"
TEAM = "admission_team"
ASSIGNMENT_STATE = "assignment_state"
ASSIGN_TO = "Assign To"

MAX_CAS_ATTEMPTS = 5

# domain field → column
_COLUMNS = {"assign_to": ASSIGN_TO}

# ─── Mappers ─────────────────────────────────────────────────────────


def _parse_datetime(raw: str | None) -> datetime | None:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def _parse_date(raw: str | None) -> date | None:
    if not raw:
        return None
    return date.fromisoformat(raw[:10])


def _row_to_lead(row: Mapping[str, Any]) -> Lead:
    return Lead(
        id=row.get("id"),
        name=row.get("name") or "",
        dob=row.get("dob"),
        phone=row.get("phone") or "",
        education=row.get("education"),
        email=row.get("email") or "",
        source=row.get("source"),
        program=row.get("program") or "",
        status=LeadStatus(row.get("status") or LeadStatus.NO_CONTACT.value),
        assign_to=row.get(ASSIGN_TO),
        follow_up_date=_parse_date(row.get("follow_up_date")),
        communication=row.get("communication"),
        pulse=row.get("pulse"),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def _to_row_value(value: Any) -> Any:
    if isinstance(value, LeadStatus):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def _changes_to_row(changes: Mapping[str, Any]) -> dict[str, Any]:
    return {_COLUMNS.get(k, k): _to_row_value(v) for k, v in changes.items()}


# ─── Repositories ────────────────────────────────────────────────────


class SupabaseLeadRepository(LeadRepository):
    def __init__(self, client: SupabaseRestClient):
        self._c = client

    async def save(self, lead: Lead) -> Lead:
        row = _changes_to_row(
            {
                "name": lead.name,
                "dob": lead.dob,
                "phone": lead.phone,
                "education": lead.education,
                "email": lead.email,
                "source": lead.source,
                "program": lead.program,
                "status": lead.status,
                "assign_to": lead.assign_to,
                "follow_up_date": lead.follow_up_date,
                "communication": lead.communication,
                "pulse": lead.pulse,
            }
        )
        rows = await self._c.insert(LEADS, [row])
        return _row_to_lead(rows[0]) if rows else lead

    async def get_by_id(self, lead_id: int) -> Lead | None:
        rows = await self._c.select(LEADS, filters={"id": eq(lead_id)}, limit=1)
        return _row_to_lead(rows[0]) if rows else None

    async def get_by_phone(self, phone: str) -> Lead | None:
        rows = await self._c.select(LEADS, filters={"phone": eq(phone)}, limit=1)
        return _row_to_lead(rows[0]) if rows else None

    async def get_all(
        self,
        status: LeadStatus | None = None,
        program: str | None = None,
        assignee: str | None = None,
    ) -> list[Lead]:
        filters: dict[str, str] = {}
        if status is not None:
            filters["status"] = eq(LeadStatus(status).value)
        if program is not None:
            filters["program"] = eq(program)
        if assignee is not None:
            filters[quote_column(ASSIGN_TO)] = eq(assignee)
        rows = await self._c.select(LEADS, filters=filters, order="created_at.desc")
        return [_row_to_lead(r) for r in rows]

    async def update_fields(self, lead_id: int, changes: dict[str, Any]) -> Lead | None:
        rows = await self._c.update(LEADS, _changes_to_row(changes), filters={"id": eq(lead_id)})
        return _row_to_lead(rows[0]) if rows else None

    async def query_lead_assignments(self) -> list[str | None]:
        rows = await self._c.select(LEADS, columns=quote_column(ASSIGN_TO))
        return [r.get(ASSIGN_TO) for r in rows]

    async def query_program_assignments(self) -> list[tuple[str, str | None]]:
        rows = await self._c.select(LEADS, columns=f"program,{quote_column(ASSIGN_TO)}")
        return [(r.get("program"), r.get(ASSIGN_TO)) for r in rows]


class SupabaseTeamRepository(TeamRepository):
    def __init__(self, client: SupabaseRestClient):
        self._c = client

    async def get_all(self) -> list[TeamMember]:
        rows = await self._c.select(TEAM, order="role")
        return [TeamMember(id=r.get("id"), email=r.get("email", ""), role=r.get("role", "")) for r in rows]


class SupabaseAssignmentStateRepository(AssignmentStateRepository):
    """One row per program in the hosted ``assignment_state`` table."""

    def __init__(self, client: SupabaseRestClient, table: str = ASSIGNMENT_STATE):
        self._c = client
        self._table = table

    async def load_state(self) -> dict[str, Any] | None:
        rows = await self._c.select(self._table, columns="program,cursor")
        if not rows:
            return None
        return {r["program"]: r.get("cursor") for r in rows if "program" in r}

    async def save_state(self, cursors: Mapping[str, int]) -> None:
        if not cursors:
            return
        await self._c.upsert(
            self._table,
            [{"program": p, "cursor": c} for p, c in cursors.items()],
            on_conflict="program",
        )

    async def advance(self, program: str, step: Callable[[Any], int]) -> tuple[Any, int]:
        """Compare-and-swap on the program's row; retried while another writer wins."""
        for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
            rows = await self._c.select(
                self._table, columns="cursor", filters={"program": eq(program)}, limit=1
            )
            if not rows:
                current = None
                new = step(current)
                written = await self._c.insert(
                    self._table, [{"program": program, "cursor": new}], on_conflict="program"
                )
            else:
                current = rows[0].get("cursor")
                new = step(current)
                written = await self._c.update(
                    self._table,
                    {"cursor": new},
                    filters={
                        "program": eq(program),
                        "cursor": eq(current) if current is not None else "is.null",
                    },
                )
            if written:
                return current, new
            logger.debug("Cursor for %s changed concurrently (attempt %d)", program, attempt)

        raise StatePersistenceFailed(
            f"Cursor for {program} kept changing; gave up after {MAX_CAS_ATTEMPTS} attempts"
        )
