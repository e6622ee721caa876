"""Port interfaces for lead persistence."""

from abc import ABC, abstractmethod
from typing import Any

from admission_crm.domain.entities.lead import Lead
from admission_crm.domain.value_objects.enums import LeadStatus


class LeadAssignmentsQuery(ABC):
    @abstractmethod
    async def query_lead_assignments(self) -> list[str | None]:
        """Return the "Assign To" value of every lead (None where unassigned)."""
        ...

    @abstractmethod
    async def query_program_assignments(self) -> list[tuple[str, str | None]]:
        """Return (program, assignee) for every lead."""
        ...


class LeadRepository(LeadAssignmentsQuery):
    @abstractmethod
    async def save(self, lead: Lead) -> Lead:
        ...

    @abstractmethod
    async def get_by_id(self, lead_id: int) -> Lead | None:
        ...

    @abstractmethod
    async def get_by_phone(self, phone: str) -> Lead | None:
        ...

    @abstractmethod
    async def get_all(
        self,
        status: LeadStatus | None = None,
        program: str | None = None,
        assignee: str | None = None,
    ) -> list[Lead]:
        """Return leads newest first, optionally filtered."""
        ...

    @abstractmethod
    async def update_fields(self, lead_id: int, changes: dict[str, Any]) -> Lead | None:
        """Apply column changes and return the updated lead, or None if it doesn't exist."""
        ...
