"""Port interface for the admission team directory."""

from abc import ABC, abstractmethod

from admission_crm.domain.entities.team_member import TeamMember


class TeamRepository(ABC):
    @abstractmethod
    async def get_all(self) -> list[TeamMember]:
        """Return team members ordered by role."""
        ...
