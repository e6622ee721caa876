"""ListTeamUseCase — admission team directory."""

from __future__ import annotations

from admission_crm.application.ports.team_repo import TeamRepository
from admission_crm.domain.entities.team_member import TeamMember


class ListTeamUseCase:
    def __init__(self, team_repo: TeamRepository):
        self._team = team_repo

    async def execute(self) -> list[TeamMember]:
        return await self._team.get_all()
