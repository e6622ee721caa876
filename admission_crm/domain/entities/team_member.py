"""TeamMember entity — a row of the admission team directory."""

from dataclasses import dataclass


@dataclass
class TeamMember:
    id: int | None
    email: str
    role: str
