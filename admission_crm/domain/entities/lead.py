"""Lead entity — a prospective student and who follows up on them."""

from dataclasses import dataclass
from datetime import date, datetime

from admission_crm.domain.value_objects.enums import LeadStatus

# Fields staff may edit directly from the dashboard
EDITABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "dob",
        "phone",
        "education",
        "email",
        "source",
        "program",
        "follow_up_date",
        "communication",
        "pulse",
    }
)


@dataclass
class Lead:
    id: int | None
    name: str
    phone: str
    email: str
    program: str
    dob: str | None = None
    education: str | None = None
    source: str | None = None
    status: LeadStatus = LeadStatus.NO_CONTACT
    assign_to: str | None = None
    follow_up_date: date | None = None
    communication: str | None = None
    pulse: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_follow_up_due(self, today: date) -> bool:
        return self.follow_up_date is not None and self.follow_up_date <= today
