"""Request schemas and response serializers."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator

from admission_crm.application.use_cases.allocate_assignee import Allocation
from admission_crm.domain.entities.lead import Lead
from admission_crm.domain.value_objects.enums import LeadStatus

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LeadCreate(BaseModel):
    name: str = Field(min_length=2)
    dob: str = ""
    phone: str = Field(min_length=1)
    education: str = ""
    email: str = Field(pattern=EMAIL_PATTERN)
    source: str = ""
    program: str


class DialogLeadCreate(LeadCreate):
    """Staff-entered lead; may start at any status."""

    status: LeadStatus = LeadStatus.NO_CONTACT


class LeadUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2)
    dob: str | None = None
    phone: str | None = None
    education: str | None = None
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN)
    source: str | None = None
    program: str | None = None
    follow_up_date: date | None = None
    communication: str | None = None
    pulse: str | None = None

    @field_validator("name", "phone", "email", "program")
    @classmethod
    def required_fields_not_null(cls, v):
        if v is None:
            raise ValueError("field cannot be cleared")
        return v


class StatusUpdate(BaseModel):
    status: LeadStatus


class AssigneeUpdate(BaseModel):
    assignee: str


def serialize_lead(lead: Lead) -> dict:
    return {
        "id": lead.id,
        "name": lead.name,
        "dob": lead.dob,
        "phone": lead.phone,
        "education": lead.education,
        "email": lead.email,
        "source": lead.source,
        "program": lead.program,
        "status": lead.status.value,
        "Assign To": lead.assign_to,
        "follow_up_date": lead.follow_up_date.isoformat() if lead.follow_up_date else None,
        "communication": lead.communication,
        "pulse": lead.pulse,
        "created_at": lead.created_at.isoformat() if lead.created_at else None,
        "updated_at": lead.updated_at.isoformat() if lead.updated_at else None,
    }


def serialize_allocation(a: Allocation) -> dict:
    return {
        "program": a.program,
        "assignee": a.member,
        "round_robin_candidate": a.round_robin_candidate,
        "rebalanced": a.rebalanced,
        "next_cursor": a.cursor,
        "workload": a.workload,
        "persisted": a.persisted,
    }
