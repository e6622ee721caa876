"""Tests for the HTTP API with dependency overrides (no database)."""

from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from admission_crm.adapters.persistence.database import get_session
from admission_crm.application.ports.assignment_state_repo import AssignmentStateRepository
from admission_crm.application.ports.lead_repo import LeadRepository
from admission_crm.application.use_cases.allocate_assignee import AssignmentAllocator
from admission_crm.infrastructure.api.dependencies import get_allocator, get_lead_repo
from admission_crm.main import create_app

PROGRAM = "Bar Transfer Course"


class FakeSession:
    def __init__(self):
        self.commits = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        pass

    async def execute(self, statement):
        return self

    def scalar(self):
        return 1


class FakeLeadRepo(LeadRepository):
    def __init__(self):
        self.leads = {}

    async def save(self, lead):
        lead.id = len(self.leads) + 1
        self.leads[lead.id] = lead
        return lead

    async def get_by_id(self, lead_id):
        return self.leads.get(lead_id)

    async def get_by_phone(self, phone):
        return next((l for l in self.leads.values() if l.phone == phone), None)

    async def get_all(self, status=None, program=None, assignee=None):
        leads = sorted(self.leads.values(), key=lambda l: l.id, reverse=True)
        if status is not None:
            leads = [l for l in leads if l.status == status]
        return leads

    async def update_fields(self, lead_id, changes):
        if lead_id not in self.leads:
            return None
        self.leads[lead_id] = replace(self.leads[lead_id], **changes)
        return self.leads[lead_id]

    async def query_lead_assignments(self):
        return [l.assign_to for l in self.leads.values()]

    async def query_program_assignments(self):
        return [(l.program, l.assign_to) for l in self.leads.values()]


class FakeStateRepo(AssignmentStateRepository):
    def __init__(self):
        self.stored = {}

    async def load_state(self):
        return dict(self.stored) or None

    async def advance(self, program, step):
        current = self.stored.get(program)
        self.stored[program] = new = step(current)
        return current, new

    async def save_state(self, cursors):
        self.stored.update(cursors)


@pytest.fixture
def lead_repo():
    return FakeLeadRepo()


@pytest.fixture
def allocator(lead_repo):
    return AssignmentAllocator(
        roster=["Faizan Ullah", "Shahzaib Shams", "Aneeza Komal"],
        programs=[PROGRAM, "LLB (Hons)"],
        state_repo=FakeStateRepo(),
        leads=lead_repo,
    )


@pytest.fixture
def client(lead_repo, allocator):
    app = create_app()

    async def _session():
        yield FakeSession()

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_lead_repo] = lambda: lead_repo
    app.dependency_overrides[get_allocator] = lambda: allocator
    return TestClient(app)


def _payload(phone="03001234567", program=PROGRAM, **kwargs) -> dict:
    body = {
        "name": "Zainab Tariq",
        "dob": "1999-09-09",
        "phone": phone,
        "education": "LLB",
        "email": "zainab@example.com",
        "source": "Website",
        "program": program,
    }
    body.update(kwargs)
    return body


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_submit_lead_assigns_round_robin(client):
    first = client.post("/api/leads", json=_payload(phone="1"))
    second = client.post("/api/leads", json=_payload(phone="2"))

    assert first.status_code == 201
    assert first.json()["lead"]["Assign To"] == "Faizan Ullah"
    assert first.json()["lead"]["status"] == "No Contact"
    assert first.json()["assignment"]["persisted"] is True
    assert second.json()["lead"]["Assign To"] == "Shahzaib Shams"


def test_submit_duplicate_phone(client):
    client.post("/api/leads", json=_payload())
    response = client.post("/api/leads", json=_payload())
    assert response.status_code == 409


def test_submit_invalid_program(client):
    response = client.post("/api/leads", json=_payload(program="MBA"))
    assert response.status_code == 422
    assert "Invalid program" in response.json()["detail"]


def test_submit_invalid_email(client):
    response = client.post("/api/leads", json=_payload(email="not-an-email"))
    assert response.status_code == 422


def test_list_and_filter_leads(client):
    client.post("/api/leads", json=_payload(phone="1"))
    client.post("/api/leads", json=_payload(phone="2"))
    client.put("/api/leads/1/status", json={"status": "Won"})

    everything = client.get("/api/leads").json()
    assert everything["total"] == 2
    assert everything["by_status"]["Won"] == 1

    won = client.get("/api/leads", params={"status": "Won"}).json()
    assert [l["id"] for l in won["leads"]] == [1]


def test_update_status_rejects_unknown_value(client):
    client.post("/api/leads", json=_payload())
    response = client.put("/api/leads/1/status", json={"status": "Maybe"})
    assert response.status_code == 422


def test_patch_lead_fields(client):
    client.post("/api/leads", json=_payload())
    response = client.patch("/api/leads/1", json={"pulse": "Asked for fee schedule"})
    assert response.status_code == 200
    assert response.json()["pulse"] == "Asked for fee schedule"


def test_reassign(client):
    client.post("/api/leads", json=_payload())
    ok = client.put("/api/leads/1/assignee", json={"assignee": "Aneeza Komal"})
    assert ok.json()["Assign To"] == "Aneeza Komal"

    bad = client.put("/api/leads/1/assignee", json={"assignee": "Nobody"})
    assert bad.status_code == 422


def test_missing_lead(client):
    assert client.get("/api/leads/42").status_code == 404
    assert client.put("/api/leads/42/status", json={"status": "Won"}).status_code == 404


def test_assignment_roster_and_programs(client):
    assert client.get("/api/assignment/roster").json()["roster"] == [
        "Faizan Ullah", "Shahzaib Shams", "Aneeza Komal",
    ]
    assert client.get("/api/assignment/programs").json()["programs"] == [PROGRAM, "LLB (Hons)"]


def test_assignment_next_state_and_reset(client):
    response = client.post(f"/api/assignment/next/{PROGRAM}")
    assert response.json()["assignee"] == "Faizan Ullah"

    state = client.get("/api/assignment/state").json()
    assert state["programs"][PROGRAM] == {"cursor": 1, "next": "Shahzaib Shams"}
    assert state["programs"]["LLB (Hons)"]["cursor"] == 0

    reset = client.post("/api/assignment/reset").json()
    assert reset["state"] == {PROGRAM: 0, "LLB (Hons)": 0}


def test_assignment_next_invalid_program(client):
    assert client.post("/api/assignment/next/Astrology").status_code == 422


def test_assignment_stats(client):
    client.post("/api/leads", json=_payload(phone="1"))
    client.post("/api/leads", json=_payload(phone="2", program="LLB (Hons)"))
    stats = client.get("/api/assignment/stats").json()["stats"]
    assert stats[PROGRAM]["Faizan Ullah"] == 1
    assert stats["LLB (Hons)"]["Faizan Ullah"] == 1
    assert stats["LLB (Hons)"]["Shahzaib Shams"] == 0


def test_patch_cannot_clear_required_fields(client):
    client.post("/api/leads", json=_payload())
    for field in ("name", "phone", "email", "program"):
        response = client.patch("/api/leads/1", json={field: None})
        assert response.status_code == 422, field
    assert client.get("/api/leads/1").json()["name"] == "Zainab Tariq"


def test_patch_may_clear_optional_fields(client):
    client.post("/api/leads", json=_payload())
    client.patch("/api/leads/1", json={"pulse": "Call back"})
    response = client.patch("/api/leads/1", json={"pulse": None})
    assert response.status_code == 200
    assert response.json()["pulse"] is None


def test_public_form_ignores_status(client):
    response = client.post("/api/leads", json=_payload(status="Won"))
    assert response.status_code == 201
    assert response.json()["lead"]["status"] == "No Contact"


def test_dialog_submission_keeps_status(client):
    response = client.post("/api/leads/dialog", json=_payload(status="Interested"))
    assert response.status_code == 201
    assert response.json()["lead"]["status"] == "Interested"
    assert response.json()["lead"]["Assign To"] == "Faizan Ullah"


def test_assignment_stats_database_error(client, lead_repo):
    async def broken():
        raise SQLAlchemyError("connection refused")

    lead_repo.query_program_assignments = broken
    response = client.get("/api/assignment/stats")
    assert response.status_code == 503
