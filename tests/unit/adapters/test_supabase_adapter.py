"""Tests for the hosted-backend REST adapters using httpx.MockTransport (no network)."""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from admission_crm.adapters.supabase.client import SupabaseRestClient, quote_column
from admission_crm.adapters.supabase.repositories import (
    SupabaseAssignmentStateRepository,
    SupabaseLeadRepository,
    SupabaseTeamRepository,
)
from admission_crm.domain.entities.lead import Lead
from admission_crm.domain.errors import LeadStoreUnavailable, StatePersistenceFailed
from admission_crm.domain.value_objects.enums import LeadStatus

LEAD_ROW = {
    "id": 12,
    "created_at": "2026-02-01T10:00:00.000000+00:00",
    "updated_at": "2026-02-02T09:30:00Z",
    "name": "Hamza Ali",
    "dob": "2000-01-01",
    "phone": "03001112233",
    "education": "Graduate",
    "email": "hamza@example.com",
    "source": "Instagram",
    "program": "LLM Corporate",
    "status": "Thinking",
    "Assign To": "Aneeza Komal",
    "follow_up_date": "2026-02-10",
    "communication": None,
    "pulse": None,
}


class Recorder:
    def __init__(self, response_json=None, status_code=200):
        self.requests: list[httpx.Request] = []
        self._json = response_json if response_json is not None else []
        self._status = status_code

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self._status, json=self._json)


def _client(handler) -> SupabaseRestClient:
    return SupabaseRestClient(
        "https://project.supabase.co/", "anon-key", transport=httpx.MockTransport(handler)
    )


def test_client_requires_credentials():
    with pytest.raises(ValueError):
        SupabaseRestClient("", "key")


def test_quote_column():
    assert quote_column("program") == "program"
    assert quote_column("follow_up_date") == "follow_up_date"
    assert quote_column("Assign To") == '"Assign To"'


@pytest.mark.asyncio
async def test_select_sends_auth_headers_and_filters():
    rec = Recorder([LEAD_ROW])
    repo = SupabaseLeadRepository(_client(rec))

    lead = await repo.get_by_phone("03001112233")

    request = rec.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/leads"
    assert request.url.params["phone"] == "eq.03001112233"
    assert request.url.params["limit"] == "1"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"

    assert lead.id == 12
    assert lead.assign_to == "Aneeza Komal"
    assert lead.status == LeadStatus.THINKING
    assert lead.follow_up_date == date(2026, 2, 10)
    assert lead.updated_at.tzinfo is not None


@pytest.mark.asyncio
async def test_missing_lead_returns_none():
    repo = SupabaseLeadRepository(_client(Recorder([])))
    assert await repo.get_by_id(5) is None


@pytest.mark.asyncio
async def test_insert_writes_assign_to_column():
    rec = Recorder([LEAD_ROW])
    repo = SupabaseLeadRepository(_client(rec))
    lead = Lead(
        id=None, name="Hamza Ali", phone="03001112233", email="hamza@example.com",
        program="LLM Corporate", assign_to="Aneeza Komal",
    )

    saved = await repo.save(lead)

    request = rec.requests[0]
    assert request.method == "POST"
    assert request.headers["Prefer"] == "return=representation"
    body = json.loads(request.content)
    assert body[0]["Assign To"] == "Aneeza Komal"
    assert body[0]["status"] == "No Contact"
    assert "assign_to" not in body[0]
    assert saved.id == 12


@pytest.mark.asyncio
async def test_list_filters_and_order():
    rec = Recorder([LEAD_ROW])
    repo = SupabaseLeadRepository(_client(rec))

    leads = await repo.get_all(status=LeadStatus.THINKING, assignee="Aneeza Komal")

    params = rec.requests[0].url.params
    assert params["status"] == "eq.Thinking"
    assert params['"Assign To"'] == "eq.Aneeza Komal"
    assert params["order"] == "created_at.desc"
    assert len(leads) == 1


@pytest.mark.asyncio
async def test_update_fields_serializes_values():
    rec = Recorder([{**LEAD_ROW, "status": "Won"}])
    repo = SupabaseLeadRepository(_client(rec))

    lead = await repo.update_fields(12, {"status": LeadStatus.WON, "follow_up_date": date(2026, 3, 1)})

    request = rec.requests[0]
    assert request.method == "PATCH"
    assert request.url.params["id"] == "eq.12"
    assert json.loads(request.content) == {"status": "Won", "follow_up_date": "2026-03-01"}
    assert lead.status == LeadStatus.WON


@pytest.mark.asyncio
async def test_query_lead_assignments():
    rec = Recorder([{"Assign To": "Faizan Ullah"}, {"Assign To": None}])
    repo = SupabaseLeadRepository(_client(rec))

    assert await repo.query_lead_assignments() == ["Faizan Ullah", None]
    assert rec.requests[0].url.params["select"] == '"Assign To"'


@pytest.mark.asyncio
async def test_http_error_maps_to_store_unavailable():
    repo = SupabaseLeadRepository(_client(Recorder({"message": "boom"}, status_code=500)))
    with pytest.raises(LeadStoreUnavailable, match="500"):
        await repo.query_lead_assignments()


@pytest.mark.asyncio
async def test_transport_error_maps_to_store_unavailable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    repo = SupabaseLeadRepository(_client(handler))
    with pytest.raises(LeadStoreUnavailable):
        await repo.get_by_id(1)


@pytest.mark.asyncio
async def test_team_ordered_by_role():
    rec = Recorder([{"id": 1, "email": "head@bsol.pk", "role": "Admin"}])
    team = await SupabaseTeamRepository(_client(rec)).get_all()
    assert rec.requests[0].url.params["order"] == "role"
    assert team[0].email == "head@bsol.pk"


@pytest.mark.asyncio
async def test_state_upsert_and_load():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            handler.last = request
            return httpx.Response(201)
        return httpx.Response(200, json=[{"program": "LLB (Hons)", "cursor": 3}])

    repo = SupabaseAssignmentStateRepository(_client(handler))

    await repo.save_state({"LLB (Hons)": 4})
    assert handler.last.url.params["on_conflict"] == "program"
    assert "resolution=merge-duplicates" in handler.last.headers["Prefer"]
    assert json.loads(handler.last.content) == [{"program": "LLB (Hons)", "cursor": 4}]

    assert await repo.load_state() == {"LLB (Hons)": 3}


@pytest.mark.asyncio
async def test_empty_state_table_loads_none():
    repo = SupabaseAssignmentStateRepository(_client(Recorder([])))
    assert await repo.load_state() is None


@pytest.mark.asyncio
async def test_state_advance_is_conditional_on_old_cursor():
    """A PATCH that matches no row means another worker moved the cursor; re-read and retry."""
    stored = {"cursor": 1}
    patches = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=[dict(stored)])
        patches.append(request)
        if len(patches) == 1:
            stored["cursor"] = 2  # another worker got there first
            return httpx.Response(200, json=[])
        stored.update(json.loads(request.content))
        return httpx.Response(200, json=[{"program": "LLB (Hons)", **stored}])

    repo = SupabaseAssignmentStateRepository(_client(handler))
    current, new = await repo.advance("LLB (Hons)", lambda c: (c + 1) % 3)

    assert (current, new) == (2, 0)
    assert patches[0].url.params["cursor"] == "eq.1"
    assert patches[1].url.params["cursor"] == "eq.2"
    assert patches[1].url.params["program"] == "eq.LLB (Hons)"


@pytest.mark.asyncio
async def test_state_advance_inserts_missing_row():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=[])
        handler.last = request
        return httpx.Response(201, json=json.loads(request.content))

    repo = SupabaseAssignmentStateRepository(_client(handler))
    assert await repo.advance("LLM Corporate", lambda c: 1) == (None, 1)
    assert handler.last.url.params["on_conflict"] == "program"
    assert "resolution=ignore-duplicates" in handler.last.headers["Prefer"]


@pytest.mark.asyncio
async def test_state_advance_gives_up_under_constant_contention():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=[{"cursor": 0}])
        return httpx.Response(200, json=[])

    repo = SupabaseAssignmentStateRepository(_client(handler))
    with pytest.raises(StatePersistenceFailed):
        await repo.advance("LLB (Hons)", lambda c: 1)
