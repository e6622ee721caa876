"""Thin async client for the hosted backend's PostgREST interface."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from admission_crm.domain.errors import LeadStoreUnavailable

logger = logging.getLogger(__name__)


def eq(value: Any) -> str:
    """PostgREST equality filter."""
    return f"eq.{value}"


def quote_column(name: str) -> str:
    """Quote column names that PostgREST can't take bare (e.g. "Assign To")."""
    return f'"{name}"' if not name.replace("_", "").isalnum() else name


class SupabaseRestClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not base_url or not api_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must both be set")
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Mapping[str, str] | None = None,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, str] = {"select": columns}
        params.update(filters or {})
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = str(limit)
        return await self._request("GET", table, params=params)

    async def insert(
        self, table: str, rows: list[dict[str, Any]], on_conflict: str | None = None
    ) -> list[dict[str, Any]]:
        """Insert *rows*. With *on_conflict*, rows clashing on that column are skipped
        and left out of the returned representation."""
        if on_conflict is None:
            return await self._request(
                "POST", table, json=rows, headers={"Prefer": "return=representation"}
            )
        return await self._request(
            "POST", table, params={"on_conflict": on_conflict}, json=rows,
            headers={"Prefer": "resolution=ignore-duplicates,return=representation"},
        )

    async def update(
        self, table: str, values: dict[str, Any], filters: Mapping[str, str]
    ) -> list[dict[str, Any]]:
        return await self._request(
            "PATCH", table, params=dict(filters), json=values,
            headers={"Prefer": "return=representation"},
        )

    async def upsert(self, table: str, rows: list[dict[str, Any]], on_conflict: str) -> None:
        await self._request(
            "POST", table, params={"on_conflict": on_conflict}, json=rows,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def _request(self, method: str, table: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, f"/{table}", **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "%s %s failed with %d: %s",
                method, table, e.response.status_code, e.response.text[:500],
            )
            raise LeadStoreUnavailable(f"{method} {table} failed with {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, table, e)
            raise LeadStoreUnavailable(f"{method} {table} failed: {e}") from e

        if not response.content:
            return []
        return response.json()
