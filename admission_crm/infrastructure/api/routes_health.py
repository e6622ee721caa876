"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from admission_crm.adapters.persistence.database import get_session
from admission_crm.adapters.supabase.repositories import TEAM
from admission_crm.config import settings
from admission_crm.infrastructure.api.dependencies import get_supabase_client

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Check API and lead store connectivity."""
    try:
        if settings.lead_store == "supabase":
            await get_supabase_client().select(TEAM, columns="id", limit=1)
        else:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
        store_status = "connected"
    except Exception as e:
        store_status = f"error: {e}"

    return {
        "status": "ok" if store_status == "connected" else "degraded",
        "lead_store": settings.lead_store,
        "store": store_status,
        "service": "Admission CRM",
    }
