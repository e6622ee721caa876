"""Admission CRM — FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from admission_crm.adapters.persistence.database import engine
from admission_crm.config import settings
from admission_crm.infrastructure.api.dependencies import close_supabase_client
from admission_crm.infrastructure.api.routes_assignment import router as assignment_router
from admission_crm.infrastructure.api.routes_health import router as health_router
from admission_crm.infrastructure.api.routes_leads import router as leads_router
from admission_crm.infrastructure.api.routes_team import router as team_router

logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    if settings.lead_store == "sql" or settings.assignment_state_store == "sql":
        try:
            async with engine.begin():
                pass  # Connection pool warmed up
            logger.info("Database connection established")
        except Exception as e:
            logger.warning("Database not available on startup: %s", e)
    yield
    await close_supabase_client()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Admission CRM",
        description="Applicant lead intake, round-robin assignment and dashboard API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routers
    app.include_router(health_router, prefix="/api")
    app.include_router(leads_router, prefix="/api")
    app.include_router(assignment_router, prefix="/api")
    app.include_router(team_router, prefix="/api")

    return app


app = create_app()
