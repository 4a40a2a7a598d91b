from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel, Field, field_validator

from common.config_loader import load_config, load_env_files
from common.logging_config import configure_logging

# --- Load env before wiring clients ---
load_env_files()

from services.airtable_service import AirtableError
from services.dashboard_service import DashboardService, from_config

logger = logging.getLogger("ops-dashboard")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if getattr(app.state, "dashboard", None) is None:
        app.state.dashboard = from_config(load_config())
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Operations Dashboard API",
    version="0.1.0",
)


# ---------------------------
# Pydantic Schemas (v2)
# ---------------------------
class HealthOut(BaseModel):
    ok: bool = True
    stripe_configured: bool


class MetricsQuery(BaseModel):
    now: Optional[datetime] = Field(
        default=None,
        description="Reference instant for a reproducible snapshot. Omit for the current time.",
    )

    @field_validator("now")
    @classmethod
    def _tz_required(cls, v: Optional[datetime]):
        if v is not None and v.tzinfo is None:
            raise ValueError("now must include a timezone offset")
        return v


class MetricsOut(BaseModel):
    generated_at: datetime
    stripe_available: bool
    metrics: Dict[str, Any]


# ---------------------------
# Helpers
# ---------------------------
def get_dashboard(request: Request) -> DashboardService:
    svc = getattr(request.app.state, "dashboard", None)
    if svc is None:
        raise HTTPException(503, "Dashboard service not initialised")
    return svc


def _parse_query(now: Optional[str]) -> MetricsQuery:
    try:
        return MetricsQuery(now=now)
    except ValueError as e:
        raise HTTPException(400, str(e))


# ---------------------------
# Routes
# ---------------------------
@app.get("/health", response_model=HealthOut)
async def health(svc: DashboardService = Depends(get_dashboard)):
    return HealthOut(stripe_configured=svc.stripe is not None)


@app.get("/dashboard/metrics", response_model=MetricsOut)
async def dashboard_metrics(
    now: Optional[str] = Query(default=None),
    svc: DashboardService = Depends(get_dashboard),
):
    q = _parse_query(now)
    try:
        m = await svc.build(q.now)
    except AirtableError as e:
        logger.error("Dashboard error: %s", e)
        raise HTTPException(502, "Could not load records from Airtable")
    return MetricsOut(
        generated_at=m.generated_at,
        stripe_available=m.stripe_available,
        metrics=m.to_dict(),
    )
