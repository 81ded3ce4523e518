"""
FastAPI service exposing territory assignment, validation and dissolve.

Endpoints:
  POST /resolve      - Assign one location record to a territory
  POST /validate     - Check a stored assignment against its coordinates
  POST /check        - Contamination summary for a batch of labeled records
  POST /dissolve     - Merge multi-part territory geometry into one polygon
  GET  /territories  - The territory catalog
  GET  /health       - Catalog and data health
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from territory_geo.cascade import get_cascade
from territory_geo.catalog import get_catalog
from territory_geo.db import close_pool, count_records, get_pool, run_migrations
from territory_geo.dissolve import dissolve
from territory_geo.errors import GeometryError, InvalidCoordinate
from territory_geo.models import (
    AssignmentResult,
    ContaminationReport,
    DissolveRequest,
    DissolveResult,
    HealthResponse,
    LocationRecord,
    ResolveRequest,
    TerritoryResponse,
    ValidateRequest,
    ValidationFinding,
)
from territory_geo.scheduler import start_scheduler, stop_scheduler
from territory_geo.validate import check_dataset, validate

logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: DB pool, migrations, scheduler. Shutdown: the reverse."""
    logger.info("Starting up API server...")
    await get_pool()
    try:
        await run_migrations()
    except Exception as e:
        logger.warning("Migration failed (may already exist): %s", e)
    start_scheduler()
    yield
    stop_scheduler()
    await close_pool()
    logger.info("API server shut down.")


# ── App ───────────────────────────────────────────────────────────────

app = FastAPI(
    title="Territory Geo API",
    description="Assign location records to regional territories and audit the assignments",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # tighten in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Endpoints ─────────────────────────────────────────────────────────

@app.post("/resolve", response_model=AssignmentResult)
async def resolve_record(body: ResolveRequest):
    try:
        return get_cascade().resolve(body)
    except InvalidCoordinate as e:
        raise HTTPException(422, str(e))


@app.post("/validate", response_model=ValidationFinding)
async def validate_assignment(body: ValidateRequest):
    try:
        return validate(
            body.stored_territory,
            body.latitude,
            body.longitude,
            body.model_dump(include={"name", "city", "county", "country"}),
        )
    except InvalidCoordinate as e:
        raise HTTPException(422, str(e))


@app.post("/check", response_model=ContaminationReport)
async def check_records(records: list[LocationRecord]):
    return check_dataset(records)


@app.post("/dissolve", response_model=DissolveResult)
async def dissolve_geometry(body: DissolveRequest):
    try:
        return dissolve(body.geometry, body.territory)
    except GeometryError as e:
        raise HTTPException(422, str(e))


@app.get("/territories", response_model=list[TerritoryResponse])
async def list_territories():
    catalog = get_catalog()
    return [
        TerritoryResponse(
            name=t.name,
            members=list(t.members),
            split=any(catalog.is_split(m) for m in t.members),
            accepts_international=t.accepts_international,
        )
        for t in catalog.territories
    ]


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Catalog size plus record counts when the database is reachable."""
    catalog = get_catalog()
    response = HealthResponse(
        territories=len(catalog.territories),
        subdivisions=len(catalog.subdivisions),
    )
    try:
        counts = await count_records()
    except Exception as e:
        logger.error("Health check failed: %s", e)
        response.status = "degraded"
        return response

    response.total_records = counts.get("total_records")
    response.assigned_records = counts.get("assigned_records")
    response.last_pipeline_run = counts.get("last_pipeline_run")
    return response
