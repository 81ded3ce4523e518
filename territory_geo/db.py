"""
Database connection management and query functions.
Uses asyncpg for async Postgres access with connection pooling.
Territory geometry is stored as GeoJSON in JSONB columns.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import asyncpg

from territory_geo.cascade import CONFIDENCE
from territory_geo.config import get_settings
from territory_geo.models import AssignmentResult, LocationRecord, ValidationFinding

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = """
    id, name, address, city, county, subdivision, location_text, country,
    latitude, longitude, territory
"""

# ── Connection Pool ────────────────────────────────────────────────────

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    global _pool
    if _pool is None:
        settings = get_settings()
        _pool = await asyncpg.create_pool(
            dsn=settings.db.dsn,
            min_size=settings.db.min_pool_size,
            max_size=settings.db.max_pool_size,
        )
        logger.info("Database connection pool created (min=%d, max=%d)",
                    settings.db.min_pool_size, settings.db.max_pool_size)
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Database connection pool closed")


@asynccontextmanager
async def get_connection() -> AsyncIterator[asyncpg.Connection]:
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


# ── Schema Initialization ─────────────────────────────────────────────

async def run_migrations() -> None:
    """Execute SQL migrations in order (idempotent)."""
    from pathlib import Path

    migrations_dir = Path(__file__).parent / "migrations"
    migration_paths = sorted(migrations_dir.glob("*.sql"))

    async with get_connection() as conn:
        for path in migration_paths:
            sql = path.read_text()
            await conn.execute(sql)
            logger.info("Applied migration: %s", path.name)
    logger.info("Migrations applied successfully (%d files)", len(migration_paths))


def _to_record(row: Any) -> LocationRecord:
    data = dict(row)
    data["record_id"] = data.pop("id")
    return LocationRecord.model_validate(data)


# ── Historical Scan ───────────────────────────────────────────────────

async def fetch_historical_pairs() -> list[tuple[str, str]]:
    """(name, territory) for every labeled record, oldest first so ties go to the earliest."""
    async with get_connection() as conn:
        rows = await conn.fetch(
            """
            SELECT name, territory
            FROM location_records
            WHERE territory IS NOT NULL AND name IS NOT NULL
            ORDER BY created_at, id
            """
        )
        return [(r["name"], r["territory"]) for r in rows]


# ── Record Queries ────────────────────────────────────────────────────

async def fetch_unassigned_records(limit: Optional[int] = 500) -> list[LocationRecord]:
    """Records with no territory yet. limit=None or 0 fetches all."""
    async with get_connection() as conn:
        rows = await conn.fetch(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM location_records
            WHERE territory IS NULL AND assigned_at IS NULL
            ORDER BY created_at
            LIMIT $1
            """,
            limit or None,
        )
        return [_to_record(r) for r in rows]


async def fetch_assigned_records(limit: Optional[int] = None) -> list[LocationRecord]:
    async with get_connection() as conn:
        rows = await conn.fetch(
            f"""
            SELECT {_RECORD_COLUMNS}
            FROM location_records
            WHERE territory IS NOT NULL
            ORDER BY id
            LIMIT $1
            """,
            limit or None,
        )
        return [_to_record(r) for r in rows]


async def count_records() -> dict:
    async with get_connection() as conn:
        row = await conn.fetchrow(
            """
            SELECT
                (SELECT COUNT(*) FROM location_records) AS total_records,
                (SELECT COUNT(*) FROM location_records WHERE territory IS NOT NULL) AS assigned_records,
                (SELECT MAX(finished_at) FROM pipeline_runs WHERE status = 'completed') AS last_pipeline_run
            """
        )
        return dict(row) if row else {}


# ── Assignment Writes ─────────────────────────────────────────────────

async def save_assignment(record_id: str, result: AssignmentResult) -> None:
    """
    Store a cascade result. Unassigned results are stored too, so the
    record is not picked up again until someone clears assigned_at.
    """
    async with get_connection() as conn:
        await conn.execute(
            """
            UPDATE location_records SET
                territory = $2,
                assignment_method = $3,
                assignment_confidence = $4,
                assignment_reasoning = $5,
                assigned_at = NOW()
            WHERE id = $1
            """,
            int(record_id),
            result.territory,
            result.method.value if result.method else None,
            result.confidence,
            json.dumps(result.reasoning),
        )


async def save_finding(record_id: str, finding: ValidationFinding) -> None:
    async with get_connection() as conn:
        await conn.execute(
            """
            UPDATE location_records SET
                validation_issues = $2,
                validated_at = NOW()
            WHERE id = $1
            """,
            int(record_id),
            json.dumps([issue.value for issue in finding.issues]),
        )


async def correct_assignment(record_id: str, territory: str, reason: str) -> None:
    async with get_connection() as conn:
        await conn.execute(
            """
            UPDATE location_records SET
                territory = $2,
                assignment_method = 'coordinates',
                assignment_confidence = $4,
                assignment_reasoning = COALESCE(assignment_reasoning, '[]'::jsonb) || $3::jsonb,
                assigned_at = NOW()
            WHERE id = $1
            """,
            int(record_id),
            territory,
            json.dumps([reason]),
            CONFIDENCE["coordinates"],
        )


async def clear_assignment(record_id: str, reason: str) -> None:
    """Drop a territory that should never have been set (international records)."""
    async with get_connection() as conn:
        await conn.execute(
            """
            UPDATE location_records SET
                territory = NULL,
                assignment_method = NULL,
                assignment_confidence = NULL,
                assignment_reasoning = COALESCE(assignment_reasoning, '[]'::jsonb) || $2::jsonb
            WHERE id = $1
            """,
            int(record_id),
            json.dumps([reason]),
        )


# ── Territory Geometry ────────────────────────────────────────────────

async def fetch_territory_geometries(only_multipart: bool = True) -> dict[str, dict]:
    """territory -> GeoJSON geometry (or Feature)."""
    async with get_connection() as conn:
        rows = await conn.fetch(
            """
            SELECT territory, geometry
            FROM territory_geometries
            WHERE NOT $1
               OR geometry->>'type' = 'MultiPolygon'
               OR geometry->'geometry'->>'type' = 'MultiPolygon'
            ORDER BY territory
            """,
            only_multipart,
        )
        return {r["territory"]: json.loads(r["geometry"]) for r in rows}


async def fetch_multipart_territories() -> dict[str, dict]:
    return await fetch_territory_geometries(only_multipart=True)


async def update_territory_geometry(territory: str, geometry: dict) -> None:
    async with get_connection() as conn:
        await conn.execute(
            """
            INSERT INTO territory_geometries (territory, geometry, dissolved)
            VALUES ($1, $2, TRUE)
            ON CONFLICT (territory) DO UPDATE SET
                geometry = EXCLUDED.geometry,
                dissolved = TRUE,
                updated_at = NOW()
            """,
            territory,
            json.dumps(geometry),
        )


# ── Pipeline Run Tracking ─────────────────────────────────────────────

async def start_pipeline_run() -> int:
    """Record the start of a pipeline run. Returns run_id."""
    async with get_connection() as conn:
        row = await conn.fetchrow(
            "INSERT INTO pipeline_runs DEFAULT VALUES RETURNING id"
        )
        return row["id"]


async def finish_pipeline_run(run_id: int, stats: dict, error: Optional[str] = None) -> None:
    """Record the completion of a pipeline run."""
    async with get_connection() as conn:
        await conn.execute(
            """
            UPDATE pipeline_runs SET
                finished_at = NOW(),
                status = $2,
                records_assigned = $3,
                records_unassigned = $4,
                records_validated = $5,
                records_corrected = $6,
                records_cleared = $7,
                territories_dissolved = $8,
                dissolve_failures = $9,
                avg_confidence = $10,
                error_message = $11,
                metadata = $12
            WHERE id = $1
            """,
            run_id,
            "failed" if error else "completed",
            stats.get("records_assigned", 0),
            stats.get("records_unassigned", 0),
            stats.get("records_validated", 0),
            stats.get("records_corrected", 0),
            stats.get("records_cleared", 0),
            stats.get("territories_dissolved", 0),
            stats.get("dissolve_failures", 0),
            stats.get("avg_confidence"),
            error,
            json.dumps(stats),
        )
