"""
Pipeline orchestrator.
Ties together assign -> validate -> dissolve in a single idempotent run.
Called by the scheduler or invoked manually via CLI.
"""

from __future__ import annotations

import logging
import time

from territory_geo.cascade import get_cascade
from territory_geo.config import get_settings
from territory_geo.db import (
    clear_assignment,
    correct_assignment,
    fetch_assigned_records,
    fetch_historical_pairs,
    fetch_multipart_territories,
    fetch_unassigned_records,
    finish_pipeline_run,
    save_assignment,
    save_finding,
    start_pipeline_run,
    update_territory_geometry,
)
from territory_geo.dissolve import dissolve_all
from territory_geo.errors import InvalidCoordinate
from territory_geo.historical import HistoricalMap
from territory_geo.models import Action, IssueKind
from territory_geo.validate import ContaminationValidator

logger = logging.getLogger(__name__)


async def run_pipeline() -> dict:
    """
    Execute the full pipeline:
      1. Historical: scan labeled records into a HistoricalMap (must finish
         before any record is resolved)
      2. Assign: run the cascade over unassigned records
      3. Validate: re-derive territories of assigned records, optionally
         correcting boundary violations and clearing international records
      4. Dissolve: merge multi-part territory geometry

    Idempotent: safe to run repeatedly.
    - Only records without an assignment attempt are resolved.
    - Validation rewrites a territory only when it disagrees with coordinates.
    - Dissolved territories are single polygons, which dissolve skips.

    Returns a stats dict summarizing the run.
    """
    settings = get_settings()

    stats = {
        "historical_identifiers": 0,
        "records_assigned": 0,
        "records_unassigned": 0,
        "records_invalid": 0,
        "records_validated": 0,
        "records_contaminated": 0,
        "records_corrected": 0,
        "records_cleared": 0,
        "territories_dissolved": 0,
        "dissolve_failures": 0,
        "avg_confidence": None,
        "duration_seconds": 0,
    }

    run_id = await start_pipeline_run()
    start_time = time.monotonic()

    try:
        # ── Stage 1: Historical map ────────────────────────────────────
        historical = None
        if settings.assignment.use_historical:
            logger.info("=== Pipeline Stage 1: Historical scan ===")
            historical = HistoricalMap.from_pairs(await fetch_historical_pairs())
            stats["historical_identifiers"] = len(historical)

        # ── Stage 2: Assignment ────────────────────────────────────────
        logger.info("=== Pipeline Stage 2: Assignment ===")
        cascade = get_cascade()
        records = await fetch_unassigned_records(limit=settings.assignment.batch_size)
        logger.info("Found %d records to assign", len(records))

        total_conf = 0.0
        for record in records:
            try:
                result = cascade.resolve(record, historical)
            except InvalidCoordinate as e:
                logger.warning("Record %s not assigned: %s", record.record_id, e)
                stats["records_invalid"] += 1
                continue
            await save_assignment(record.record_id, result)
            if result.assigned:
                stats["records_assigned"] += 1
                total_conf += result.confidence
            else:
                stats["records_unassigned"] += 1

        if stats["records_assigned"]:
            stats["avg_confidence"] = round(total_conf / stats["records_assigned"], 4)
        logger.info("Assignment done: %d assigned, %d unassigned, %d invalid (avg conf: %s)",
                    stats["records_assigned"], stats["records_unassigned"],
                    stats["records_invalid"], stats["avg_confidence"])

        # ── Stage 3: Validation ────────────────────────────────────────
        logger.info("=== Pipeline Stage 3: Validation ===")
        validator = ContaminationValidator()
        for record in await fetch_assigned_records(limit=settings.validation.batch_size):
            try:
                finding = validator.validate_record(record)
            except InvalidCoordinate as e:
                logger.warning("Record %s not validated: %s", record.record_id, e)
                stats["records_invalid"] += 1
                continue
            stats["records_validated"] += 1
            await save_finding(record.record_id, finding)
            if not finding.issues or finding.issues == [IssueKind.MISSING_SIGNAL]:
                continue

            stats["records_contaminated"] += 1
            if finding.action == Action.REMOVE and settings.validation.remove_international:
                await clear_assignment(record.record_id, "; ".join(finding.reasons))
                stats["records_cleared"] += 1
            elif finding.action == Action.CORRECT and settings.validation.auto_correct:
                await correct_assignment(
                    record.record_id,
                    finding.recomputed_territory,
                    f"Corrected from {finding.stored_territory} by coordinates",
                )
                stats["records_corrected"] += 1

        logger.info("Validation done: %d checked, %d contaminated, %d corrected, %d cleared",
                    stats["records_validated"], stats["records_contaminated"],
                    stats["records_corrected"], stats["records_cleared"])

        # ── Stage 4: Dissolve ──────────────────────────────────────────
        logger.info("=== Pipeline Stage 4: Dissolve ===")
        results, failures = dissolve_all(await fetch_multipart_territories())
        for territory, result in results.items():
            if not result.changed:
                continue
            if settings.dissolve.dry_run:
                logger.info("Dry run: not writing dissolved geometry for %s", territory)
                continue
            await update_territory_geometry(territory, result.geometry)
            stats["territories_dissolved"] += 1
        stats["dissolve_failures"] = len(failures)

        # ── Complete ───────────────────────────────────────────────────
        elapsed = time.monotonic() - start_time
        stats["duration_seconds"] = round(elapsed, 2)
        await finish_pipeline_run(run_id, stats)
        logger.info("=== Pipeline complete in %.1fs ===", elapsed)
        return stats

    except Exception as e:
        elapsed = time.monotonic() - start_time
        stats["duration_seconds"] = round(elapsed, 2)
        await finish_pipeline_run(run_id, stats, error=str(e))
        logger.error("Pipeline failed after %.1fs: %s", elapsed, e, exc_info=True)
        raise
