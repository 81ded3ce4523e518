"""
Tests for scheduler wiring. The scheduler is configured but never started,
and the pipeline itself is replaced.
"""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from territory_geo import scheduler
from territory_geo.config import SchedulerConfig, Settings


@pytest.fixture(autouse=True)
def reset_scheduler(monkeypatch):
    monkeypatch.setattr(scheduler, "_scheduler", None)


def _settings(**kwargs) -> Settings:
    return Settings(scheduler=SchedulerConfig(**kwargs))


class TestCreateScheduler:
    def test_single_pipeline_job(self, monkeypatch):
        monkeypatch.setattr(scheduler, "get_settings", lambda: _settings(interval_minutes=15))
        sched = scheduler.create_scheduler()
        jobs = sched.get_jobs()
        assert [job.id for job in jobs] == [scheduler.JOB_ID]
        job = jobs[0]
        assert job.trigger.interval == timedelta(minutes=15)
        assert job.max_instances == 1
        assert job.coalesce is True

    def test_disabled_scheduler_not_started(self, monkeypatch):
        monkeypatch.setattr(scheduler, "get_settings", lambda: _settings(enabled=False))
        assert scheduler.start_scheduler() is None
        assert scheduler._scheduler is None

    def test_stop_without_start(self):
        scheduler.stop_scheduler()
        assert scheduler._scheduler is None


class TestPipelineJob:
    def test_returns_stats(self, monkeypatch):
        stats = {
            "records_assigned": 3,
            "records_contaminated": 1,
            "records_corrected": 1,
            "territories_dissolved": 0,
        }

        async def fake_run():
            return stats

        monkeypatch.setattr(scheduler, "run_pipeline", fake_run)
        assert asyncio.run(scheduler._pipeline_job()) == stats

    def test_failed_run_does_not_propagate(self, monkeypatch):
        async def broken():
            raise RuntimeError("connection lost")

        monkeypatch.setattr(scheduler, "run_pipeline", broken)
        assert asyncio.run(scheduler._pipeline_job()) is None
