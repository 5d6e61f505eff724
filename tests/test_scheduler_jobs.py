"""
tests/test_scheduler_jobs.py

Tests for the periodic jobs: the reconciliation sweep body and scheduler
registration driven by environment settings.
"""

from __future__ import annotations

import uuid

import pytest

from app.config import get_queue_maintenance_settings, get_reconcile_sweep_settings
from app.scheduler.jobs import build_scheduler, reconcile_open_scans
from db.models import TrackingRecommendation


@pytest.fixture()
def clear_settings_cache():
    get_queue_maintenance_settings.cache_clear()
    get_reconcile_sweep_settings.cache_clear()
    yield
    get_queue_maintenance_settings.cache_clear()
    get_reconcile_sweep_settings.cache_clear()


class TestReconcileOpenScans:
    def test_sweeps_every_scan_with_open_recommendations(self, session, factory) -> None:
        customer = factory.customer()
        first = factory.scan(customer)
        second = factory.scan(customer)
        idle = factory.scan(customer)
        stale = factory.recommendation(first, status="CREATED", tracking_id=uuid.uuid4())
        orphan = factory.recommendation(second, status="CREATING")
        factory.recommendation(idle, status="PENDING")

        totals = reconcile_open_scans(session)

        assert totals == {"scans": 2, "applied": 2, "errors": 0}
        session.expire_all()
        assert session.get(TrackingRecommendation, stale.id).status == "REPAIR"
        assert session.get(TrackingRecommendation, orphan.id).status == "REPAIR"

    def test_nothing_to_do(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        factory.recommendation(scan)

        assert reconcile_open_scans(session) == {"scans": 0, "applied": 0, "errors": 0}


class TestBuildScheduler:
    def test_registers_enabled_jobs(self, monkeypatch, clear_settings_cache) -> None:
        monkeypatch.setenv("QUEUE_MAINTENANCE_ENABLED", "true")
        monkeypatch.setenv("RECONCILE_SWEEP_ENABLED", "true")
        monkeypatch.setenv("RECONCILE_SWEEP_INTERVAL_SECONDS", "120")

        scheduler = build_scheduler()

        assert {job.id for job in scheduler.get_jobs()} == {"queue_maintenance", "reconcile_sweep"}
        sweep = scheduler.get_job("reconcile_sweep")
        assert sweep.trigger.interval.total_seconds() == 120
        assert sweep.max_instances == 1

    def test_disabled_jobs_are_skipped(self, monkeypatch, clear_settings_cache) -> None:
        monkeypatch.setenv("QUEUE_MAINTENANCE_ENABLED", "false")
        monkeypatch.setenv("RECONCILE_SWEEP_ENABLED", "0")

        assert build_scheduler().get_jobs() == []
