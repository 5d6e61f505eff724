"""
tests/test_queue_maintenance.py

Tests for QueueMaintenanceService: stuck-job recovery, paused-batch resume
and drained-batch completion.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.config import QueueMaintenanceSettings
from app.services.queue_maintenance_service import QueueMaintenanceService
from db.models import TrackingBatch, TrackingQueueJob

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def service() -> QueueMaintenanceService:
    return QueueMaintenanceService(
        settings=QueueMaintenanceSettings(enabled=True, interval_seconds=60, stuck_job_seconds=60)
    )


class TestRecoverStuckJobs:
    def test_old_processing_jobs_are_requeued(self, service, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan, total_jobs=3)
        tracking = factory.tracking(customer)
        stuck = factory.job(batch, tracking, status="PROCESSING", step="gtm_tag", started_at=NOW - timedelta(minutes=5))
        edge = factory.job(batch, tracking, status="PROCESSING", started_at=NOW - timedelta(seconds=60))
        fresh = factory.job(batch, tracking, status="PROCESSING", started_at=NOW - timedelta(seconds=10))

        recovered = service.recover_stuck_jobs(db=session, now=NOW)

        assert recovered == 2
        session.expire_all()
        reset = session.get(TrackingQueueJob, stuck.id)
        assert reset.status == "QUEUED"
        assert reset.step is None
        assert reset.started_at is None
        assert session.get(TrackingQueueJob, edge.id).status == "QUEUED"
        assert session.get(TrackingQueueJob, fresh.id).status == "PROCESSING"

    def test_other_statuses_are_ignored(self, service, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan)
        tracking = factory.tracking(customer)
        factory.job(batch, tracking, status="RETRYING", started_at=NOW - timedelta(hours=1))

        assert service.recover_stuck_jobs(db=session, now=NOW) == 0


class TestResumePausedBatches:
    def test_expired_cooldown_resumes(self, service, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        due = factory.batch(
            scan,
            status="PAUSED",
            paused_at=NOW - timedelta(hours=1),
            resume_after=NOW - timedelta(seconds=1),
            pause_reason="GTM quota exhausted",
        )
        later = factory.batch(scan, status="PAUSED", resume_after=NOW + timedelta(minutes=10))

        assert service.resume_paused_batches(db=session, now=NOW) == 1

        session.expire_all()
        resumed = session.get(TrackingBatch, due.id)
        assert resumed.status == "PROCESSING"
        assert resumed.resume_after is None
        assert resumed.pause_reason is None
        assert session.get(TrackingBatch, later.id).status == "PAUSED"


class TestFinalizeBatches:
    def test_drained_batch_is_completed_with_recounted_totals(self, service, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan, total_jobs=3)
        tracking = factory.tracking(customer)
        factory.job(batch, tracking, status="COMPLETED")
        factory.job(batch, tracking, status="COMPLETED")
        factory.job(batch, tracking, status="FAILED")

        assert service.finalize_batches(db=session) == 1

        session.expire_all()
        stored = session.get(TrackingBatch, batch.id)
        assert stored.status == "COMPLETED"
        assert stored.completed == 2
        assert stored.failed == 1

    @pytest.mark.parametrize("live_status", ["QUEUED", "PROCESSING", "RETRYING"])
    def test_batch_with_live_job_stays_open(self, service, session, factory, live_status: str) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan, total_jobs=2)
        tracking = factory.tracking(customer)
        factory.job(batch, tracking, status="COMPLETED")
        factory.job(batch, tracking, status=live_status)

        assert service.finalize_batches(db=session) == 0
        session.expire_all()
        assert session.get(TrackingBatch, batch.id).status == "PROCESSING"

    def test_paused_and_cancelled_batches_are_not_touched(self, service, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        paused = factory.batch(scan, status="PAUSED")
        cancelled = factory.batch(scan, status="CANCELLED")

        assert service.finalize_batches(db=session) == 0
        session.expire_all()
        assert session.get(TrackingBatch, paused.id).status == "PAUSED"
        assert session.get(TrackingBatch, cancelled.id).status == "CANCELLED"


class TestRun:
    def test_run_reports_each_step(self, service, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        drained = factory.batch(scan)
        tracking = factory.tracking(customer)
        factory.job(drained, tracking, status="COMPLETED")

        summary = service.run(db=session)

        assert summary.recovered_jobs == 0
        assert summary.resumed_batches == 0
        assert summary.finalized_batches == 1
