"""
tests/test_lifecycle_reconciler.py

Tests for the recommendation lifecycle reconciler: the pure decision
functions and the database-backed reconcile_scan pass.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.config import TrackingSettings
from app.services.tracking_batch_service import TrackingBatchService
from db.models import Tracking, TrackingBatch, TrackingQueueJob, TrackingRecommendation
from db.repositories.tracking_repository import TrackingRepository
from lifecycle.reconciler import LifecycleReconciler, decide_created, decide_creating

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _tracking(status: str, *, complete: bool = True, destinations=None, last_error=None):
    parts = dict(gtm_tag_id="t", gtm_trigger_id="g", ads_conversion_label="l", gtm_tag_id_ads="a")
    if not complete:
        parts = dict.fromkeys(parts)
    return SimpleNamespace(status=status, destinations=destinations or ["GA4"], last_error=last_error, **parts)


def _job(status: str, last_error=None):
    return SimpleNamespace(status=status, last_error=last_error, batch_id=uuid.uuid4())


def _reload(session: Session, rec: TrackingRecommendation) -> TrackingRecommendation:
    session.expire_all()
    return session.get(TrackingRecommendation, rec.id)


# ---------------------------------------------------------------------------
# Decision functions
# ---------------------------------------------------------------------------


class TestDecideCreated:
    def test_missing_tracking(self) -> None:
        assert decide_created(None).to_status == "REPAIR"

    @pytest.mark.parametrize("status", ["FAILED", "PENDING"])
    def test_broken_tracking(self, status: str) -> None:
        assert decide_created(_tracking(status)).to_status == "REPAIR"

    def test_active_incomplete(self) -> None:
        decision = decide_created(_tracking("ACTIVE", complete=False))
        assert decision.to_status == "REPAIR"
        assert decision.reason == "Missing GTM GA4 tag, GTM trigger"

    def test_active_complete_is_unchanged(self) -> None:
        assert decide_created(_tracking("ACTIVE")) is None

    @pytest.mark.parametrize("status", ["SYNCING", "CREATING", "PAUSED"])
    def test_other_statuses_are_unchanged(self, status: str) -> None:
        assert decide_created(_tracking(status)) is None


class TestDecideCreating:
    def test_missing_tracking(self) -> None:
        assert decide_creating(None, None, None).to_status == "REPAIR"

    def test_failed_tracking_keeps_error(self) -> None:
        decision = decide_creating(_tracking("FAILED", last_error="GTM quota"), None, None)
        assert decision.to_status == "FAILED"
        assert decision.reason == "GTM quota"

    def test_active_complete(self) -> None:
        assert decide_creating(_tracking("ACTIVE"), None, None).to_status == "CREATED"

    def test_active_ads_incomplete(self) -> None:
        tracking = _tracking("ACTIVE", destinations=["GA4", "GOOGLE_ADS"])
        tracking.gtm_tag_id_ads = None
        decision = decide_creating(tracking, None, None)
        assert decision.to_status == "REPAIR"
        assert decision.reason == "Missing GTM Ads conversion tag"

    @pytest.mark.parametrize("status", ["PENDING", "CREATING", "SYNCING"])
    def test_in_progress_without_job(self, status: str) -> None:
        assert decide_creating(_tracking(status), None, None).to_status == "REPAIR"

    def test_in_progress_job_failed(self) -> None:
        decision = decide_creating(_tracking("SYNCING"), _job("FAILED", "boom"), "PROCESSING")
        assert decision.to_status == "FAILED"
        assert decision.reason == "boom"

    def test_in_progress_job_completed(self) -> None:
        assert decide_creating(_tracking("PENDING"), _job("COMPLETED"), "PROCESSING").to_status == "REPAIR"

    @pytest.mark.parametrize("batch_status", ["COMPLETED", "CANCELLED"])
    def test_in_progress_batch_closed(self, batch_status: str) -> None:
        assert decide_creating(_tracking("PENDING"), _job("QUEUED"), batch_status).to_status == "REPAIR"

    @pytest.mark.parametrize(
        ("job_status", "batch_status"),
        [("QUEUED", "PROCESSING"), ("PROCESSING", "PROCESSING"), ("RETRYING", "PAUSED")],
    )
    def test_in_progress_live_job_is_unchanged(self, job_status: str, batch_status: str) -> None:
        assert decide_creating(_tracking("SYNCING"), _job(job_status), batch_status) is None

    def test_paused_tracking(self) -> None:
        assert decide_creating(_tracking("PAUSED"), None, None).to_status == "REPAIR"


# ---------------------------------------------------------------------------
# reconcile_scan
# ---------------------------------------------------------------------------


class TestReconcileScan:
    def test_end_to_end_outcomes(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan, total_jobs=3)

        synced = factory.tracking(customer, status="ACTIVE", complete=True)
        half = factory.tracking(customer, status="ACTIVE", gtm_tag_id="t")
        broken = factory.tracking(customer, status="FAILED", last_error="Tag rejected")
        for tracking in (synced, half, broken):
            factory.job(batch, tracking, status="COMPLETED")

        rec_synced = factory.recommendation(scan, name="A", status="CREATING", tracking_id=synced.id)
        rec_half = factory.recommendation(scan, name="B", status="CREATING", tracking_id=half.id)
        rec_broken = factory.recommendation(scan, name="C", status="CREATING", tracking_id=broken.id)

        result = LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert result.error is None
        assert result.examined == 3
        assert result.applied == 3
        assert result.counts == {"CREATED": 1, "REPAIR": 1, "FAILED": 1}

        assert _reload(session, rec_synced).status == "CREATED"
        assert _reload(session, rec_synced).tracking_id == synced.id

        repaired = _reload(session, rec_half)
        assert repaired.status == "REPAIR"
        assert repaired.tracking_id is None

        failed = _reload(session, rec_broken)
        assert failed.status == "FAILED"
        assert failed.tracking_id == broken.id

    def test_second_pass_is_a_no_op(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        tracking = factory.tracking(customer, status="FAILED")
        factory.recommendation(scan, status="CREATING", tracking_id=tracking.id)
        factory.recommendation(scan, status="CREATED", tracking_id=uuid.uuid4())

        first = LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()
        second = LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert first.applied == 2
        assert second.transitions == []
        assert second.applied == 0

    def test_in_progress_work_is_left_alone(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan)
        tracking = factory.tracking(customer, status="SYNCING")
        factory.job(batch, tracking, status="PROCESSING")
        rec = factory.recommendation(scan, status="CREATING", tracking_id=tracking.id)

        result = LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert result.transitions == []
        assert _reload(session, rec).status == "CREATING"

    def test_latest_job_decides(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan)
        tracking = factory.tracking(customer, status="PENDING")
        factory.job(batch, tracking, status="FAILED", created_at=T0)
        factory.job(batch, tracking, status="QUEUED", created_at=T0 + timedelta(minutes=5))
        rec = factory.recommendation(scan, status="CREATING", tracking_id=tracking.id)

        LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert _reload(session, rec).status == "CREATING"

    def test_closed_batch_orphans_queued_job(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        batch = factory.batch(scan, status="CANCELLED")
        tracking = factory.tracking(customer, status="PENDING")
        factory.job(batch, tracking, status="QUEUED")
        rec = factory.recommendation(scan, status="CREATING", tracking_id=tracking.id)

        LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        reloaded = _reload(session, rec)
        assert reloaded.status == "REPAIR"
        assert reloaded.tracking_id is None

    def test_creating_without_tracking_ref_is_repaired(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        rec = factory.recommendation(scan, status="CREATING")

        result = LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert result.counts == {"REPAIR": 1}
        assert _reload(session, rec).status == "REPAIR"

    def test_other_statuses_are_not_examined(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        for status in ("PENDING", "FAILED", "REPAIR"):
            factory.recommendation(scan, status=status, tracking_id=uuid.uuid4())

        result = LifecycleReconciler(session).reconcile_scan(scan.id)

        assert result.examined == 0
        assert result.transitions == []

    def test_other_scans_are_untouched(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        other = factory.scan(customer)
        rec = factory.recommendation(other, status="CREATED", tracking_id=uuid.uuid4())

        LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert _reload(session, rec).status == "CREATED"

    def test_failure_is_reported_not_raised(self, session, factory, monkeypatch) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        rec = factory.recommendation(scan, status="CREATED", tracking_id=uuid.uuid4())

        def _boom(self, ids):
            raise RuntimeError("database went away")

        monkeypatch.setattr(TrackingRepository, "get_many", _boom)

        result = LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert result.error == "RuntimeError: database went away"
        assert result.transitions == []
        assert _reload(session, rec).status == "CREATED"


class TestAcceptThenReconcile:
    def test_three_recommendations_through_the_lifecycle(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)
        recs = [factory.recommendation(scan, name=f"Rec {i}") for i in range(3)]

        accepted = TrackingBatchService(settings=TrackingSettings()).bulk_create_trackings(
            db=session,
            tenant_id=customer.tenant_id,
            customer_id=customer.id,
            scan_id=scan.id,
            recommendation_ids=[r.id for r in recs],
            destination="BOTH",
        )

        session.expire_all()
        assert accepted.queued == 3
        assert session.scalar(select(func.count()).select_from(TrackingBatch)) == 1
        jobs = session.scalars(select(TrackingQueueJob)).all()
        assert [job.status for job in jobs] == ["QUEUED"] * 3
        trackings = [session.get(Tracking, session.get(TrackingRecommendation, r.id).tracking_id) for r in recs]
        assert [t.status for t in trackings] == ["PENDING"] * 3
        assert all(t.destinations == ["GA4", "GOOGLE_ADS"] for t in trackings)

        synced, half, broken = trackings
        synced.status = "ACTIVE"
        synced.gtm_tag_id, synced.gtm_trigger_id = "tag-1", "trigger-1"
        synced.ads_conversion_label, synced.gtm_tag_id_ads = "label-1", "ads-tag-1"
        half.status = "ACTIVE"
        half.gtm_tag_id, half.gtm_trigger_id, half.gtm_tag_id_ads = "tag-2", "trigger-2", "ads-tag-2"
        broken.status = "FAILED"
        for job in jobs:
            job.status = "COMPLETED" if job.tracking_id != broken.id else "FAILED"
        session.commit()

        result = LifecycleReconciler(session).reconcile_scan(scan.id)
        session.commit()

        assert result.counts == {"CREATED": 1, "REPAIR": 1, "FAILED": 1}
        assert [_reload(session, r).status for r in recs] == ["CREATED", "REPAIR", "FAILED"]
