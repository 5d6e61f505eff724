"""
tests/test_scan_finalizer.py

Tests for ScanFinalizeOrchestrator against an in-memory SQLite database.
"""

from __future__ import annotations

import uuid

import pytest

from db.models import ScanPage, SiteScan
from db.repositories.errors import ScanNotFoundError
from readiness.orchestrator import ScanFinalizeOrchestrator, ScanStateConflictError


def _seed_scan(factory, *, status: str = "DEEP_CRAWLING"):
    customer = factory.customer()
    scan = factory.scan(customer, status=status)
    checkout = factory.page(scan, "https://acme.example/checkout", page_type="checkout", has_form=True)
    blog = factory.page(scan, "https://acme.example/blog", page_type="blog", depth=2)
    for i in range(5):
        factory.recommendation(scan, name=f"Critical {i}", severity="CRITICAL", page_url="https://acme.example/checkout")
    for i in range(2):
        factory.recommendation(scan, name=f"Important {i}", severity="IMPORTANT")
    return customer, scan, checkout, blog


class TestFinalize:
    @pytest.mark.parametrize("status", ["DEEP_CRAWLING", "ANALYZING"])
    def test_scores_and_completes(self, session, factory, status: str) -> None:
        customer, scan, checkout, blog = _seed_scan(factory, status=status)

        result = ScanFinalizeOrchestrator(session).finalize(
            tenant_id=customer.tenant_id,
            customer_id=customer.id,
            scan_id=scan.id,
        )

        assert result.score.readiness_score == 52
        assert result.pages_scored == 2

        session.expire_all()
        stored = session.get(SiteScan, scan.id)
        assert stored.status == "COMPLETED"
        assert stored.tracking_readiness_score == 52
        assert stored.total_recommendations == 7
        assert stored.total_pages_scanned == 2
        assert stored.recommendation_counts == {"critical": 5, "important": 2, "recommended": 0, "optional": 0}
        assert stored.readiness_narrative == (
            "Found 5 critical conversions, 2 important micro-conversions, "
            "7 total tracking opportunities. "
            "Moderate tracking potential. Consider adding more conversion points."
        )

        assert session.get(ScanPage, checkout.id).importance_score == pytest.approx(1.0)
        assert session.get(ScanPage, blog.id).importance_score == pytest.approx(0.2 * 0.8)

    def test_scan_without_pages_or_recommendations(self, session, factory) -> None:
        customer = factory.customer()
        scan = factory.scan(customer)

        result = ScanFinalizeOrchestrator(session).finalize(
            tenant_id=customer.tenant_id,
            customer_id=customer.id,
            scan_id=scan.id,
        )

        assert result.pages_scored == 0
        session.expire_all()
        stored = session.get(SiteScan, scan.id)
        assert stored.status == "COMPLETED"
        assert stored.tracking_readiness_score == 0
        assert stored.total_pages_scanned == 0

    @pytest.mark.parametrize("status", ["QUEUED", "CRAWLING", "COMPLETED", "FAILED"])
    def test_wrong_state_conflicts_and_writes_nothing(self, session, factory, status: str) -> None:
        customer, scan, checkout, _ = _seed_scan(factory, status=status)

        with pytest.raises(ScanStateConflictError) as exc_info:
            ScanFinalizeOrchestrator(session).finalize(
                tenant_id=customer.tenant_id,
                customer_id=customer.id,
                scan_id=scan.id,
            )

        assert exc_info.value.actual_status == status
        session.expire_all()
        stored = session.get(SiteScan, scan.id)
        assert stored.status == status
        assert stored.tracking_readiness_score is None
        assert session.get(ScanPage, checkout.id).importance_score is None

    def test_second_finalize_conflicts(self, session, factory) -> None:
        customer, scan, _, _ = _seed_scan(factory)
        orchestrator = ScanFinalizeOrchestrator(session)
        orchestrator.finalize(tenant_id=customer.tenant_id, customer_id=customer.id, scan_id=scan.id)

        with pytest.raises(ScanStateConflictError):
            orchestrator.finalize(tenant_id=customer.tenant_id, customer_id=customer.id, scan_id=scan.id)

    def test_unknown_scan(self, session, factory) -> None:
        customer = factory.customer()

        with pytest.raises(ScanNotFoundError):
            ScanFinalizeOrchestrator(session).finalize(
                tenant_id=customer.tenant_id,
                customer_id=customer.id,
                scan_id=uuid.uuid4(),
            )

    def test_other_tenant_cannot_finalize(self, session, factory) -> None:
        customer, scan, _, _ = _seed_scan(factory)

        with pytest.raises(ScanNotFoundError):
            ScanFinalizeOrchestrator(session).finalize(
                tenant_id=uuid.uuid4(),
                customer_id=customer.id,
                scan_id=scan.id,
            )
