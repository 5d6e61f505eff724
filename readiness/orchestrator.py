"""
readiness/orchestrator.py

Scan finalization boundary. Coordinates the scoring engine and the scan
repositories to move a fully crawled scan to COMPLETED. Contains no scoring
logic.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from db.models.site_scan import SiteScan, SiteScanStatus
from db.repositories.recommendation_repository import RecommendationRepository
from db.repositories.site_scan_repository import SiteScanRepository
from db.session import transaction_scope
from readiness.page_importance import PageSignals, RecommendationSignal
from readiness.scoring import ScanScoreResult, score_scan

logger = logging.getLogger(__name__)


class ScanStateConflictError(Exception):
    """Raised when a scan is not in a state that allows finalization."""

    def __init__(self, scan_id: uuid.UUID, actual_status: str) -> None:
        self.scan_id = scan_id
        self.actual_status = actual_status
        super().__init__(
            f"Scan {scan_id} cannot be finalized from status {actual_status}; "
            f"expected one of {sorted(SiteScanStatus.FINALIZABLE)}"
        )


@dataclass(frozen=True)
class FinalizeResult:
    scan: SiteScan
    score: ScanScoreResult
    pages_scored: int


class ScanFinalizeOrchestrator:
    """Finalizes a scan: score, persist, mark COMPLETED.

    Accepts a SQLAlchemy Session at construction time. All writes happen in
    one transaction (or a savepoint when the caller already holds one), so a
    scan is never left half-scored.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._scans = SiteScanRepository(session)
        self._recommendations = RecommendationRepository(session)

    def finalize(
        self,
        *,
        tenant_id: uuid.UUID,
        customer_id: uuid.UUID,
        scan_id: uuid.UUID,
    ) -> FinalizeResult:
        """Score a crawled scan and mark it COMPLETED.

        Args:
            tenant_id: Requesting tenant.
            customer_id: Customer that owns the scan.
            scan_id: Scan to finalize.

        Returns:
            FinalizeResult with the updated scan and the computed scores.

        Raises:
            ScanNotFoundError: The scan does not belong to customer and tenant.
            ScanStateConflictError: The scan is not DEEP_CRAWLING or ANALYZING.
        """
        with transaction_scope(self._session):
            scan = self._scans.require_scan(
                tenant_id=tenant_id,
                customer_id=customer_id,
                scan_id=scan_id,
                for_update=True,
            )
            if scan.status not in SiteScanStatus.FINALIZABLE:
                raise ScanStateConflictError(scan.id, scan.status)

            scan.status = SiteScanStatus.ANALYZING
            self._session.flush()

            page_rows = self._scans.list_page_signals(scan.id)
            pages = [
                PageSignals(
                    url=row.url,
                    page_type=row.page_type,
                    depth=row.depth,
                    has_form=row.has_form,
                    has_cta=row.has_cta,
                    has_phone_link=row.has_phone_link,
                    has_email_link=row.has_email_link,
                )
                for row in page_rows
            ]
            recommendations = [
                RecommendationSignal(severity=row.severity, page_url=row.page_url)
                for row in self._recommendations.list_signals(scan.id)
            ]

            score = score_scan(pages, recommendations)

            pages_scored = self._scans.bulk_update_page_scores(
                {row.page_id: page_score for row, page_score in zip(page_rows, score.page_scores)}
            )

            scan.tracking_readiness_score = score.readiness_score
            scan.readiness_narrative = score.narrative
            scan.recommendation_counts = score.counts.as_dict()
            scan.total_recommendations = score.total
            scan.total_pages_scanned = len(page_rows)
            scan.status = SiteScanStatus.COMPLETED
            self._session.flush()

        logger.info(
            "Scan finalized scan_id=%s score=%d recommendations=%d pages=%d",
            scan.id,
            score.readiness_score,
            score.total,
            pages_scored,
        )
        return FinalizeResult(scan=scan, score=score, pages_scored=pages_scored)
