"""
Recommendation listing service.

Every read reconciles the scan first, so the returned statuses reflect what
actually happened to the linked trackings and queue jobs.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.orm import Session

from db.models.tracking_recommendation import TrackingRecommendation
from db.repositories.recommendation_repository import RecommendationRepository
from db.repositories.site_scan_repository import SiteScanRepository
from db.repositories.types import RecommendationFilters
from db.session import transaction_scope
from lifecycle.reconciler import LifecycleReconciler, ReconciliationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendationListing:
    recommendations: list[TrackingRecommendation]
    reconciliation: ReconciliationResult


class RecommendationService:
    def list_recommendations(
        self,
        *,
        db: Session,
        tenant_id: uuid.UUID,
        customer_id: uuid.UUID,
        scan_id: uuid.UUID,
        severities: Sequence[str] = (),
        statuses: Sequence[str] = (),
        tracking_types: Sequence[str] = (),
        funnel_stage: str | None = None,
    ) -> RecommendationListing:
        filters = RecommendationFilters(
            severities=tuple(severities),
            statuses=tuple(statuses),
            tracking_types=tuple(tracking_types),
            funnel_stage=funnel_stage,
        )

        with transaction_scope(db):
            SiteScanRepository(db).require_scan(
                tenant_id=tenant_id,
                customer_id=customer_id,
                scan_id=scan_id,
            )
            reconciliation = LifecycleReconciler(db).reconcile_scan(scan_id)
            rows = RecommendationRepository(db).list_for_scan(scan_id, filters)

        return RecommendationListing(recommendations=rows, reconciliation=reconciliation)


@lru_cache(maxsize=1)
def get_recommendation_service() -> RecommendationService:
    return RecommendationService()
