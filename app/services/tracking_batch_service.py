"""
Bulk-accept service: converts selected recommendations into trackings and
queues them for the outbound sync worker.

Every precondition is checked before the first write; all writes then
happen in one transaction using set-oriented statements, so the batch,
its trackings, its jobs and the recommendation links appear together or
not at all. No external API is called here.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import lru_cache

from sqlalchemy.orm import Session

from app.config import TrackingSettings, get_tracking_settings
from db.models.tracking import TrackingStatus
from db.models.tracking_batch import TrackingBatch
from db.models.tracking_queue_job import QueueJobStatus, TrackingQueueJob
from db.models.tracking_recommendation import RecommendationStatus, TrackingRecommendation
from db.repositories.recommendation_repository import RecommendationRepository
from db.repositories.site_scan_repository import SiteScanRepository
from db.repositories.tracking_queue_repository import TrackingQueueRepository
from db.repositories.tracking_repository import TrackingRepository
from db.repositories.types import QueueJobBulkCreate, TrackingBulkCreate
from db.session import transaction_scope
from lifecycle.tracking_types import (
    default_ga4_event_name,
    destinations_for_choice,
    map_tracking_type,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkippedRecommendation:
    recommendation_id: uuid.UUID
    name: str | None
    reason: str

    @property
    def message(self) -> str:
        return f"{self.name}: {self.reason}" if self.name else f"{self.recommendation_id}: {self.reason}"


class TrackingBatchError(Exception):
    """Base exception for bulk-accept failures."""


class ExternalAccountNotConnectedError(TrackingBatchError):
    """Raised when the customer has no connected Google account."""


class InvalidDestinationError(TrackingBatchError):
    """Raised when the requested destination is not GA4, GOOGLE_ADS or BOTH."""


class NoActionableRecommendationsError(TrackingBatchError):
    """Raised when none of the requested recommendations can be (re)accepted."""

    def __init__(self, skipped: Sequence[SkippedRecommendation]) -> None:
        self.skipped = list(skipped)
        super().__init__("No actionable recommendations found for the given IDs")


class NoValidRecommendationsError(TrackingBatchError):
    """Raised when every actionable recommendation was rejected during validation."""

    def __init__(self, skipped: Sequence[SkippedRecommendation]) -> None:
        self.skipped = list(skipped)
        super().__init__("No valid recommendations to create")


@dataclass(frozen=True)
class BulkCreateResult:
    batch_id: uuid.UUID
    tracking_ids: list[uuid.UUID]
    queued: int
    total: int
    skipped: list[SkippedRecommendation] = field(default_factory=list)


@dataclass(frozen=True)
class BatchProgress:
    batch: TrackingBatch
    jobs: list[TrackingQueueJob]


@dataclass(frozen=True)
class _ValidRecommendation:
    recommendation: TrackingRecommendation
    tracking_type: str
    ga4_event_name: str


class TrackingBatchService:
    """
    Creates tracking batches from accepted recommendations.
    """

    def __init__(self, *, settings: TrackingSettings | None = None) -> None:
        self._settings = settings or get_tracking_settings()

    def bulk_create_trackings(
        self,
        *,
        db: Session,
        tenant_id: uuid.UUID,
        customer_id: uuid.UUID,
        scan_id: uuid.UUID,
        recommendation_ids: Sequence[uuid.UUID],
        destination: str | None = None,
        user_id: uuid.UUID | None = None,
    ) -> BulkCreateResult:
        requested_ids = list(dict.fromkeys(recommendation_ids))
        if not requested_ids:
            raise NoActionableRecommendationsError([])

        scans = SiteScanRepository(db)
        recommendations = RecommendationRepository(db)
        trackings = TrackingRepository(db)
        queue = TrackingQueueRepository(db)

        with transaction_scope(db):
            customer = scans.require_customer(tenant_id=tenant_id, customer_id=customer_id)
            if not customer.has_connected_account:
                raise ExternalAccountNotConnectedError(
                    "Customer must have a connected Google account before creating trackings"
                )
            scans.require_scan(tenant_id=tenant_id, customer_id=customer_id, scan_id=scan_id)

            actionable, skipped = self._select_actionable(
                recommendations.get_many_for_scan(scan_id, requested_ids),
                requested_ids,
            )
            if not actionable:
                raise NoActionableRecommendationsError(skipped)

            valid: list[_ValidRecommendation] = []
            for rec in actionable:
                tracking_type = map_tracking_type(rec.tracking_type)
                if tracking_type is None:
                    skipped.append(
                        SkippedRecommendation(
                            recommendation_id=rec.id,
                            name=rec.name,
                            reason=f'Unknown tracking type "{rec.tracking_type}"',
                        )
                    )
                    continue
                valid.append(
                    _ValidRecommendation(
                        recommendation=rec,
                        tracking_type=tracking_type,
                        ga4_event_name=rec.suggested_ga4_event_name or default_ga4_event_name(tracking_type),
                    )
                )

            if not valid:
                raise NoValidRecommendationsError(skipped)

            try:
                destinations = destinations_for_choice(destination or self._settings.default_destination)
            except ValueError as exc:
                raise InvalidDestinationError(str(exc)) from exc

            batch = queue.create_batch(
                scan_id=scan_id,
                customer_id=customer_id,
                tenant_id=tenant_id,
                user_id=user_id,
                total_jobs=len(valid),
            )

            tracking_records = [
                self._build_tracking_record(
                    item,
                    scan_id=scan_id,
                    customer_id=customer_id,
                    tenant_id=tenant_id,
                    user_id=user_id,
                    destinations=destinations,
                )
                for item in valid
            ]
            tracking_ids = trackings.bulk_create_trackings(
                tracking_records,
                batch_size=self._settings.insert_batch_size,
            )

            queue.bulk_create_jobs(
                [
                    QueueJobBulkCreate(
                        batch_id=batch.id,
                        tracking_id=tracking_id,
                        recommendation_id=record.recommendation_id,
                        status=QueueJobStatus.QUEUED,
                        max_attempts=self._settings.job_max_attempts,
                    )
                    for record, tracking_id in zip(tracking_records, tracking_ids)
                ],
                batch_size=self._settings.insert_batch_size,
            )

            recommendations.mark_creating(
                {
                    record.recommendation_id: tracking_id
                    for record, tracking_id in zip(tracking_records, tracking_ids)
                }
            )
            batch_id = batch.id

        logger.info(
            "Tracking batch created batch_id=%s scan_id=%s queued=%d skipped=%d",
            batch_id,
            scan_id,
            len(tracking_ids),
            len(skipped),
        )
        return BulkCreateResult(
            batch_id=batch_id,
            tracking_ids=list(tracking_ids),
            queued=len(valid),
            total=len(actionable),
            skipped=skipped,
        )

    def get_batch_progress(
        self,
        *,
        db: Session,
        tenant_id: uuid.UUID,
        batch_id: uuid.UUID,
    ) -> BatchProgress:
        queue = TrackingQueueRepository(db)
        batch = queue.require_batch(tenant_id=tenant_id, batch_id=batch_id)
        return BatchProgress(batch=batch, jobs=queue.list_jobs(batch.id))

    def _select_actionable(
        self,
        found: Sequence[TrackingRecommendation],
        requested_ids: Sequence[uuid.UUID],
    ) -> tuple[list[TrackingRecommendation], list[SkippedRecommendation]]:
        by_id = {rec.id: rec for rec in found}
        actionable: list[TrackingRecommendation] = []
        skipped: list[SkippedRecommendation] = []

        for rec_id in requested_ids:
            rec = by_id.get(rec_id)
            if rec is None:
                skipped.append(
                    SkippedRecommendation(recommendation_id=rec_id, name=None, reason="Not found in scan")
                )
            elif rec.status not in RecommendationStatus.RETRIGGERABLE:
                skipped.append(
                    SkippedRecommendation(
                        recommendation_id=rec.id,
                        name=rec.name,
                        reason=f"Recommendation is {rec.status}",
                    )
                )
            else:
                actionable.append(rec)

        return actionable, skipped

    def _build_tracking_record(
        self,
        item: _ValidRecommendation,
        *,
        scan_id: uuid.UUID,
        customer_id: uuid.UUID,
        tenant_id: uuid.UUID,
        user_id: uuid.UUID | None,
        destinations: list[str],
    ) -> TrackingBulkCreate:
        rec = item.recommendation
        return TrackingBulkCreate(
            recommendation_id=rec.id,
            customer_id=customer_id,
            tenant_id=tenant_id,
            name=rec.name,
            type=item.tracking_type,
            destinations=destinations,
            ga4_event_name=item.ga4_event_name,
            status=TrackingStatus.PENDING,
            description=rec.description,
            selector=rec.selector,
            url_pattern=rec.url_pattern,
            selector_config=rec.selector_config,
            config=rec.suggested_config,
            crawl_metadata={
                "scan_id": str(scan_id),
                "recommendation_id": str(rec.id),
                "page_url": rec.page_url,
                "severity": rec.severity,
            },
            selector_confidence=rec.selector_confidence,
            created_by=user_id,
        )


@lru_cache(maxsize=1)
def get_tracking_batch_service() -> TrackingBatchService:
    return TrackingBatchService()
