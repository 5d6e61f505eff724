"""
Repository for tracking recommendation reads and lifecycle status writes.

Status writes are set-oriented: one UPDATE per call regardless of how many
recommendations move.
"""

from __future__ import annotations

import uuid
from collections.abc import Collection, Mapping

from sqlalchemy import Select, Uuid, case, literal, select, update
from sqlalchemy.orm import Session

from db.base import utcnow
from db.models.tracking_recommendation import (
    RecommendationSeverity,
    RecommendationStatus,
    TrackingRecommendation,
)
from db.repositories.types import RecommendationFilters, RecommendationSignalRow

_SEVERITY_RANK = case(
    {severity: rank for rank, severity in enumerate(RecommendationSeverity.ORDERED)},
    value=TrackingRecommendation.severity,
    else_=len(RecommendationSeverity.ORDERED),
)


class RecommendationRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_scan(
        self,
        scan_id: uuid.UUID,
        filters: RecommendationFilters | None = None,
    ) -> list[TrackingRecommendation]:
        stmt: Select[tuple[TrackingRecommendation]] = select(TrackingRecommendation).where(
            TrackingRecommendation.scan_id == scan_id
        )

        if filters is not None:
            if filters.severities:
                stmt = stmt.where(TrackingRecommendation.severity.in_(filters.severities))
            if filters.statuses:
                stmt = stmt.where(TrackingRecommendation.status.in_(filters.statuses))
            if filters.tracking_types:
                stmt = stmt.where(TrackingRecommendation.tracking_type.in_(filters.tracking_types))
            if filters.funnel_stage:
                stmt = stmt.where(TrackingRecommendation.funnel_stage == filters.funnel_stage)

        stmt = stmt.order_by(_SEVERITY_RANK, TrackingRecommendation.created_at, TrackingRecommendation.id)
        return list(self._session.scalars(stmt).all())

    def get_many_for_scan(
        self,
        scan_id: uuid.UUID,
        recommendation_ids: Collection[uuid.UUID],
    ) -> list[TrackingRecommendation]:
        if not recommendation_ids:
            return []
        stmt = select(TrackingRecommendation).where(
            TrackingRecommendation.scan_id == scan_id,
            TrackingRecommendation.id.in_(list(recommendation_ids)),
        )
        return list(self._session.scalars(stmt).all())

    def list_by_status(
        self,
        scan_id: uuid.UUID,
        statuses: Collection[str],
    ) -> list[TrackingRecommendation]:
        stmt = select(TrackingRecommendation).where(
            TrackingRecommendation.scan_id == scan_id,
            TrackingRecommendation.status.in_(list(statuses)),
        )
        return list(self._session.scalars(stmt).all())

    def list_signals(self, scan_id: uuid.UUID) -> list[RecommendationSignalRow]:
        stmt = select(
            TrackingRecommendation.severity,
            TrackingRecommendation.page_url,
        ).where(TrackingRecommendation.scan_id == scan_id)
        return [
            RecommendationSignalRow(severity=row.severity, page_url=row.page_url)
            for row in self._session.execute(stmt)
        ]

    def scan_ids_with_status(self, statuses: Collection[str]) -> list[uuid.UUID]:
        stmt = (
            select(TrackingRecommendation.scan_id)
            .where(TrackingRecommendation.status.in_(list(statuses)))
            .distinct()
        )
        return list(self._session.scalars(stmt).all())

    def mark_creating(self, tracking_by_recommendation: Mapping[uuid.UUID, uuid.UUID]) -> int:
        """
        Move recommendations to CREATING and link each one to its new tracking.

        Single UPDATE with a CASE keyed by recommendation id.
        """
        if not tracking_by_recommendation:
            return 0

        tracking_case = case(
            {
                recommendation_id: literal(tracking_id, Uuid(as_uuid=True))
                for recommendation_id, tracking_id in tracking_by_recommendation.items()
            },
            value=TrackingRecommendation.id,
        )
        stmt = (
            update(TrackingRecommendation)
            .where(TrackingRecommendation.id.in_(list(tracking_by_recommendation)))
            .values(
                status=RecommendationStatus.CREATING,
                tracking_id=tracking_case,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session="fetch")
        )
        return self._session.execute(stmt).rowcount

    def transition_status(
        self,
        recommendation_ids: Collection[uuid.UUID],
        *,
        from_status: str,
        to_status: str,
        clear_tracking: bool = False,
    ) -> int:
        """
        Guarded status move: only rows still in ``from_status`` are updated.

        Returns the number of rows actually moved.
        """
        if not recommendation_ids:
            return 0

        values: dict[str, object] = {"status": to_status, "updated_at": utcnow()}
        if clear_tracking:
            values["tracking_id"] = None

        stmt = (
            update(TrackingRecommendation)
            .where(
                TrackingRecommendation.id.in_(list(recommendation_ids)),
                TrackingRecommendation.status == from_status,
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        return self._session.execute(stmt).rowcount
