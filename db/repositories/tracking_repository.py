"""
Repository for tracking rows created from accepted recommendations.
"""

from __future__ import annotations

import uuid
from collections.abc import Collection, Sequence

from sqlalchemy import insert, select
from sqlalchemy.orm import Session

from db.models.tracking import Tracking
from db.repositories.errors import TrackingPersistenceError
from db.repositories.types import TrackingBulkCreate


class TrackingRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def bulk_create_trackings(
        self,
        records: Sequence[TrackingBulkCreate],
        *,
        batch_size: int = 500,
    ) -> list[uuid.UUID]:
        """
        Insert tracking rows with chunked INSERT ... RETURNING.

        Returned ids follow the order of ``records``.
        """
        if not records:
            return []

        stmt = insert(Tracking).returning(Tracking.id, sort_by_parameter_order=True)
        created_ids: list[uuid.UUID] = []
        for chunk_start in range(0, len(records), batch_size):
            chunk = records[chunk_start : chunk_start + batch_size]
            values = [
                {
                    "id": record.tracking_id,
                    "customer_id": record.customer_id,
                    "tenant_id": record.tenant_id,
                    "name": record.name,
                    "type": record.type,
                    "description": record.description,
                    "status": record.status,
                    "selector": record.selector,
                    "url_pattern": record.url_pattern,
                    "selector_config": record.selector_config,
                    "config": record.config,
                    "destinations": list(record.destinations),
                    "ga4_event_name": record.ga4_event_name,
                    "is_auto_crawled": True,
                    "crawl_metadata": record.crawl_metadata,
                    "selector_confidence": record.selector_confidence,
                    "created_by": record.created_by,
                }
                for record in chunk
            ]
            created_ids.extend(self._session.scalars(stmt, values).all())

        if len(created_ids) != len(records):
            raise TrackingPersistenceError(
                f"Expected {len(records)} trackings, inserted {len(created_ids)}"
            )
        return created_ids

    def get_many(self, tracking_ids: Collection[uuid.UUID]) -> dict[uuid.UUID, Tracking]:
        if not tracking_ids:
            return {}
        stmt = select(Tracking).where(Tracking.id.in_(list(tracking_ids)))
        return {tracking.id: tracking for tracking in self._session.scalars(stmt).all()}
