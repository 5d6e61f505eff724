"""
Repository for tracking batches and their queue jobs.
"""

from __future__ import annotations

import uuid
from collections.abc import Collection, Sequence
from datetime import datetime

from sqlalchemy import func, insert, select, update
from sqlalchemy.orm import Session

from db.base import utcnow
from db.models.tracking_batch import TrackingBatch, TrackingBatchStatus
from db.models.tracking_queue_job import QueueJobStatus, TrackingQueueJob
from db.repositories.errors import BatchNotFoundError
from db.repositories.types import QueueJobBulkCreate


class TrackingQueueRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    # ---------------------------------------------------------------------------
    # Batches
    # ---------------------------------------------------------------------------

    def create_batch(
        self,
        *,
        scan_id: uuid.UUID,
        customer_id: uuid.UUID,
        tenant_id: uuid.UUID,
        user_id: uuid.UUID | None,
        total_jobs: int,
    ) -> TrackingBatch:
        batch = TrackingBatch(
            scan_id=scan_id,
            customer_id=customer_id,
            tenant_id=tenant_id,
            user_id=user_id,
            status=TrackingBatchStatus.PROCESSING,
            total_jobs=total_jobs,
            completed=0,
            failed=0,
        )
        self._session.add(batch)
        self._session.flush()
        return batch

    def get_batch(self, *, tenant_id: uuid.UUID, batch_id: uuid.UUID) -> TrackingBatch | None:
        stmt = select(TrackingBatch).where(
            TrackingBatch.id == batch_id,
            TrackingBatch.tenant_id == tenant_id,
        )
        return self._session.scalars(stmt).first()

    def require_batch(self, *, tenant_id: uuid.UUID, batch_id: uuid.UUID) -> TrackingBatch:
        batch = self.get_batch(tenant_id=tenant_id, batch_id=batch_id)
        if batch is None:
            raise BatchNotFoundError(f"Batch not found: {batch_id}")
        return batch

    def batch_statuses(self, batch_ids: Collection[uuid.UUID]) -> dict[uuid.UUID, str]:
        if not batch_ids:
            return {}
        stmt = select(TrackingBatch.id, TrackingBatch.status).where(
            TrackingBatch.id.in_(list(batch_ids))
        )
        return {row.id: row.status for row in self._session.execute(stmt)}

    def resume_paused_batches(self, *, now: datetime | None = None) -> int:
        now = now or utcnow()
        stmt = (
            update(TrackingBatch)
            .where(
                TrackingBatch.status == TrackingBatchStatus.PAUSED,
                TrackingBatch.resume_after.is_not(None),
                TrackingBatch.resume_after <= now,
            )
            .values(
                status=TrackingBatchStatus.PROCESSING,
                paused_at=None,
                resume_after=None,
                pause_reason=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount

    def list_drained_batch_ids(self) -> list[uuid.UUID]:
        """PROCESSING batches that no longer have any live job."""
        live_jobs = select(TrackingQueueJob.id).where(
            TrackingQueueJob.batch_id == TrackingBatch.id,
            TrackingQueueJob.status.in_(list(QueueJobStatus.ACTIVE)),
        )
        stmt = select(TrackingBatch.id).where(
            TrackingBatch.status == TrackingBatchStatus.PROCESSING,
            ~live_jobs.exists(),
        )
        return list(self._session.scalars(stmt).all())

    def job_status_counts(self, batch_id: uuid.UUID) -> dict[str, int]:
        stmt = (
            select(TrackingQueueJob.status, func.count(TrackingQueueJob.id))
            .where(TrackingQueueJob.batch_id == batch_id)
            .group_by(TrackingQueueJob.status)
        )
        return {status: count for status, count in self._session.execute(stmt)}

    def complete_batch(self, batch_id: uuid.UUID, *, completed: int, failed: int) -> int:
        stmt = (
            update(TrackingBatch)
            .where(
                TrackingBatch.id == batch_id,
                TrackingBatch.status == TrackingBatchStatus.PROCESSING,
            )
            .values(
                status=TrackingBatchStatus.COMPLETED,
                completed=completed,
                failed=failed,
                paused_at=None,
                resume_after=None,
                pause_reason=None,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount

    # ---------------------------------------------------------------------------
    # Jobs
    # ---------------------------------------------------------------------------

    def bulk_create_jobs(
        self,
        records: Sequence[QueueJobBulkCreate],
        *,
        batch_size: int = 500,
    ) -> list[uuid.UUID]:
        if not records:
            return []

        created_ids: list[uuid.UUID] = []
        for chunk_start in range(0, len(records), batch_size):
            chunk = records[chunk_start : chunk_start + batch_size]
            values = [
                {
                    "id": record.job_id,
                    "batch_id": record.batch_id,
                    "tracking_id": record.tracking_id,
                    "recommendation_id": record.recommendation_id,
                    "status": record.status,
                    "attempts": 0,
                    "max_attempts": record.max_attempts,
                    "priority": record.priority,
                }
                for record in chunk
            ]
            self._session.execute(insert(TrackingQueueJob), values)
            created_ids.extend(record.job_id for record in chunk)

        return created_ids

    def list_jobs(self, batch_id: uuid.UUID) -> list[TrackingQueueJob]:
        stmt = (
            select(TrackingQueueJob)
            .where(TrackingQueueJob.batch_id == batch_id)
            .order_by(TrackingQueueJob.priority.desc(), TrackingQueueJob.created_at)
        )
        return list(self._session.scalars(stmt).all())

    def latest_jobs_for_trackings(
        self,
        tracking_ids: Collection[uuid.UUID],
    ) -> dict[uuid.UUID, TrackingQueueJob]:
        """Most recently created job per tracking id."""
        if not tracking_ids:
            return {}

        stmt = (
            select(TrackingQueueJob)
            .where(TrackingQueueJob.tracking_id.in_(list(tracking_ids)))
            .order_by(TrackingQueueJob.tracking_id, TrackingQueueJob.created_at.desc())
        )
        latest: dict[uuid.UUID, TrackingQueueJob] = {}
        for job in self._session.scalars(stmt):
            latest.setdefault(job.tracking_id, job)
        return latest

    def recover_stuck_jobs(self, *, started_before: datetime) -> int:
        """Put PROCESSING jobs started at or before ``started_before`` back to QUEUED."""
        stmt = (
            update(TrackingQueueJob)
            .where(
                TrackingQueueJob.status == QueueJobStatus.PROCESSING,
                TrackingQueueJob.started_at.is_not(None),
                TrackingQueueJob.started_at <= started_before,
            )
            .values(
                status=QueueJobStatus.QUEUED,
                step=None,
                started_at=None,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return self._session.execute(stmt).rowcount
