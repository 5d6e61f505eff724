"""
Queue housekeeping for the outbound sync queue.

Recovers jobs a crashed worker left in PROCESSING, resumes batches whose
quota cooldown has expired, and closes batches that have no live jobs left.
Touches only batch and job rows; never calls an external API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache

from sqlalchemy.orm import Session

from app.config import QueueMaintenanceSettings, get_queue_maintenance_settings
from db.base import utcnow
from db.models.tracking_queue_job import QueueJobStatus
from db.repositories.tracking_queue_repository import TrackingQueueRepository
from db.session import transaction_scope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueMaintenanceSummary:
    recovered_jobs: int
    resumed_batches: int
    finalized_batches: int


class QueueMaintenanceService:
    def __init__(self, *, settings: QueueMaintenanceSettings | None = None) -> None:
        self._settings = settings or get_queue_maintenance_settings()

    def recover_stuck_jobs(self, *, db: Session, now: datetime | None = None) -> int:
        now = now or utcnow()
        cutoff = now - timedelta(seconds=self._settings.stuck_job_seconds)
        with transaction_scope(db):
            recovered = TrackingQueueRepository(db).recover_stuck_jobs(started_before=cutoff)
        if recovered:
            logger.warning("Reset %d stuck PROCESSING job(s) back to QUEUED", recovered)
        return recovered

    def resume_paused_batches(self, *, db: Session, now: datetime | None = None) -> int:
        with transaction_scope(db):
            resumed = TrackingQueueRepository(db).resume_paused_batches(now=now or utcnow())
        if resumed:
            logger.info("Resumed %d paused batch(es)", resumed)
        return resumed

    def finalize_batches(self, *, db: Session) -> int:
        """
        Close PROCESSING batches with no QUEUED / PROCESSING / RETRYING job.

        Counters are recomputed from the job rows, not taken from the batch.
        """
        finalized = 0
        with transaction_scope(db):
            queue = TrackingQueueRepository(db)
            for batch_id in queue.list_drained_batch_ids():
                counts = queue.job_status_counts(batch_id)
                completed = counts.get(QueueJobStatus.COMPLETED, 0)
                failed = counts.get(QueueJobStatus.FAILED, 0)
                if queue.complete_batch(batch_id, completed=completed, failed=failed):
                    finalized += 1
                    logger.info(
                        "Batch completed batch_id=%s completed=%d failed=%d",
                        batch_id,
                        completed,
                        failed,
                    )
        return finalized

    def run(self, *, db: Session) -> QueueMaintenanceSummary:
        return QueueMaintenanceSummary(
            recovered_jobs=self.recover_stuck_jobs(db=db),
            resumed_batches=self.resume_paused_batches(db=db),
            finalized_batches=self.finalize_batches(db=db),
        )


@lru_cache(maxsize=1)
def get_queue_maintenance_service() -> QueueMaintenanceService:
    return QueueMaintenanceService()
