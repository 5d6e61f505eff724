"""
db/models/tracking_queue_job.py

TrackingQueueJob model: one async unit of work syncing a tracking to Google.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.tracking_batch import TrackingBatch


class QueueJobStatus:
    QUEUED = "QUEUED"
    PROCESSING = "PROCESSING"
    RETRYING = "RETRYING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    ACTIVE = frozenset({QUEUED, PROCESSING, RETRYING})


class TrackingQueueJob(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Status is written by the sync worker only; this service reads it to
    infer recommendation health.
    """

    __tablename__ = "tracking_queue_jobs"

    batch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("tracking_batches.id", ondelete="CASCADE"),
        nullable=False,
    )
    tracking_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    recommendation_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=QueueJobStatus.QUEUED,
    )
    step: Mapped[str | None] = mapped_column(String(64), nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    next_retry_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    batch: Mapped[TrackingBatch] = relationship("TrackingBatch", back_populates="jobs")

    __table_args__ = (
        Index("ix_tracking_queue_jobs_batch_id_status", "batch_id", "status"),
        Index("ix_tracking_queue_jobs_tracking_id", "tracking_id"),
        Index("ix_tracking_queue_jobs_status", "status"),
    )
