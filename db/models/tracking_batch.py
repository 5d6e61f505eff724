"""
db/models/tracking_batch.py

TrackingBatch model: the unit of work created by one bulk-accept call.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.tracking_queue_job import TrackingQueueJob


class TrackingBatchStatus:
    PROCESSING = "PROCESSING"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    TERMINAL = frozenset({COMPLETED, CANCELLED})


class TrackingBatch(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Groups the queue jobs created by one bulk-accept.

    completed / failed are accounting counters maintained by the queue;
    the job rows stay the source of truth.
    """

    __tablename__ = "tracking_batches"

    scan_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    customer_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=TrackingBatchStatus.PROCESSING,
    )
    total_jobs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    paused_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resume_after: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    pause_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    jobs: Mapped[list["TrackingQueueJob"]] = relationship(
        "TrackingQueueJob",
        back_populates="batch",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_tracking_batches_status", "status"),
        Index("ix_tracking_batches_scan_id", "scan_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TrackingBatch id={self.id} status={self.status} "
            f"{self.completed}+{self.failed}/{self.total_jobs}>"
        )
