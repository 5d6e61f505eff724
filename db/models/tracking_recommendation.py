"""
db/models/tracking_recommendation.py

TrackingRecommendation model: a candidate trackable interaction found by a scan.
"""

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import Float, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.site_scan import SiteScan


class RecommendationSeverity:
    CRITICAL = "CRITICAL"
    IMPORTANT = "IMPORTANT"
    RECOMMENDED = "RECOMMENDED"
    OPTIONAL = "OPTIONAL"

    # Display / sort order, most severe first.
    ORDERED = (CRITICAL, IMPORTANT, RECOMMENDED, OPTIONAL)


class RecommendationStatus:
    """
    Recommendation lifecycle.

    PENDING  -> CREATING   bulk-accept
    CREATING -> CREATED    linked tracking fully synced
    CREATING -> FAILED     tracking or job failed permanently
    CREATING -> REPAIR     orphaned / stalled / partially synced
    CREATED  -> REPAIR     synced tracking degraded

    REPAIR, FAILED and CREATED can be re-accepted.
    """

    PENDING = "PENDING"
    CREATING = "CREATING"
    CREATED = "CREATED"
    FAILED = "FAILED"
    REPAIR = "REPAIR"

    RETRIGGERABLE = frozenset({PENDING, REPAIR, FAILED, CREATED})


class TrackingRecommendation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    One recommendation produced by the crawler.

    status and tracking_id belong to the lifecycle: they are written only by
    the bulk-accept service and the reconciler.
    """

    __tablename__ = "tracking_recommendations"

    scan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("site_scans.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tracking_type: Mapped[str] = mapped_column(String(64), nullable=False)
    severity: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=RecommendationSeverity.RECOMMENDED,
    )
    severity_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    selector: Mapped[str | None] = mapped_column(Text, nullable=True)
    selector_config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    selector_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    url_pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    page_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    funnel_stage: Mapped[str | None] = mapped_column(String(64), nullable=True)
    suggested_config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    suggested_ga4_event_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    suggested_destinations: Mapped[list[str] | None] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=RecommendationStatus.PENDING,
    )
    tracking_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("trackings.id", ondelete="SET NULL"),
        nullable=True,
    )

    scan: Mapped["SiteScan"] = relationship("SiteScan", back_populates="recommendations")

    __table_args__ = (
        Index("ix_tracking_recommendations_scan_id", "scan_id"),
        Index("ix_tracking_recommendations_scan_id_status", "scan_id", "status"),
        Index("ix_tracking_recommendations_tracking_id", "tracking_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TrackingRecommendation id={self.id} name={self.name!r} "
            f"status={self.status} tracking_id={self.tracking_id}>"
        )
