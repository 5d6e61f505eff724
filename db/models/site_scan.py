"""
db/models/site_scan.py

SiteScan model: one crawl-and-analyze run over a customer's website.
"""

import uuid
from typing import TYPE_CHECKING, Any

from sqlalchemy import ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.customer import Customer
    from db.models.scan_page import ScanPage
    from db.models.tracking_recommendation import TrackingRecommendation


class SiteScanStatus:
    """Crawl pipeline states. Only the finalizer moves a scan to COMPLETED."""

    QUEUED = "QUEUED"
    DISCOVERING = "DISCOVERING"
    CRAWLING = "CRAWLING"
    NICHE_DETECTED = "NICHE_DETECTED"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"
    AWAITING_AUTH = "AWAITING_AUTH"
    DEEP_CRAWLING = "DEEP_CRAWLING"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    FINALIZABLE = frozenset({DEEP_CRAWLING, ANALYZING})


class SiteScan(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    One scan of a customer's website.

    The crawler owns every field up to DEEP_CRAWLING; the readiness fields
    (score, narrative, counts) are written once, by the finalizer, in the
    same transaction that marks the scan COMPLETED.
    """

    __tablename__ = "site_scans"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    )

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=SiteScanStatus.QUEUED,
    )

    website_url: Mapped[str] = mapped_column(
        String(2048),
        nullable=False,
    )

    total_pages_scanned: Mapped[int | None] = mapped_column(Integer, nullable=True)

    total_recommendations: Mapped[int | None] = mapped_column(Integer, nullable=True)

    tracking_readiness_score: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="0-100 severity-weighted readiness score",
    )

    readiness_narrative: Mapped[str | None] = mapped_column(Text, nullable=True)

    recommendation_counts: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="critical / important / recommended / optional counts",
    )

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ── Relationships ──────────────────────────────────────────────────────────

    customer: Mapped["Customer"] = relationship("Customer", back_populates="scans")

    pages: Mapped[list["ScanPage"]] = relationship(
        "ScanPage",
        back_populates="scan",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    recommendations: Mapped[list["TrackingRecommendation"]] = relationship(
        "TrackingRecommendation",
        back_populates="scan",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_site_scans_customer_id", "customer_id"),
        Index("ix_site_scans_tenant_id", "tenant_id"),
        Index("ix_site_scans_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<SiteScan id={self.id} status={self.status} url={self.website_url!r}>"
