"""
db/models/tracking.py

Tracking model: an operator-approved tracking configuration that is pushed
to GTM / GA4 / Google Ads by the outbound sync worker.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, JSONType, TimestampMixin, UUIDPrimaryKeyMixin


class TrackingStatus:
    PENDING = "PENDING"
    CREATING = "CREATING"
    SYNCING = "SYNCING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"
    PAUSED = "PAUSED"

    IN_PROGRESS = frozenset({PENDING, CREATING, SYNCING})


class TrackingDestination:
    GA4 = "GA4"
    GOOGLE_ADS = "GOOGLE_ADS"
    BOTH = "BOTH"

    ALL = frozenset({GA4, GOOGLE_ADS, BOTH})
    REQUIRES_ADS = frozenset({GOOGLE_ADS, BOTH})


class Tracking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A live tracking configuration.

    Created once per accepted recommendation with status PENDING; from then
    on the sync worker owns status and the external identifiers, which are
    only populated after the corresponding Google resource exists.
    """

    __tablename__ = "trackings"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=TrackingStatus.PENDING,
    )
    selector: Mapped[str | None] = mapped_column(Text, nullable=True)
    url_pattern: Mapped[str | None] = mapped_column(Text, nullable=True)
    selector_config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    config: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    destinations: Mapped[list[str]] = mapped_column(
        JSONType,
        nullable=False,
        default=lambda: [TrackingDestination.GA4],
    )
    ga4_event_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # External identifiers, written by the sync worker.
    gtm_tag_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    gtm_trigger_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    gtm_tag_id_ads: Mapped[str | None] = mapped_column(String(64), nullable=True)
    conversion_action_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ads_conversion_label: Mapped[str | None] = mapped_column(String(128), nullable=True)

    is_auto_crawled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    crawl_metadata: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="scan_id, recommendation_id, page_url, severity",
    )
    selector_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)

    __table_args__ = (
        Index("ix_trackings_customer_id", "customer_id"),
        Index("ix_trackings_tenant_id", "tenant_id"),
        Index("ix_trackings_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Tracking id={self.id} name={self.name!r} status={self.status}>"
