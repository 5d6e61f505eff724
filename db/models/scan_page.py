"""
db/models/scan_page.py

ScanPage model: one crawled URL belonging to a scan.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from db.models.site_scan import SiteScan


class ScanPage(UUIDPrimaryKeyMixin, Base):
    """
    A crawled page and the boolean signals the crawler detected on it.

    importance_score is the only column written outside the crawler.
    """

    __tablename__ = "scan_pages"

    scan_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("site_scans.id", ondelete="CASCADE"),
        nullable=False,
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    title: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    page_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="checkout, cart, pricing, contact, blog, ...",
    )
    has_form: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_cta: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_phone_link: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_email_link: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    importance_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    scan: Mapped["SiteScan"] = relationship("SiteScan", back_populates="pages")

    __table_args__ = (
        Index("ix_scan_pages_scan_id", "scan_id"),
        Index("ix_scan_pages_scan_id_url", "scan_id", "url"),
    )
