"""
db/models/customer.py

Customer model: one website owner inside a tenant.
Scans, trackings and batches are all scoped to a customer.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.site_scan import SiteScan


class Customer(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    Represents a customer whose website is scanned and tracked.

    google_account_id is set once the customer connects a Google account;
    trackings cannot be pushed to GTM / Google Ads without it.
    """

    __tablename__ = "customers"

    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    website_url: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
    )

    google_account_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="Connected Google account; required before trackings are created",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    scans: Mapped[list["SiteScan"]] = relationship(
        "SiteScan",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_customers_tenant_id", "tenant_id"),
    )

    @property
    def has_connected_account(self) -> bool:
        return bool(self.google_account_id)

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r} tenant_id={self.tenant_id}>"
