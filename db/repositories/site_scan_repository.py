"""
Repository for tenant-scoped customer / scan lookups and scan-level writes.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from db.models.customer import Customer
from db.models.scan_page import ScanPage
from db.models.site_scan import SiteScan
from db.repositories.errors import CustomerNotFoundError, ScanNotFoundError
from db.repositories.types import PageSignalRow


class SiteScanRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_customer(self, *, tenant_id: uuid.UUID, customer_id: uuid.UUID) -> Customer | None:
        stmt = select(Customer).where(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id,
        )
        return self._session.scalars(stmt).first()

    def require_customer(self, *, tenant_id: uuid.UUID, customer_id: uuid.UUID) -> Customer:
        customer = self.get_customer(tenant_id=tenant_id, customer_id=customer_id)
        if customer is None:
            raise CustomerNotFoundError(f"Customer not found: {customer_id}")
        return customer

    def get_scan(
        self,
        *,
        tenant_id: uuid.UUID,
        customer_id: uuid.UUID,
        scan_id: uuid.UUID,
        for_update: bool = False,
    ) -> SiteScan | None:
        stmt = select(SiteScan).where(
            SiteScan.id == scan_id,
            SiteScan.customer_id == customer_id,
            SiteScan.tenant_id == tenant_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self._session.scalars(stmt).first()

    def require_scan(
        self,
        *,
        tenant_id: uuid.UUID,
        customer_id: uuid.UUID,
        scan_id: uuid.UUID,
        for_update: bool = False,
    ) -> SiteScan:
        scan = self.get_scan(
            tenant_id=tenant_id,
            customer_id=customer_id,
            scan_id=scan_id,
            for_update=for_update,
        )
        if scan is None:
            raise ScanNotFoundError(f"Scan not found: {scan_id}")
        return scan

    def list_page_signals(self, scan_id: uuid.UUID) -> list[PageSignalRow]:
        stmt = (
            select(
                ScanPage.id,
                ScanPage.url,
                ScanPage.page_type,
                ScanPage.depth,
                ScanPage.has_form,
                ScanPage.has_cta,
                ScanPage.has_phone_link,
                ScanPage.has_email_link,
            )
            .where(ScanPage.scan_id == scan_id)
            .order_by(ScanPage.created_at)
        )
        return [
            PageSignalRow(
                page_id=row.id,
                url=row.url,
                page_type=row.page_type,
                depth=row.depth or 0,
                has_form=bool(row.has_form),
                has_cta=bool(row.has_cta),
                has_phone_link=bool(row.has_phone_link),
                has_email_link=bool(row.has_email_link),
            )
            for row in self._session.execute(stmt)
        ]

    def bulk_update_page_scores(self, scores: Mapping[uuid.UUID, float]) -> int:
        """
        Write importance scores with one executemany UPDATE keyed by primary key.
        """
        if not scores:
            return 0

        self._session.execute(
            update(ScanPage),
            [{"id": page_id, "importance_score": score} for page_id, score in scores.items()],
        )
        return len(scores)
