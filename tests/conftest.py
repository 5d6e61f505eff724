"""
tests/conftest.py

Shared fixtures: an in-memory SQLite database built from Base.metadata and a
small factory for seeding customers, scans, pages, recommendations, trackings,
batches and queue jobs.

pysqlite's own transaction handling breaks SAVEPOINT; the connect/begin
listeners hand transaction control back to SQLAlchemy.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from datetime import datetime
from typing import Any

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401  (registers all ORM models on Base.metadata)
from db.base import Base
from db.models import (
    Customer,
    ScanPage,
    SiteScan,
    SiteScanStatus,
    Tracking,
    TrackingBatch,
    TrackingBatchStatus,
    TrackingDestination,
    TrackingQueueJob,
    TrackingRecommendation,
    TrackingStatus,
)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine: Engine) -> Iterator[Session]:
    factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    db = factory()
    try:
        yield db
    finally:
        db.close()


class Factory:
    """Seeds rows and commits them so services start outside a transaction."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.tenant_id = uuid.uuid4()

    def _save(self, obj: Any) -> Any:
        self.session.add(obj)
        self.session.commit()
        return obj

    def customer(self, *, connected: bool = True, tenant_id: uuid.UUID | None = None) -> Customer:
        return self._save(
            Customer(
                tenant_id=tenant_id or self.tenant_id,
                name="Acme Shop",
                website_url="https://acme.example",
                google_account_id="google-acct-1" if connected else None,
            )
        )

    def scan(self, customer: Customer, *, status: str = SiteScanStatus.DEEP_CRAWLING) -> SiteScan:
        return self._save(
            SiteScan(
                customer_id=customer.id,
                tenant_id=customer.tenant_id,
                status=status,
                website_url=customer.website_url or "https://acme.example",
            )
        )

    def page(self, scan: SiteScan, url: str, **fields: Any) -> ScanPage:
        return self._save(ScanPage(scan_id=scan.id, url=url, **fields))

    def recommendation(
        self,
        scan: SiteScan,
        *,
        name: str = "Checkout button",
        tracking_type: str = "CHECKOUT_START",
        severity: str = "CRITICAL",
        status: str = "PENDING",
        tracking_id: uuid.UUID | None = None,
        created_at: datetime | None = None,
        **fields: Any,
    ) -> TrackingRecommendation:
        rec = TrackingRecommendation(
            scan_id=scan.id,
            name=name,
            tracking_type=tracking_type,
            severity=severity,
            status=status,
            tracking_id=tracking_id,
            **fields,
        )
        if created_at is not None:
            rec.created_at = created_at
        return self._save(rec)

    def tracking(
        self,
        customer: Customer,
        *,
        status: str = TrackingStatus.PENDING,
        destinations: list[str] | None = None,
        complete: bool = False,
        **fields: Any,
    ) -> Tracking:
        if complete:
            fields.setdefault("gtm_tag_id", "tag-1")
            fields.setdefault("gtm_trigger_id", "trigger-1")
            fields.setdefault("ads_conversion_label", "label-1")
            fields.setdefault("gtm_tag_id_ads", "tag-ads-1")
        return self._save(
            Tracking(
                customer_id=customer.id,
                tenant_id=customer.tenant_id,
                name="Tracking",
                type="BUTTON_CLICK",
                status=status,
                destinations=destinations or [TrackingDestination.GA4],
                **fields,
            )
        )

    def batch(
        self,
        scan: SiteScan,
        *,
        status: str = TrackingBatchStatus.PROCESSING,
        total_jobs: int = 1,
        **fields: Any,
    ) -> TrackingBatch:
        return self._save(
            TrackingBatch(
                scan_id=scan.id,
                customer_id=scan.customer_id,
                tenant_id=scan.tenant_id,
                status=status,
                total_jobs=total_jobs,
                completed=0,
                failed=0,
                **fields,
            )
        )

    def job(
        self,
        batch: TrackingBatch,
        tracking: Tracking,
        *,
        status: str = "QUEUED",
        created_at: datetime | None = None,
        **fields: Any,
    ) -> TrackingQueueJob:
        job = TrackingQueueJob(batch_id=batch.id, tracking_id=tracking.id, status=status, **fields)
        if created_at is not None:
            job.created_at = created_at
        return self._save(job)


@pytest.fixture()
def factory(session: Session) -> Factory:
    return Factory(session)
