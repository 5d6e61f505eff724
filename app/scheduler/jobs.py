"""
app/scheduler/jobs.py

APScheduler-based scheduler for periodic queue housekeeping and lifecycle
reconciliation.

Schedule (interval, seconds from settings)
------------------------------------------
  queue_maintenance  every QUEUE_MAINTENANCE_INTERVAL_SECONDS (default 60)
                       requeue stuck jobs and move batches between
                       PAUSED, PROCESSING and COMPLETED
  reconcile_sweep    every RECONCILE_SWEEP_INTERVAL_SECONDS (default 300)
                       reconcile every scan with CREATING / CREATED
                       recommendations, so drift is corrected even when
                       nobody lists them

Lifecycle
----------
Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
The scheduler is wired into FastAPI via the ``lifespan`` context in main.py.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.config import get_queue_maintenance_settings, get_reconcile_sweep_settings
from app.services.queue_maintenance_service import get_queue_maintenance_service
from db.models.tracking_recommendation import RecommendationStatus
from db.repositories.recommendation_repository import RecommendationRepository
from db.session import SessionLocal, transaction_scope
from lifecycle.reconciler import LifecycleReconciler

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Yield a fresh session and ensure it is closed on exit."""
    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Job: Queue maintenance
# ---------------------------------------------------------------------------


def run_queue_maintenance() -> None:
    logger.info("Scheduler: queue_maintenance starting")
    with _session_scope() as db:
        try:
            summary = get_queue_maintenance_service().run(db=db)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Scheduler: queue_maintenance failed: %s", exc)
            return

    logger.info(
        "Scheduler: queue_maintenance complete recovered=%d resumed=%d finalized=%d",
        summary.recovered_jobs,
        summary.resumed_batches,
        summary.finalized_batches,
    )


# ---------------------------------------------------------------------------
# Job: Reconciliation sweep
# ---------------------------------------------------------------------------


def reconcile_open_scans(db: Session) -> dict[str, int]:
    """
    Reconcile every scan that still has CREATING or CREATED recommendations.

    Each scan is committed on its own so one failing scan does not hold back
    the others.
    """
    with transaction_scope(db):
        scan_ids = RecommendationRepository(db).scan_ids_with_status(
            (RecommendationStatus.CREATING, RecommendationStatus.CREATED)
        )

    totals = {"scans": len(scan_ids), "applied": 0, "errors": 0}
    for scan_id in scan_ids:
        with transaction_scope(db):
            result = LifecycleReconciler(db).reconcile_scan(scan_id)
        totals["applied"] += result.applied
        if result.error is not None:
            totals["errors"] += 1
    return totals


def run_reconciliation_sweep() -> None:
    logger.info("Scheduler: reconcile_sweep starting")
    with _session_scope() as db:
        try:
            totals = reconcile_open_scans(db)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Scheduler: reconcile_sweep failed: %s", exc)
            return

    logger.info(
        "Scheduler: reconcile_sweep complete scans=%d applied=%d errors=%d",
        totals["scans"],
        totals["applied"],
        totals["errors"],
    )


# ---------------------------------------------------------------------------
# Scheduler factory
# ---------------------------------------------------------------------------


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register all periodic jobs.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    The caller must call ``.start()`` and ``.shutdown(wait=True)`` at the
    appropriate lifecycle points. Disabled jobs are not registered.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    maintenance = get_queue_maintenance_settings()
    if maintenance.enabled:
        scheduler.add_job(
            run_queue_maintenance,
            trigger="interval",
            seconds=maintenance.interval_seconds,
            id="queue_maintenance",
            name="Tracking queue maintenance",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=maintenance.interval_seconds,
        )

    sweep = get_reconcile_sweep_settings()
    if sweep.enabled:
        scheduler.add_job(
            run_reconciliation_sweep,
            trigger="interval",
            seconds=sweep.interval_seconds,
            id="reconcile_sweep",
            name="Recommendation lifecycle reconciliation",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=sweep.interval_seconds,
        )

    return scheduler
