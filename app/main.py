from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request

_POSITIVE_INT_VARS = (
    "TRACKING_JOB_MAX_ATTEMPTS",
    "TRACKING_INSERT_BATCH_SIZE",
    "QUEUE_MAINTENANCE_INTERVAL_SECONDS",
    "QUEUE_STUCK_JOB_SECONDS",
    "RECONCILE_SWEEP_INTERVAL_SECONDS",
)


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - No empty-string values are accepted.
    - SQLite and local database fallbacks are not permitted.
    - TRACKING_DEFAULT_DESTINATION, when set, must be GA4, GOOGLE_ADS or BOTH.
    - Interval, attempt and batch-size knobs, when set, must be positive integers.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- APP_MODE -------------------------------------------------------
    app_mode = os.getenv("APP_MODE", "").strip().lower()
    if not app_mode:
        errors.append(
            "APP_MODE is not set. It must be explicitly set to 'cloud'."
        )
    elif app_mode != "cloud":
        errors.append(
            f"APP_MODE='{app_mode}' is not valid. Allowed values: ['cloud']."
        )

    # --- Database URL ---------------------------------------------------
    database_url = os.getenv("DATABASE_URL", "").strip()
    cloud_database_url = os.getenv("CLOUD_DATABASE_URL", "").strip()
    if not database_url and not cloud_database_url:
        errors.append(
            "No database URL configured. Set DATABASE_URL or CLOUD_DATABASE_URL. "
            "SQLite and local database fallbacks are not permitted."
        )

    # --- Tracking destination -------------------------------------------
    destination = os.getenv("TRACKING_DEFAULT_DESTINATION")
    if destination is not None and destination.strip().upper() not in {"GA4", "GOOGLE_ADS", "BOTH"}:
        errors.append(
            f"TRACKING_DEFAULT_DESTINATION='{destination.strip()}' is not valid. "
            "Allowed values: ['BOTH', 'GA4', 'GOOGLE_ADS']."
        )

    # --- Numeric tuning knobs -----------------------------------------
    for name in _POSITIVE_INT_VARS:
        raw = os.getenv(name)
        if raw is None:
            continue
        if not raw.strip().isdigit() or int(raw.strip()) < 1:
            errors.append(f"{name}='{raw.strip()}' is not valid. Expected a positive integer.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text

    from db.session import SessionLocal

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
    except Exception as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Compare Base.metadata table names against the live DB schema.

    Every table registered on Base.metadata must exist in the database.
    If any are missing, log a critical error and abort startup so that
    the operator is forced to run migrations before serving traffic.

    Does NOT auto-migrate.
    """
    from sqlalchemy import inspect as sa_inspect

    import db.models  # noqa: F401  (registers all ORM models on Base.metadata)
    from db.base import Base
    from db.session import get_engine

    inspector = sa_inspect(get_engine())
    actual: set[str] = set(inspector.get_table_names())
    expected: set[str] = set(Base.metadata.tables.keys())
    missing = expected - actual

    if missing:
        log = logging.getLogger(__name__)
        log.critical(
            "Schema mismatch: %d table(s) defined in ORM metadata are absent from "
            "the database: %s. Run 'alembic upgrade head' and restart.",
            len(missing),
            ", ".join(sorted(missing)),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(missing)} table(s) missing from the database "
            f"({', '.join(sorted(missing))}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema, start the scheduler on boot; shut it down on exit."""
    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")

    from app.scheduler.jobs import build_scheduler

    scheduler = build_scheduler()
    scheduler.start()
    application.state.scheduler = scheduler
    logging.getLogger(__name__).info("Scheduler started with %d jobs", len(scheduler.get_jobs()))
    try:
        yield
    finally:
        scheduler.shutdown(wait=True)
        logging.getLogger(__name__).info("Scheduler shut down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Site Scan Tracking API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import site_scan_router, tracking_batch_router

    application.include_router(site_scan_router)
    application.include_router(tracking_batch_router)

    @application.get("/health")
    def healthcheck(request: Request) -> dict[str, object]:
        scheduler = getattr(request.app.state, "scheduler", None)
        jobs = sorted(job.id for job in scheduler.get_jobs()) if scheduler is not None else []
        return {"status": "ok", "scheduler_jobs": jobs}

    return application


app = create_app()
