"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files
from db.models.tracking import TrackingDestination

_ALLOWED_APP_MODES = {"cloud"}


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _require_app_mode() -> str:
    """
    Read and validate APP_MODE from the environment.

    APP_MODE must be explicitly set to 'cloud'. Any other value, or the
    absence of the variable, raises RuntimeError.
    """

    _load_env_once()
    raw = os.getenv("APP_MODE")
    if raw is None:
        raise RuntimeError("APP_MODE must be explicitly set to 'cloud'.")
    mode = raw.strip().lower()
    if mode not in _ALLOWED_APP_MODES:
        raise RuntimeError(
            f"APP_MODE '{raw.strip()}' is not valid. "
            f"Allowed values: {sorted(_ALLOWED_APP_MODES)}."
        )
    return mode


@dataclass(frozen=True)
class AppSettings:
    """
    Top-level application mode settings.
    """

    mode: str


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached application settings.

    Raises RuntimeError if APP_MODE is missing or not set to 'cloud'.
    """

    return AppSettings(mode=_require_app_mode())


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class TrackingSettings:
    """
    Runtime settings for converting recommendations into trackings.
    """

    default_destination: str = TrackingDestination.BOTH
    job_max_attempts: int = 3
    insert_batch_size: int = 500


@dataclass(frozen=True)
class QueueMaintenanceSettings:
    """
    Periodic queue housekeeping settings.
    """

    enabled: bool = True
    interval_seconds: int = 60
    stuck_job_seconds: int = 60


@dataclass(frozen=True)
class ReconcileSweepSettings:
    """
    Periodic lifecycle reconciliation settings.
    """

    enabled: bool = True
    interval_seconds: int = 300


@lru_cache(maxsize=1)
def get_tracking_settings() -> TrackingSettings:
    """
    Return cached tracking conversion settings from environment variables.
    """

    destination = _get_str_env("TRACKING_DEFAULT_DESTINATION", TrackingDestination.BOTH).upper()
    if destination not in TrackingDestination.ALL:
        destination = TrackingDestination.BOTH

    return TrackingSettings(
        default_destination=destination,
        job_max_attempts=max(1, _get_int_env("TRACKING_JOB_MAX_ATTEMPTS", 3)),
        insert_batch_size=max(1, _get_int_env("TRACKING_INSERT_BATCH_SIZE", 500)),
    )


@lru_cache(maxsize=1)
def get_queue_maintenance_settings() -> QueueMaintenanceSettings:
    """
    Return cached queue housekeeping settings from environment variables.
    """

    return QueueMaintenanceSettings(
        enabled=_get_bool_env("QUEUE_MAINTENANCE_ENABLED", True),
        interval_seconds=max(5, _get_int_env("QUEUE_MAINTENANCE_INTERVAL_SECONDS", 60)),
        stuck_job_seconds=max(1, _get_int_env("QUEUE_STUCK_JOB_SECONDS", 60)),
    )


@lru_cache(maxsize=1)
def get_reconcile_sweep_settings() -> ReconcileSweepSettings:
    """
    Return cached reconciliation sweep settings from environment variables.
    """

    return ReconcileSweepSettings(
        enabled=_get_bool_env("RECONCILE_SWEEP_ENABLED", True),
        interval_seconds=max(10, _get_int_env("RECONCILE_SWEEP_INTERVAL_SECONDS", 300)),
    )
