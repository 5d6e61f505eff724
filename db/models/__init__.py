"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.customer import Customer
from db.models.scan_page import ScanPage
from db.models.site_scan import SiteScan, SiteScanStatus
from db.models.tracking import Tracking, TrackingDestination, TrackingStatus
from db.models.tracking_batch import TrackingBatch, TrackingBatchStatus
from db.models.tracking_queue_job import QueueJobStatus, TrackingQueueJob
from db.models.tracking_recommendation import (
    RecommendationSeverity,
    RecommendationStatus,
    TrackingRecommendation,
)

__all__ = [
    "Customer",
    "SiteScan",
    "SiteScanStatus",
    "ScanPage",
    "TrackingRecommendation",
    "RecommendationSeverity",
    "RecommendationStatus",
    "Tracking",
    "TrackingDestination",
    "TrackingStatus",
    "TrackingBatch",
    "TrackingBatchStatus",
    "TrackingQueueJob",
    "QueueJobStatus",
]
