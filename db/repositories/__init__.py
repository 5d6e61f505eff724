"""
Repository layer exports.
"""

from db.repositories.errors import (
    BatchNotFoundError,
    CustomerNotFoundError,
    ScanNotFoundError,
    SiteScanRepositoryError,
    TrackingPersistenceError,
)
from db.repositories.recommendation_repository import RecommendationRepository
from db.repositories.site_scan_repository import SiteScanRepository
from db.repositories.tracking_queue_repository import TrackingQueueRepository
from db.repositories.tracking_repository import TrackingRepository
from db.repositories.types import (
    PageSignalRow,
    QueueJobBulkCreate,
    RecommendationFilters,
    RecommendationSignalRow,
    TrackingBulkCreate,
)

__all__ = [
    "SiteScanRepository",
    "RecommendationRepository",
    "TrackingRepository",
    "TrackingQueueRepository",
    "TrackingBulkCreate",
    "QueueJobBulkCreate",
    "RecommendationFilters",
    "PageSignalRow",
    "RecommendationSignalRow",
    "SiteScanRepositoryError",
    "CustomerNotFoundError",
    "ScanNotFoundError",
    "BatchNotFoundError",
    "TrackingPersistenceError",
]
