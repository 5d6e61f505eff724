"""
app/services package marker.
"""

from app.services.queue_maintenance_service import (
    QueueMaintenanceService,
    QueueMaintenanceSummary,
    get_queue_maintenance_service,
)
from app.services.recommendation_service import (
    RecommendationListing,
    RecommendationService,
    get_recommendation_service,
)
from app.services.tracking_batch_service import (
    BatchProgress,
    BulkCreateResult,
    ExternalAccountNotConnectedError,
    InvalidDestinationError,
    NoActionableRecommendationsError,
    NoValidRecommendationsError,
    SkippedRecommendation,
    TrackingBatchError,
    TrackingBatchService,
    get_tracking_batch_service,
)

__all__ = [
    "QueueMaintenanceService",
    "QueueMaintenanceSummary",
    "get_queue_maintenance_service",
    "RecommendationListing",
    "RecommendationService",
    "get_recommendation_service",
    "BatchProgress",
    "BulkCreateResult",
    "SkippedRecommendation",
    "TrackingBatchError",
    "ExternalAccountNotConnectedError",
    "InvalidDestinationError",
    "NoActionableRecommendationsError",
    "NoValidRecommendationsError",
    "TrackingBatchService",
    "get_tracking_batch_service",
]
