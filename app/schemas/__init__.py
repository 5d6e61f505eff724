"""
app/schemas package marker.
"""

from app.schemas.site_scan import (
    BatchProgressResponse,
    BulkCreateTrackingsRequest,
    BulkCreateTrackingsResponse,
    QueueJobResponse,
    ReconciliationSummaryResponse,
    ReconciliationTransitionResponse,
    RecommendationCountsResponse,
    RecommendationListResponse,
    RecommendationResponse,
    ScanFinalizeResponse,
    SkippedRecommendationResponse,
)

__all__ = [
    "BatchProgressResponse",
    "BulkCreateTrackingsRequest",
    "BulkCreateTrackingsResponse",
    "QueueJobResponse",
    "ReconciliationSummaryResponse",
    "ReconciliationTransitionResponse",
    "RecommendationCountsResponse",
    "RecommendationListResponse",
    "RecommendationResponse",
    "ScanFinalizeResponse",
    "SkippedRecommendationResponse",
]
