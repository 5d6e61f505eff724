"""
Schemas for scan recommendation, bulk-accept, finalize and batch endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field


class RecommendationResponse(BaseModel):
    id: UUID
    scan_id: UUID
    name: str
    description: str | None = None
    tracking_type: str
    severity: str
    severity_reason: str | None = None
    selector: str | None = None
    selector_confidence: float | None = None
    url_pattern: str | None = None
    page_url: str | None = None
    funnel_stage: str | None = None
    suggested_ga4_event_name: str | None = None
    suggested_destinations: list[str] | None = None
    suggested_config: dict[str, Any] | None = None
    status: str
    tracking_id: UUID | None = None
    created_at: datetime
    updated_at: datetime


class ReconciliationTransitionResponse(BaseModel):
    recommendation_id: UUID
    from_status: str
    to_status: str
    reason: str


class ReconciliationSummaryResponse(BaseModel):
    examined: int
    applied: int
    counts: dict[str, int] = Field(default_factory=dict)
    transitions: list[ReconciliationTransitionResponse] = Field(default_factory=list)
    error: str | None = None


class RecommendationListResponse(BaseModel):
    recommendations: list[RecommendationResponse] = Field(default_factory=list)
    reconciliation: ReconciliationSummaryResponse


class BulkCreateTrackingsRequest(BaseModel):
    recommendation_ids: list[UUID] = Field(min_length=1)
    destination: Literal["GA4", "GOOGLE_ADS", "BOTH"] | None = None


class SkippedRecommendationResponse(BaseModel):
    recommendation_id: UUID
    name: str | None = None
    reason: str
    message: str


class BulkCreateTrackingsResponse(BaseModel):
    batch_id: UUID
    queued: int
    total: int
    tracking_ids: list[UUID] = Field(default_factory=list)
    skipped: list[SkippedRecommendationResponse] = Field(default_factory=list)


class RecommendationCountsResponse(BaseModel):
    critical: int = 0
    important: int = 0
    recommended: int = 0
    optional: int = 0


class ScanFinalizeResponse(BaseModel):
    scan_id: UUID
    status: str
    tracking_readiness_score: int
    readiness_narrative: str
    recommendation_counts: RecommendationCountsResponse
    total_recommendations: int
    total_pages_scanned: int
    pages_scored: int


class QueueJobResponse(BaseModel):
    id: UUID
    tracking_id: UUID
    recommendation_id: UUID | None = None
    status: str
    step: str | None = None
    attempts: int
    max_attempts: int
    last_error: str | None = None
    error_code: str | None = None
    next_retry_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class BatchProgressResponse(BaseModel):
    batch_id: UUID
    scan_id: UUID
    customer_id: UUID
    status: str
    total_jobs: int
    completed: int
    failed: int
    paused_at: datetime | None = None
    resume_after: datetime | None = None
    pause_reason: str | None = None
    created_at: datetime
    jobs: list[QueueJobResponse] = Field(default_factory=list)
