"""
Site scan recommendation, bulk-accept and finalize endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.dependencies import RequestContext, get_request_context
from app.schemas.site_scan import (
    BulkCreateTrackingsRequest,
    BulkCreateTrackingsResponse,
    ReconciliationSummaryResponse,
    ReconciliationTransitionResponse,
    RecommendationCountsResponse,
    RecommendationListResponse,
    RecommendationResponse,
    ScanFinalizeResponse,
    SkippedRecommendationResponse,
)
from app.services.recommendation_service import RecommendationService, get_recommendation_service
from app.services.tracking_batch_service import (
    ExternalAccountNotConnectedError,
    InvalidDestinationError,
    NoActionableRecommendationsError,
    NoValidRecommendationsError,
    SkippedRecommendation,
    TrackingBatchService,
    get_tracking_batch_service,
)
from db.models.tracking_recommendation import TrackingRecommendation
from db.repositories.errors import CustomerNotFoundError, ScanNotFoundError
from db.session import get_db
from lifecycle.reconciler import ReconciliationResult
from readiness.orchestrator import ScanFinalizeOrchestrator, ScanStateConflictError

router = APIRouter(prefix="/customers/{customer_id}/scans/{scan_id}", tags=["site-scans"])


@router.get("/recommendations", response_model=RecommendationListResponse)
def list_recommendations(
    customer_id: UUID,
    scan_id: UUID,
    severity: list[str] | None = Query(default=None, description="Filter by severity, repeatable"),
    status_filter: list[str] | None = Query(default=None, alias="status", description="Filter by status, repeatable"),
    tracking_type: list[str] | None = Query(default=None, alias="type", description="Filter by tracking type, repeatable"),
    funnel_stage: str | None = Query(default=None, description="Filter by funnel stage"),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    service: RecommendationService = Depends(get_recommendation_service),
) -> RecommendationListResponse:
    try:
        listing = service.list_recommendations(
            db=db,
            tenant_id=context.tenant_id,
            customer_id=customer_id,
            scan_id=scan_id,
            severities=_split_values(severity),
            statuses=_split_values(status_filter),
            tracking_types=_split_values(tracking_type),
            funnel_stage=funnel_stage,
        )
    except ScanNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return RecommendationListResponse(
        recommendations=[_to_recommendation_response(rec) for rec in listing.recommendations],
        reconciliation=_to_reconciliation_response(listing.reconciliation),
    )


@router.post(
    "/recommendations/bulk-create-trackings",
    status_code=status.HTTP_201_CREATED,
    response_model=BulkCreateTrackingsResponse,
)
def bulk_create_trackings(
    customer_id: UUID,
    scan_id: UUID,
    payload: BulkCreateTrackingsRequest,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    service: TrackingBatchService = Depends(get_tracking_batch_service),
) -> BulkCreateTrackingsResponse:
    try:
        result = service.bulk_create_trackings(
            db=db,
            tenant_id=context.tenant_id,
            customer_id=customer_id,
            scan_id=scan_id,
            recommendation_ids=payload.recommendation_ids,
            destination=payload.destination,
            user_id=context.user_id,
        )
    except (CustomerNotFoundError, ScanNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (ExternalAccountNotConnectedError, InvalidDestinationError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except (NoActionableRecommendationsError, NoValidRecommendationsError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": str(exc),
                "skipped": [_to_skipped_response(item).model_dump(mode="json") for item in exc.skipped],
            },
        ) from exc

    return BulkCreateTrackingsResponse(
        batch_id=result.batch_id,
        queued=result.queued,
        total=result.total,
        tracking_ids=result.tracking_ids,
        skipped=[_to_skipped_response(item) for item in result.skipped],
    )


@router.post("/finalize", response_model=ScanFinalizeResponse)
def finalize_scan(
    customer_id: UUID,
    scan_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> ScanFinalizeResponse:
    try:
        result = ScanFinalizeOrchestrator(db).finalize(
            tenant_id=context.tenant_id,
            customer_id=customer_id,
            scan_id=scan_id,
        )
    except ScanNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ScanStateConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return ScanFinalizeResponse(
        scan_id=result.scan.id,
        status=result.scan.status,
        tracking_readiness_score=result.score.readiness_score,
        readiness_narrative=result.score.narrative,
        recommendation_counts=RecommendationCountsResponse(**result.score.counts.as_dict()),
        total_recommendations=result.score.total,
        total_pages_scanned=result.scan.total_pages_scanned or 0,
        pages_scored=result.pages_scored,
    )


def _split_values(values: list[str] | None) -> list[str]:
    """Accept both repeated params and comma-separated values."""
    if not values:
        return []
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def _to_recommendation_response(rec: TrackingRecommendation) -> RecommendationResponse:
    return RecommendationResponse(
        id=rec.id,
        scan_id=rec.scan_id,
        name=rec.name,
        description=rec.description,
        tracking_type=rec.tracking_type,
        severity=rec.severity,
        severity_reason=rec.severity_reason,
        selector=rec.selector,
        selector_confidence=rec.selector_confidence,
        url_pattern=rec.url_pattern,
        page_url=rec.page_url,
        funnel_stage=rec.funnel_stage,
        suggested_ga4_event_name=rec.suggested_ga4_event_name,
        suggested_destinations=rec.suggested_destinations,
        suggested_config=rec.suggested_config,
        status=rec.status,
        tracking_id=rec.tracking_id,
        created_at=rec.created_at,
        updated_at=rec.updated_at,
    )


def _to_reconciliation_response(result: ReconciliationResult) -> ReconciliationSummaryResponse:
    return ReconciliationSummaryResponse(
        examined=result.examined,
        applied=result.applied,
        counts=result.counts,
        transitions=[
            ReconciliationTransitionResponse(
                recommendation_id=t.recommendation_id,
                from_status=t.from_status,
                to_status=t.to_status,
                reason=t.reason,
            )
            for t in result.transitions
        ],
        error=result.error,
    )


def _to_skipped_response(item: SkippedRecommendation) -> SkippedRecommendationResponse:
    return SkippedRecommendationResponse(
        recommendation_id=item.recommendation_id,
        name=item.name,
        reason=item.reason,
        message=item.message,
    )
