"""
Tracking batch progress endpoint.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.dependencies import RequestContext, get_request_context
from app.schemas.site_scan import BatchProgressResponse, QueueJobResponse
from app.services.tracking_batch_service import TrackingBatchService, get_tracking_batch_service
from db.repositories.errors import BatchNotFoundError
from db.session import get_db

router = APIRouter(tags=["tracking-batches"])


@router.get("/batches/{batch_id}", response_model=BatchProgressResponse)
def get_batch_progress(
    batch_id: UUID,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
    service: TrackingBatchService = Depends(get_tracking_batch_service),
) -> BatchProgressResponse:
    try:
        progress = service.get_batch_progress(db=db, tenant_id=context.tenant_id, batch_id=batch_id)
    except BatchNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    batch = progress.batch
    return BatchProgressResponse(
        batch_id=batch.id,
        scan_id=batch.scan_id,
        customer_id=batch.customer_id,
        status=batch.status,
        total_jobs=batch.total_jobs,
        completed=batch.completed,
        failed=batch.failed,
        paused_at=batch.paused_at,
        resume_after=batch.resume_after,
        pause_reason=batch.pause_reason,
        created_at=batch.created_at,
        jobs=[
            QueueJobResponse(
                id=job.id,
                tracking_id=job.tracking_id,
                recommendation_id=job.recommendation_id,
                status=job.status,
                step=job.step,
                attempts=job.attempts,
                max_attempts=job.max_attempts,
                last_error=job.last_error,
                error_code=job.error_code,
                next_retry_at=job.next_retry_at,
                started_at=job.started_at,
                completed_at=job.completed_at,
            )
            for job in progress.jobs
        ],
    )
