"""
lifecycle/reconciler.py

Recommendation lifecycle reconciler.

Re-derives each CREATED / CREATING recommendation's status from its linked
tracking and the tracking's most recent queue job, then writes the
corrections back with one guarded UPDATE per (observed, target) status pair.

Decision table
--------------
CREATED (pass 1)
  no tracking ref / tracking gone         -> REPAIR
  tracking FAILED or PENDING              -> REPAIR
  tracking ACTIVE but missing sync parts  -> REPAIR
  anything else                           -> unchanged

CREATING (pass 2)
  no tracking ref / tracking gone         -> REPAIR
  tracking FAILED                         -> FAILED
  tracking ACTIVE and fully synced        -> CREATED
  tracking ACTIVE but missing sync parts  -> REPAIR
  tracking in progress, then by latest job:
    no job                                -> REPAIR
    job FAILED                            -> FAILED
    job COMPLETED                         -> REPAIR
    batch COMPLETED / CANCELLED           -> REPAIR
    otherwise                             -> unchanged
  any other tracking status               -> REPAIR

Rows are only ever moved away from the status that was observed when the
decision was made, so a concurrent bulk-accept is never overwritten.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from db.models.tracking import Tracking, TrackingStatus
from db.models.tracking_batch import TrackingBatchStatus
from db.models.tracking_queue_job import QueueJobStatus, TrackingQueueJob
from db.models.tracking_recommendation import RecommendationStatus, TrackingRecommendation
from db.repositories.recommendation_repository import RecommendationRepository
from db.repositories.tracking_queue_repository import TrackingQueueRepository
from db.repositories.tracking_repository import TrackingRepository
from lifecycle.completeness import missing_sync_parts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    to_status: str
    reason: str


@dataclass(frozen=True)
class Transition:
    recommendation_id: uuid.UUID
    from_status: str
    to_status: str
    reason: str


@dataclass
class ReconciliationResult:
    scan_id: uuid.UUID
    examined: int = 0
    transitions: list[Transition] = field(default_factory=list)
    applied: int = 0
    error: str | None = None

    @property
    def counts(self) -> dict[str, int]:
        """Planned transitions per target status."""
        return dict(Counter(t.to_status for t in self.transitions))


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


def decide_created(tracking: Tracking | None) -> Decision | None:
    """Decide the next status for a CREATED recommendation."""
    if tracking is None:
        return Decision(RecommendationStatus.REPAIR, "Linked tracking no longer exists")

    if tracking.status == TrackingStatus.FAILED:
        return Decision(RecommendationStatus.REPAIR, "Linked tracking failed")
    if tracking.status == TrackingStatus.PENDING:
        return Decision(RecommendationStatus.REPAIR, "Linked tracking fell back to pending")
    if tracking.status == TrackingStatus.ACTIVE:
        missing = missing_sync_parts(tracking)
        if missing:
            return Decision(RecommendationStatus.REPAIR, f"Missing {', '.join(missing)}")
    return None


def decide_creating(
    tracking: Tracking | None,
    latest_job: TrackingQueueJob | None,
    batch_status: str | None,
) -> Decision | None:
    """Decide the next status for a CREATING recommendation."""
    if tracking is None:
        return Decision(RecommendationStatus.REPAIR, "Linked tracking no longer exists")

    if tracking.status == TrackingStatus.FAILED:
        return Decision(
            RecommendationStatus.FAILED,
            tracking.last_error or "Tracking sync failed",
        )

    if tracking.status == TrackingStatus.ACTIVE:
        missing = missing_sync_parts(tracking)
        if missing:
            return Decision(RecommendationStatus.REPAIR, f"Missing {', '.join(missing)}")
        return Decision(RecommendationStatus.CREATED, "Tracking fully synced")

    if tracking.status not in TrackingStatus.IN_PROGRESS:
        return Decision(
            RecommendationStatus.REPAIR,
            f"Unexpected tracking status {tracking.status}",
        )

    if latest_job is None:
        return Decision(RecommendationStatus.REPAIR, "No queue job for tracking")
    if latest_job.status == QueueJobStatus.FAILED:
        return Decision(
            RecommendationStatus.FAILED,
            latest_job.last_error or "Queue job failed",
        )
    if latest_job.status == QueueJobStatus.COMPLETED:
        return Decision(
            RecommendationStatus.REPAIR,
            "Queue job completed but tracking is not active",
        )
    if batch_status in TrackingBatchStatus.TERMINAL:
        return Decision(
            RecommendationStatus.REPAIR,
            f"Batch {batch_status.lower()} before job finished",
        )
    return None


# ---------------------------------------------------------------------------
# Reconciler
# ---------------------------------------------------------------------------


class LifecycleReconciler:
    """
    Reconciles one scan's recommendations against trackings and queue jobs.

    Runs inside a SAVEPOINT on the caller's session; any failure is logged,
    the savepoint is rolled back and an empty result carrying the error is
    returned.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._recommendations = RecommendationRepository(session)
        self._trackings = TrackingRepository(session)
        self._queue = TrackingQueueRepository(session)

    def reconcile_scan(self, scan_id: uuid.UUID) -> ReconciliationResult:
        try:
            with self._session.begin_nested():
                result = self._reconcile(scan_id)
        except Exception as exc:
            logger.exception("Reconciliation failed scan_id=%s", scan_id)
            return ReconciliationResult(scan_id=scan_id, error=f"{type(exc).__name__}: {exc}")

        if result.transitions:
            logger.info(
                "Reconciled scan_id=%s examined=%d planned=%d applied=%d counts=%s",
                scan_id,
                result.examined,
                len(result.transitions),
                result.applied,
                result.counts,
            )
        return result

    def _reconcile(self, scan_id: uuid.UUID) -> ReconciliationResult:
        recs = self._recommendations.list_by_status(
            scan_id,
            (RecommendationStatus.CREATED, RecommendationStatus.CREATING),
        )
        result = ReconciliationResult(scan_id=scan_id, examined=len(recs))
        if not recs:
            return result

        trackings = self._trackings.get_many({r.tracking_id for r in recs if r.tracking_id})

        creating_tracking_ids = {
            rec.tracking_id
            for rec in recs
            if rec.status == RecommendationStatus.CREATING
            and rec.tracking_id in trackings
            and trackings[rec.tracking_id].status in TrackingStatus.IN_PROGRESS
        }
        latest_jobs = self._queue.latest_jobs_for_trackings(creating_tracking_ids)
        batch_statuses = self._queue.batch_statuses({job.batch_id for job in latest_jobs.values()})

        for rec in recs:
            decision = self._decide(rec, trackings, latest_jobs, batch_statuses)
            if decision is None or decision.to_status == rec.status:
                continue
            result.transitions.append(
                Transition(
                    recommendation_id=rec.id,
                    from_status=rec.status,
                    to_status=decision.to_status,
                    reason=decision.reason,
                )
            )

        result.applied = self._apply(result.transitions)
        return result

    def _decide(
        self,
        rec: TrackingRecommendation,
        trackings: dict[uuid.UUID, Tracking],
        latest_jobs: dict[uuid.UUID, TrackingQueueJob],
        batch_statuses: dict[uuid.UUID, str],
    ) -> Decision | None:
        if rec.tracking_id is None:
            return Decision(RecommendationStatus.REPAIR, "No linked tracking")

        tracking = trackings.get(rec.tracking_id)
        if rec.status == RecommendationStatus.CREATED:
            return decide_created(tracking)

        job = latest_jobs.get(rec.tracking_id)
        batch_status = batch_statuses.get(job.batch_id) if job is not None else None
        return decide_creating(tracking, job, batch_status)

    def _apply(self, transitions: list[Transition]) -> int:
        grouped: dict[tuple[str, str], list[uuid.UUID]] = {}
        for transition in transitions:
            key = (transition.from_status, transition.to_status)
            grouped.setdefault(key, []).append(transition.recommendation_id)

        applied = 0
        for (from_status, to_status), ids in grouped.items():
            moved = self._recommendations.transition_status(
                ids,
                from_status=from_status,
                to_status=to_status,
                clear_tracking=to_status == RecommendationStatus.REPAIR,
            )
            if moved != len(ids):
                logger.info(
                    "Guarded update skipped rows changed concurrently from=%s to=%s expected=%d moved=%d",
                    from_status,
                    to_status,
                    len(ids),
                    moved,
                )
            applied += moved
        return applied
