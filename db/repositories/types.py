"""
Typed DTOs used by repository bulk-write and query flows.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TrackingBulkCreate:
    """
    Normalized tracking record used for set-oriented inserts.

    tracking_id is generated client-side so queue jobs and the recommendation
    link can be built before the INSERT runs.
    """

    recommendation_id: uuid.UUID
    customer_id: uuid.UUID
    tenant_id: uuid.UUID
    name: str
    type: str
    destinations: list[str]
    ga4_event_name: str
    status: str
    description: str | None = None
    selector: str | None = None
    url_pattern: str | None = None
    selector_config: dict[str, Any] | None = None
    config: dict[str, Any] | None = None
    crawl_metadata: dict[str, Any] | None = None
    selector_confidence: float | None = None
    created_by: uuid.UUID | None = None
    tracking_id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class QueueJobBulkCreate:
    """
    One queue job row for the outbound sync worker.
    """

    batch_id: uuid.UUID
    tracking_id: uuid.UUID
    recommendation_id: uuid.UUID | None
    status: str
    max_attempts: int
    priority: int = 0
    job_id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class RecommendationFilters:
    """
    Optional filters for listing a scan's recommendations.
    Empty sequences mean "no filter".
    """

    severities: Sequence[str] = ()
    statuses: Sequence[str] = ()
    tracking_types: Sequence[str] = ()
    funnel_stage: str | None = None


@dataclass(frozen=True)
class PageSignalRow:
    """Read-only projection of a scan page used for importance scoring."""

    page_id: uuid.UUID
    url: str
    page_type: str | None
    depth: int
    has_form: bool
    has_cta: bool
    has_phone_link: bool
    has_email_link: bool


@dataclass(frozen=True)
class RecommendationSignalRow:
    """Read-only projection of a recommendation used for readiness scoring."""

    severity: str
    page_url: str | None
