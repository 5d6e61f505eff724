"""
lifecycle/completeness.py

Sync completeness rule for a tracking.

A tracking counts as fully synced only when every external resource its
destinations need exists:

    always          GTM GA4 tag id, GTM trigger id
    GOOGLE_ADS/BOTH Google Ads conversion label, GTM Ads conversion tag id
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from db.models.tracking import TrackingDestination


class SyncedTrackingLike(Protocol):
    destinations: list[str] | None
    gtm_tag_id: str | None
    gtm_trigger_id: str | None
    ads_conversion_label: str | None
    gtm_tag_id_ads: str | None


def requires_ads(destinations: Iterable[str] | None) -> bool:
    return any(d in TrackingDestination.REQUIRES_ADS for d in destinations or ())


def missing_sync_parts(tracking: SyncedTrackingLike) -> list[str]:
    """Return human-readable names of the external resources still missing."""
    missing: list[str] = []
    if not tracking.gtm_tag_id:
        missing.append("GTM GA4 tag")
    if not tracking.gtm_trigger_id:
        missing.append("GTM trigger")

    if requires_ads(tracking.destinations):
        if not tracking.ads_conversion_label:
            missing.append("Google Ads conversion action")
        if not tracking.gtm_tag_id_ads:
            missing.append("GTM Ads conversion tag")

    return missing


def is_fully_synced(tracking: SyncedTrackingLike) -> bool:
    return not missing_sync_parts(tracking)
