"""
tests/test_tracking_completeness.py

Pytest unit tests for the sync completeness rule and the tracking-type catalogue.
"""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from lifecycle.completeness import is_fully_synced, missing_sync_parts
from lifecycle.tracking_types import (
    TRACKING_TYPES,
    default_ga4_event_name,
    destinations_for_choice,
    map_tracking_type,
)


@dataclass
class _Tracking:
    destinations: list[str] | None = None
    gtm_tag_id: str | None = None
    gtm_trigger_id: str | None = None
    ads_conversion_label: str | None = None
    gtm_tag_id_ads: str | None = None


# ---------------------------------------------------------------------------
# Completeness
# ---------------------------------------------------------------------------


class TestCompleteness:
    def test_ga4_only_needs_tag_and_trigger(self) -> None:
        tracking = _Tracking(destinations=["GA4"], gtm_tag_id="t", gtm_trigger_id="g")
        assert missing_sync_parts(tracking) == []
        assert is_fully_synced(tracking)

    def test_ga4_missing_trigger(self) -> None:
        tracking = _Tracking(destinations=["GA4"], gtm_tag_id="t")
        assert missing_sync_parts(tracking) == ["GTM trigger"]
        assert not is_fully_synced(tracking)

    @pytest.mark.parametrize("destinations", [["GOOGLE_ADS"], ["BOTH"], ["GA4", "GOOGLE_ADS"]])
    def test_ads_destinations_need_ads_parts(self, destinations: list[str]) -> None:
        tracking = _Tracking(destinations=destinations, gtm_tag_id="t", gtm_trigger_id="g")
        assert missing_sync_parts(tracking) == ["Google Ads conversion action", "GTM Ads conversion tag"]

    def test_ads_destination_complete(self) -> None:
        tracking = _Tracking(
            destinations=["GA4", "GOOGLE_ADS"],
            gtm_tag_id="t",
            gtm_trigger_id="g",
            ads_conversion_label="l",
            gtm_tag_id_ads="a",
        )
        assert is_fully_synced(tracking)

    def test_nothing_synced(self) -> None:
        assert missing_sync_parts(_Tracking(destinations=None)) == ["GTM GA4 tag", "GTM trigger"]

    def test_empty_strings_count_as_missing(self) -> None:
        tracking = _Tracking(destinations=["GA4"], gtm_tag_id="", gtm_trigger_id="g")
        assert missing_sync_parts(tracking) == ["GTM GA4 tag"]


# ---------------------------------------------------------------------------
# Tracking types
# ---------------------------------------------------------------------------


class TestTrackingTypes:
    def test_catalogue_size(self) -> None:
        assert len(TRACKING_TYPES) == 52

    @pytest.mark.parametrize(
        ("tracking_type", "event_name"),
        [
            ("BUTTON_CLICK", "button_click"),
            ("CHECKOUT_START", "begin_checkout"),
            ("PRODUCT_VIEW", "view_item"),
            ("SIGNUP", "sign_up"),
            ("SITE_SEARCH", "search"),
            ("NOT_A_TYPE", "custom_event"),
        ],
    )
    def test_default_event_names(self, tracking_type: str, event_name: str) -> None:
        assert default_ga4_event_name(tracking_type) == event_name

    def test_map_tracking_type(self) -> None:
        assert map_tracking_type("FORM_SUBMIT") == "FORM_SUBMIT"
        assert map_tracking_type("form_submit") is None
        assert map_tracking_type("HOLOGRAM") is None
        assert map_tracking_type(None) is None

    def test_destination_choices(self) -> None:
        assert destinations_for_choice("GA4") == ["GA4"]
        assert destinations_for_choice("GOOGLE_ADS") == ["GOOGLE_ADS"]
        assert destinations_for_choice("BOTH") == ["GA4", "GOOGLE_ADS"]
        with pytest.raises(ValueError):
            destinations_for_choice("FACEBOOK")
