"""
lifecycle/tracking_types.py

Catalogue of tracking types a recommendation can be converted into, and the
GA4 event name each type falls back to when the crawler suggested none.
"""

from __future__ import annotations

from db.models.tracking import TrackingDestination

_FALLBACK_GA4_EVENT_NAME = "custom_event"

DEFAULT_GA4_EVENT_NAMES: dict[str, str] = {
    # Clicks and navigation
    "BUTTON_CLICK": "button_click",
    "LINK_CLICK": "link_click",
    "PAGE_VIEW": "page_view",
    "OUTBOUND_CLICK": "outbound_click",
    "PHONE_CALL_CLICK": "phone_call_click",
    "EMAIL_CLICK": "email_click",
    "SOCIAL_CLICK": "social_click",
    "SOCIAL_SHARE": "share",
    # Forms and lead capture
    "FORM_SUBMIT": "form_submit",
    "FORM_START": "form_start",
    "FORM_ABANDON": "form_abandon",
    "FORM_FIELD_INTERACTION": "form_field_interaction",
    "DEMO_REQUEST": "request_demo",
    "SIGNUP": "sign_up",
    "NEWSLETTER_SIGNUP": "newsletter_signup",
    # Commerce
    "ADD_TO_CART": "add_to_cart",
    "REMOVE_FROM_CART": "remove_from_cart",
    "ADD_TO_WISHLIST": "add_to_wishlist",
    "VIEW_CART": "view_cart",
    "CHECKOUT_START": "begin_checkout",
    "CHECKOUT_STEP": "checkout_progress",
    "PURCHASE": "purchase",
    "PRODUCT_VIEW": "view_item",
    "CART_ABANDONMENT": "cart_abandonment",
    "PRODUCT_IMAGE_INTERACTION": "product_image_interaction",
    "PRICE_COMPARISON": "price_comparison",
    "REVIEW_INTERACTION": "review_interaction",
    # Downloads and media
    "DOWNLOAD": "file_download",
    "PDF_DOWNLOAD": "pdf_download",
    "FILE_DOWNLOAD": "file_download",
    "VIDEO_PLAY": "video_start",
    "VIDEO_COMPLETE": "video_complete",
    # Engagement signals
    "SCROLL_DEPTH": "scroll",
    "TIME_ON_PAGE": "time_on_page",
    "ELEMENT_VISIBILITY": "element_visible",
    "SITE_SEARCH": "search",
    "FILTER_USE": "filter_use",
    "TAB_SWITCH": "tab_switch",
    "ACCORDION_EXPAND": "accordion_expand",
    "MODAL_OPEN": "modal_open",
    "RAGE_CLICK": "rage_click",
    "DEAD_CLICK": "dead_click",
    "EXIT_INTENT": "exit_intent",
    "PAGE_ENGAGEMENT": "engagement_score",
    "ERROR_PAGE_VIEW": "error_page_view",
    "RETURN_VISITOR": "return_visitor",
    "CONTENT_READ_THROUGH": "content_read_through",
    "TAB_VISIBILITY": "tab_visibility",
    "SESSION_DURATION": "session_duration",
    "TEXT_COPY": "text_copy",
    "PAGE_PRINT": "page_print",
    "CUSTOM_EVENT": "custom_event",
}

TRACKING_TYPES: frozenset[str] = frozenset(DEFAULT_GA4_EVENT_NAMES)

_DESTINATIONS_BY_CHOICE: dict[str, tuple[str, ...]] = {
    TrackingDestination.GA4: (TrackingDestination.GA4,),
    TrackingDestination.GOOGLE_ADS: (TrackingDestination.GOOGLE_ADS,),
    TrackingDestination.BOTH: (TrackingDestination.GA4, TrackingDestination.GOOGLE_ADS),
}


def map_tracking_type(recommendation_type: str | None) -> str | None:
    """Return the tracking type for a recommendation type, or None if unknown."""
    if recommendation_type and recommendation_type in TRACKING_TYPES:
        return recommendation_type
    return None


def default_ga4_event_name(tracking_type: str) -> str:
    return DEFAULT_GA4_EVENT_NAMES.get(tracking_type, _FALLBACK_GA4_EVENT_NAME)


def destinations_for_choice(choice: str) -> list[str]:
    """
    Expand the operator's destination choice into the stored destination list.

    Raises ValueError for anything other than GA4, GOOGLE_ADS or BOTH.
    """
    try:
        return list(_DESTINATIONS_BY_CHOICE[choice])
    except KeyError:
        raise ValueError(f"Unsupported destination: {choice!r}") from None
