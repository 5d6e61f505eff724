"""
readiness/page_importance.py

Page importance model. Scores each crawled page in [0, 1] from its page
type, the conversion signals found on it, the recommendations that point at
it, and how deep in the crawl it was found.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from db.models.tracking_recommendation import RecommendationSeverity


@dataclass(frozen=True)
class PageSignals:
    """Signals the crawler recorded for one page."""

    url: str
    page_type: str | None = None
    depth: int = 0
    has_form: bool = False
    has_cta: bool = False
    has_phone_link: bool = False
    has_email_link: bool = False


@dataclass(frozen=True)
class RecommendationSignal:
    """The two recommendation fields the scoring engine reads."""

    severity: str
    page_url: str | None = None


class PageImportanceModel:
    """Weighted page importance model.

    The base weight comes from the page type; element and recommendation
    bonuses are added on top, the sum is discounted by crawl depth and the
    result is clamped to [0, 1].
    """

    PAGE_TYPE_WEIGHTS: dict[str, float] = {
        "checkout": 1.0,
        "cart": 0.9,
        "pricing": 0.85,
        "contact": 0.8,
        "demo": 0.8,
        "signup": 0.8,
        "product": 0.7,
        "services": 0.6,
        "homepage": 0.5,
        "about": 0.3,
        "blog": 0.2,
        "faq": 0.2,
        "terms": 0.1,
        "other": 0.15,
    }
    DEFAULT_WEIGHT: float = 0.15

    FORM_BONUS: float = 0.2
    CTA_BONUS: float = 0.1
    PHONE_BONUS: float = 0.15
    EMAIL_BONUS: float = 0.1

    CRITICAL_RECOMMENDATION_BONUS: float = 0.15
    IMPORTANT_RECOMMENDATION_BONUS: float = 0.08

    DEPTH_PENALTY: float = 0.1

    def base_weight(self, page_type: str | None) -> float:
        if not page_type:
            return self.DEFAULT_WEIGHT
        return self.PAGE_TYPE_WEIGHTS.get(page_type, self.DEFAULT_WEIGHT)

    def compute(
        self,
        page: PageSignals,
        recommendations: Iterable[RecommendationSignal] = (),
    ) -> float:
        """Compute the importance score for a single page.

        Args:
            page: Signals recorded for the page.
            recommendations: Recommendations of the same scan. Only those
                whose page_url equals the page url contribute a bonus.

        Returns:
            A float in [0.0, 1.0].
        """
        score = self.base_weight(page.page_type)

        if page.has_form:
            score += self.FORM_BONUS
        if page.has_cta:
            score += self.CTA_BONUS
        if page.has_phone_link:
            score += self.PHONE_BONUS
        if page.has_email_link:
            score += self.EMAIL_BONUS

        for rec in recommendations:
            if rec.page_url != page.url:
                continue
            if rec.severity == RecommendationSeverity.CRITICAL:
                score += self.CRITICAL_RECOMMENDATION_BONUS
            elif rec.severity == RecommendationSeverity.IMPORTANT:
                score += self.IMPORTANT_RECOMMENDATION_BONUS

        score *= 1.0 - page.depth * self.DEPTH_PENALTY
        return max(0.0, min(1.0, score))

    def compute_all(
        self,
        pages: Iterable[PageSignals],
        recommendations: Iterable[RecommendationSignal],
    ) -> list[float]:
        """Score every page, grouping recommendations by page url once.

        Returns:
            One score per page, in input order.
        """
        by_url: dict[str, list[RecommendationSignal]] = {}
        for rec in recommendations:
            if rec.page_url:
                by_url.setdefault(rec.page_url, []).append(rec)

        return [self.compute(page, by_url.get(page.url, ())) for page in pages]
