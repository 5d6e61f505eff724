"""
readiness/scoring.py

Tracking readiness scoring engine.
Turns a finished scan's recommendations and pages into a 0-100 readiness
score, a one-sentence narrative and per-page importance scores. Pure: no
database or network access.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from db.models.tracking_recommendation import RecommendationSeverity
from readiness.page_importance import PageImportanceModel, PageSignals, RecommendationSignal


@dataclass(frozen=True)
class SeverityCounts:
    critical: int = 0
    important: int = 0
    recommended: int = 0
    optional: int = 0

    @classmethod
    def from_severities(cls, severities: Iterable[str]) -> "SeverityCounts":
        """Count severities; values outside the four known buckets are ignored."""
        tally = {severity: 0 for severity in RecommendationSeverity.ORDERED}
        for severity in severities:
            if severity in tally:
                tally[severity] += 1
        return cls(
            critical=tally[RecommendationSeverity.CRITICAL],
            important=tally[RecommendationSeverity.IMPORTANT],
            recommended=tally[RecommendationSeverity.RECOMMENDED],
            optional=tally[RecommendationSeverity.OPTIONAL],
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "critical": self.critical,
            "important": self.important,
            "recommended": self.recommended,
            "optional": self.optional,
        }


class ReadinessScoreModel:
    """Severity-bucketed readiness model with diminishing returns.

    Each severity bucket earns a fixed number of points per recommendation
    up to its own cap; the capped bucket sum is capped again at 100.
    """

    # (points per recommendation, bucket cap)
    CRITICAL_POINTS: tuple[int, int] = (10, 40)
    IMPORTANT_POINTS: tuple[int, int] = (6, 30)
    RECOMMENDED_POINTS: tuple[int, int] = (4, 20)
    OPTIONAL_POINTS: tuple[int, int] = (2, 10)

    MAX_SCORE: int = 100

    def compute(self, counts: SeverityCounts) -> int:
        """Compute the readiness score for a severity breakdown.

        Args:
            counts: Per-severity recommendation counts.

        Returns:
            An int in [0, 100].
        """
        buckets = (
            (counts.critical, self.CRITICAL_POINTS),
            (counts.important, self.IMPORTANT_POINTS),
            (counts.recommended, self.RECOMMENDED_POINTS),
            (counts.optional, self.OPTIONAL_POINTS),
        )
        total = sum(min(count * points, cap) for count, (points, cap) in buckets)
        return min(self.MAX_SCORE, total)


# ---------------------------------------------------------------------------
# Narrative: thresholds are inclusive lower bounds
# ---------------------------------------------------------------------------

_ASSESSMENTS: tuple[tuple[int, str], ...] = (
    (80, "Excellent tracking potential."),
    (60, "Good tracking potential with room for improvement."),
    (40, "Moderate tracking potential. Consider adding more conversion points."),
)
_BASIC_ASSESSMENT = "Basic tracking setup. The site would benefit from more conversion-focused elements."


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'s' if count > 1 else ''}"


def assess(score: int) -> str:
    for threshold, sentence in _ASSESSMENTS:
        if score >= threshold:
            return sentence
    return _BASIC_ASSESSMENT


def build_narrative(counts: SeverityCounts, total: int, score: int) -> str:
    """Build the readiness narrative sentence.

    Example:
        "Found 2 critical conversions, 1 important micro-conversion,
        5 total tracking opportunities. Basic tracking setup. ..."
    """
    parts: list[str] = []
    if counts.critical > 0:
        parts.append(_plural(counts.critical, "critical conversion"))
    if counts.important > 0:
        parts.append(_plural(counts.important, "important micro-conversion"))
    parts.append(f"{total} total tracking opportunities")
    return f"Found {', '.join(parts)}. {assess(score)}"


# ---------------------------------------------------------------------------
# Scan scoring
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScanScoreResult:
    readiness_score: int
    narrative: str
    counts: SeverityCounts
    total: int
    page_scores: list[float] = field(default_factory=list)


def score_scan(
    pages: Sequence[PageSignals],
    recommendations: Sequence[RecommendationSignal],
    *,
    readiness_model: ReadinessScoreModel | None = None,
    importance_model: PageImportanceModel | None = None,
) -> ScanScoreResult:
    """Score a finished scan.

    Args:
        pages: All pages of the scan.
        recommendations: All recommendations of the scan.

    Returns:
        ScanScoreResult whose page_scores line up with ``pages``.
    """
    readiness_model = readiness_model or ReadinessScoreModel()
    importance_model = importance_model or PageImportanceModel()

    counts = SeverityCounts.from_severities(rec.severity for rec in recommendations)
    score = readiness_model.compute(counts)
    total = len(recommendations)

    return ScanScoreResult(
        readiness_score=score,
        narrative=build_narrative(counts, total, score),
        counts=counts,
        total=total,
        page_scores=importance_model.compute_all(pages, recommendations),
    )
