"""
Confidence Scorer - turns an evidence list into a 0-100 confidence.

score = clamp(BASELINE + sum(weights), 0, 100)

Addition is commutative, so the score does not depend on evidence order,
and adding positive evidence can never lower it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from specgap.analysis.domain.models import EVIDENCE_WEIGHTS, Evidence, EvidenceKind

BASELINE_CONFIDENCE = 50
MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 100

# Lower bounds, highest first.
CONFIDENCE_LEVELS: list[tuple[int, str]] = [
    (90, "very-high"),
    (70, "high"),
    (50, "medium"),
    (30, "low"),
]

# Weight magnitude above which evidence is called out in explanations.
STRONG_EVIDENCE_WEIGHT = 30


@dataclass(frozen=True)
class ConfidenceBreakdown:
    baseline: int
    evidence_total: int
    final_score: int
    level: str
    reasoning: str


def clamp(score: int) -> int:
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score))


class ConfidenceScorer:
    """Stateless evidence scorer."""

    def calculate_score(self, evidence: Iterable[Evidence]) -> int:
        return clamp(BASELINE_CONFIDENCE + sum(item.weight for item in evidence))

    def level(self, score: int) -> str:
        for lower_bound, name in CONFIDENCE_LEVELS:
            if score >= lower_bound:
                return name
        return "very-low"

    def explain(self, evidence: Iterable[Evidence]) -> ConfidenceBreakdown:
        """Score with the reasoning behind it."""
        items = list(evidence)
        total = sum(item.weight for item in items)
        score = clamp(BASELINE_CONFIDENCE + total)

        reasons: list[str] = []
        strong_positive = [item.description for item in items if item.weight > STRONG_EVIDENCE_WEIGHT]
        strong_negative = [item.description for item in items if item.weight < -STRONG_EVIDENCE_WEIGHT]
        if strong_positive:
            reasons.append(f"Strong evidence found: {', '.join(strong_positive)}")
        if strong_negative:
            reasons.append(f"Issues detected: {', '.join(strong_negative)}")
        if not items:
            reasons.append("No evidence collected")
        reasons.append(f"Confidence: {score}% ({self.level(score)})")

        return ConfidenceBreakdown(
            baseline=BASELINE_CONFIDENCE,
            evidence_total=total,
            final_score=score,
            level=self.level(score),
            reasoning=". ".join(reasons),
        )

    def aggregate(self, scores: Iterable[int]) -> int:
        """Rounded mean of several scores; 0 for none."""
        values = list(scores)
        if not values:
            return 0
        return round(sum(values) / len(values))

    def completeness(self, implemented: int, total: int) -> int:
        """Rounded implemented/total percentage; 0 when total is 0."""
        if total <= 0:
            return 0
        return round(implemented / total * 100)

    def create_evidence(
        self,
        kind: EvidenceKind,
        description: str,
        location: str | None = None,
        line: int | None = None,
    ) -> Evidence:
        """Evidence carrying the fixed weight for its kind."""
        return Evidence(
            kind=kind,
            description=description,
            weight=EVIDENCE_WEIGHTS[kind],
            location=location,
            line=line,
        )
