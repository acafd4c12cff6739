"""Data transfer objects for scoring operations."""

from dataclasses import dataclass
from typing import List

from credit_monitor.domain.entities import ScoreResult


@dataclass(frozen=True)
class ScoreSummary:
    """Brief summary of a score result for history listings."""

    score_id: str
    composite_score: int
    grade: str
    risk_category: str
    recommended_limit_cents: int
    created_at: str


@dataclass(frozen=True)
class ScoreHistoryResponse:
    """Response containing a business's score history."""

    business_id: str
    scores: List[ScoreSummary]

    @classmethod
    def from_entities(cls, business_id: str, results: List[ScoreResult]) -> "ScoreHistoryResponse":
        summaries = [
            ScoreSummary(
                score_id=str(r.id),
                composite_score=r.composite_score,
                grade=r.grade,
                risk_category=r.risk_category.value,
                recommended_limit_cents=r.recommended_limit_cents,
                created_at=r.created_at.isoformat(),
            )
            for r in results
        ]
        return cls(business_id=business_id, scores=summaries)

    @property
    def trend(self) -> int:
        """Newest minus oldest composite in the window; 0 with fewer than two."""
        if len(self.scores) < 2:
            return 0
        return self.scores[0].composite_score - self.scores[-1].composite_score
