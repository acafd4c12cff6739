"""Score entities produced by the scoring engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple
from uuid import UUID, uuid4

from .clock import utcnow


class ScoreComponent(str, Enum):
    """The four weighted inputs to the composite score."""

    FINANCIAL_STRENGTH = "financial_strength"
    PAYMENT_BEHAVIOR = "payment_behavior"
    BUSINESS_STABILITY = "business_stability"
    COMPLIANCE = "compliance"


class RiskCategory(str, Enum):
    """Ordinal risk tier, best first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"

    @property
    def rank(self) -> int:
        """0 for LOW up to 3 for VERY_HIGH."""
        return list(RiskCategory).index(self)


@dataclass(frozen=True)
class ComponentScores:
    """
    Component sub-scores on the 0-1000 scale.

    Any component may be None when its data source is unavailable;
    the calculator renormalizes the remaining weights.
    """

    financial_strength: Optional[float] = None
    payment_behavior: Optional[float] = None
    business_stability: Optional[float] = None
    compliance: Optional[float] = None

    def get(self, component: ScoreComponent) -> Optional[float]:
        return getattr(self, component.value)

    def present(self) -> Dict[ScoreComponent, float]:
        """Components that have a value, in declaration order."""
        return {
            component: self.get(component)
            for component in ScoreComponent
            if self.get(component) is not None
        }

    def missing(self) -> Tuple[ScoreComponent, ...]:
        return tuple(c for c in ScoreComponent if self.get(c) is None)

    def to_dict(self) -> dict:
        return {component.value: self.get(component) for component in ScoreComponent}


@dataclass(frozen=True)
class BusinessMetrics:
    """
    Raw metrics for one business as delivered by the metrics feed.

    Attributes:
        business_id: The business identifier
        components: The four component sub-scores
        scale_factor_cents: Declared business scale (monthly turnover) in cents
    """

    business_id: str
    components: ComponentScores
    scale_factor_cents: int = 0


@dataclass(frozen=True)
class ScoreResult:
    """
    One immutable scoring outcome.

    A new scoring request always produces a new ScoreResult; previous
    results are retained for trend and delta computation.
    """

    business_id: str
    composite_score: int
    components: ComponentScores
    grade: str
    risk_category: RiskCategory
    recommended_limit_cents: int
    scale_factor_cents: int
    valid_from: datetime
    valid_until: datetime
    weights_applied: Dict[str, float] = field(default_factory=dict)
    missing_components: Tuple[str, ...] = ()
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def is_valid_at(self, moment: datetime) -> bool:
        return self.valid_from <= moment <= self.valid_until

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "score_id": str(self.id),
            "business_id": self.business_id,
            "composite_score": self.composite_score,
            "components": self.components.to_dict(),
            "grade": self.grade,
            "risk_category": self.risk_category.value,
            "recommended_limit_cents": self.recommended_limit_cents,
            "scale_factor_cents": self.scale_factor_cents,
            "weights_applied": dict(self.weights_applied),
            "missing_components": list(self.missing_components),
            "valid_from": self.valid_from.isoformat(),
            "valid_until": self.valid_until.isoformat(),
            "created_at": self.created_at.isoformat(),
        }
