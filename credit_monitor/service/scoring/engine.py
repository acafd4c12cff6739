"""
Scoring Engine.

Orchestrates the complete scoring pipeline:
1. Combine component sub-scores into a composite
2. Classify the composite into a grade
3. Map the composite to a risk tier
4. Recommend a credit limit from the composite and business scale
5. Build and return an immutable ScoreResult

This is the main entry point for the scoring module. Everything here is
pure and synchronous; metrics are fetched by the caller.
"""

from datetime import datetime, timedelta
from typing import Optional

from credit_monitor.domain.entities import BusinessMetrics, ScoreResult
from credit_monitor.domain.entities.clock import utcnow

from .composite import calculate_composite_score
from .credit_limit import CreditLimitCurve, recommend_credit_limit_cents
from .grading import GradeClassifier, RiskCategorizer, check_consistency
from .settings import ScoringSettings, scoring_settings


class ScoringEngine:
    """
    Scoring pipeline with validated tables.

    Construction validates the grade table, the risk table, their mutual
    consistency and the credit-limit curve; any failure raises
    ConfigurationError.
    """

    def __init__(self, settings: ScoringSettings = scoring_settings):
        self.settings = settings
        self.grades = GradeClassifier(settings=settings)
        self.risks = RiskCategorizer(settings=settings)
        self.curve = CreditLimitCurve(settings=settings)
        check_consistency(self.grades, self.risks)

    def score(
        self,
        metrics: BusinessMetrics,
        now: Optional[datetime] = None,
    ) -> ScoreResult:
        """
        Score one business.

        Args:
            metrics: Component scores and scale factor for the business
            now: Start of the validity window (defaults to the current time)

        Returns:
            A new ScoreResult

        Raises:
            IncompleteInputError: If every component is missing
            ValueError: If a component is out of range or the scale is negative
        """
        now = now or utcnow()

        composite = calculate_composite_score(
            metrics.components,
            settings=self.settings,
            business_id=metrics.business_id,
        )
        limit_cents = recommend_credit_limit_cents(
            composite.score,
            metrics.scale_factor_cents,
            curve=self.curve,
            settings=self.settings,
        )

        return ScoreResult(
            business_id=metrics.business_id,
            composite_score=composite.score,
            components=metrics.components,
            grade=self.grades.classify(composite.score),
            risk_category=self.risks.categorize(composite.score),
            recommended_limit_cents=limit_cents,
            scale_factor_cents=metrics.scale_factor_cents,
            valid_from=now,
            valid_until=now + timedelta(days=self.settings.validity_days),
            weights_applied={
                component.value: weight
                for component, weight in composite.weights_applied.items()
            },
            missing_components=tuple(c.value for c in composite.missing),
            created_at=now,
        )
