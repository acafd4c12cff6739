"""
Credit Limit Recommendation.

recommended limit = scale factor x multiplier(score), where the multiplier
follows a piecewise-linear curve through configured (score, multiplier)
points. The curve is monotonic non-decreasing and never negative.
"""

from bisect import bisect_right
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence, Tuple

from credit_monitor.domain.exceptions import ConfigurationError

from .settings import ScoringSettings, scoring_settings


class CreditLimitCurve:
    """Piecewise-linear score-to-multiplier curve."""

    def __init__(
        self,
        points: Optional[Sequence[Tuple[float, float]]] = None,
        settings: ScoringSettings = scoring_settings,
    ):
        points = list(points if points is not None else settings.credit_limit_curve)
        if not points:
            raise ConfigurationError("credit limit curve has no points")

        for score, multiplier in points:
            if multiplier < 0:
                raise ConfigurationError(
                    f"credit limit multiplier at {score} is negative"
                )
        for (prev_score, prev_mult), (score, mult) in zip(points, points[1:]):
            if score <= prev_score:
                raise ConfigurationError("credit limit curve scores must be ascending")
            if mult < prev_mult:
                raise ConfigurationError("credit limit curve must be non-decreasing")

        self.scores = [float(score) for score, _ in points]
        self.multipliers = [float(multiplier) for _, multiplier in points]

    def multiplier(self, score: float) -> float:
        """Multiplier at `score`, flat beyond the first and last points."""
        if score <= self.scores[0]:
            return self.multipliers[0]
        if score >= self.scores[-1]:
            return self.multipliers[-1]

        i = bisect_right(self.scores, score)
        x0, x1 = self.scores[i - 1], self.scores[i]
        y0, y1 = self.multipliers[i - 1], self.multipliers[i]
        return y0 + (y1 - y0) * (score - x0) / (x1 - x0)


def recommend_credit_limit_cents(
    score: int,
    scale_factor_cents: int,
    curve: Optional[CreditLimitCurve] = None,
    settings: ScoringSettings = scoring_settings,
) -> int:
    """
    Recommend a credit limit for a composite score.

    Args:
        score: Composite score (0-1000)
        scale_factor_cents: Declared business scale in cents
        curve: Multiplier curve (built from settings if not provided)
        settings: Scoring settings (uses defaults if not provided)

    Returns:
        Recommended limit in cents, never negative

    Raises:
        ValueError: If scale_factor_cents is negative
    """
    if scale_factor_cents < 0:
        raise ValueError(f"scale_factor_cents cannot be negative: {scale_factor_cents}")

    if curve is None:
        curve = CreditLimitCurve(settings=settings)

    limit = Decimal(scale_factor_cents) * Decimal(str(curve.multiplier(score)))
    return max(0, int(limit.quantize(Decimal("1"), rounding=ROUND_HALF_UP)))
