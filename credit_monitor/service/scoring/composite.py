"""
Composite Score Calculation.

Combines the four component sub-scores into one 0-1000 composite. A
missing component is excluded and the remaining weights are scaled back
up to 1.0, so a business lacking one data source is not scored as if
that component were zero.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

from credit_monitor.domain.entities import ComponentScores, ScoreComponent
from credit_monitor.domain.exceptions import IncompleteInputError

from .settings import SCORE_MAX, SCORE_MIN, ScoringSettings, scoring_settings


@dataclass(frozen=True)
class CompositeScore:
    """
    Output of the calculator.

    Attributes:
        score: Composite score (0-1000)
        weights_applied: Renormalized weight per present component
        missing: Components that were absent and excluded
    """

    score: int
    weights_applied: Dict[ScoreComponent, float]
    missing: Tuple[ScoreComponent, ...]


def _to_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def calculate_composite_score(
    components: ComponentScores,
    settings: ScoringSettings = scoring_settings,
    business_id: Optional[str] = None,
) -> CompositeScore:
    """
    Calculate the composite score from component sub-scores.

    Args:
        components: The four component sub-scores, any of which may be None
        settings: Scoring settings (uses defaults if not provided)
        business_id: Only used to label errors

    Returns:
        CompositeScore with the rounded score and the weights actually used

    Raises:
        IncompleteInputError: If every component is missing
        ValueError: If a present component lies outside 0-1000
    """
    present = components.present()

    for component, value in present.items():
        if math.isnan(value) or not SCORE_MIN <= value <= SCORE_MAX:
            raise ValueError(
                f"{component.value} must be between {SCORE_MIN} and {SCORE_MAX}, got {value}"
            )

    weights = settings.weights
    total_weight = sum(_to_decimal(weights[c]) for c in present)

    # A present component with zero weight contributes nothing.
    if not present or total_weight == 0:
        raise IncompleteInputError(business_id)

    weighted_sum = sum(
        _to_decimal(weights[c]) * _to_decimal(value) for c, value in present.items()
    )
    raw = (weighted_sum / total_weight).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    score = max(SCORE_MIN, min(SCORE_MAX, int(raw)))

    weights_applied = {
        component: float(_to_decimal(weights[component]) / total_weight)
        for component in present
    }

    return CompositeScore(
        score=score,
        weights_applied=weights_applied,
        missing=components.missing(),
    )
