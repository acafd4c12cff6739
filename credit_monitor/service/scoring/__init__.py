"""
Scoring Module for the business credit engine
"""

from .settings import ScoringSettings, scoring_settings
from .composite import CompositeScore, calculate_composite_score
from .grading import Band, GradeClassifier, RiskCategorizer, check_consistency
from .credit_limit import CreditLimitCurve, recommend_credit_limit_cents
from .engine import ScoringEngine

__all__ = [
    # Settings
    "ScoringSettings",
    "scoring_settings",
    # Composite
    "CompositeScore",
    "calculate_composite_score",
    # Classification
    "Band",
    "GradeClassifier",
    "RiskCategorizer",
    "check_consistency",
    # Credit Limit
    "CreditLimitCurve",
    "recommend_credit_limit_cents",
    # Engine
    "ScoringEngine",
]
