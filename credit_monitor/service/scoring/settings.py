"""
Scoring Settings for the business credit scoring engine.

This module contains all configurable parameters for composite scoring,
grade and risk classification, and credit-limit recommendation.

Environment variables use the SCORING_ prefix:
    SCORING_WEIGHT_FINANCIAL_STRENGTH=0.35
    SCORING_VALIDITY_DAYS=30
    SCORING_GRADE_BANDS_JSON='[[0,500,"B"],[500,1001,"A"]]'

Usage:
    from credit_monitor.service.scoring.settings import scoring_settings

    # Use default settings (loaded from env)
    days = scoring_settings.validity_days

    # Or create custom settings for testing
    custom = ScoringSettings(weight_compliance=0.0, weight_financial_strength=0.45)
"""

import json
from functools import lru_cache
from typing import Dict, List, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from credit_monitor.domain.entities import RiskCategory, ScoreComponent

# Composite scores live on this scale.
SCORE_MIN = 0
SCORE_MAX = 1000


class ScoringSettings(BaseSettings):
    """
    Configurable parameters for the scoring engine.

    All settings can be overridden via environment variables with SCORING_ prefix.
    All monetary values are in cents.
    All scores are 0-1000.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Component Weights ===
    weight_financial_strength: float = Field(
        default=0.35,
        ge=0.0,
        le=1.0,
        description="Weight for the financial strength component",
    )
    weight_payment_behavior: float = Field(
        default=0.35,
        ge=0.0,
        le=1.0,
        description="Weight for the payment behavior component",
    )
    weight_business_stability: float = Field(
        default=0.20,
        ge=0.0,
        le=1.0,
        description="Weight for the business stability component",
    )
    weight_compliance: float = Field(
        default=0.10,
        ge=0.0,
        le=1.0,
        description="Weight for the compliance component",
    )

    # === Classification Tables ===
    grade_bands_json: str = Field(
        default=(
            '[[0,100,"D"],[100,200,"C"],[200,300,"CC"],[300,400,"CCC"],'
            '[400,500,"B"],[500,600,"BB"],[600,700,"BBB"],[700,800,"A"],'
            '[800,900,"AA"],[900,1001,"AAA"]]'
        ),
        description="Grade bands as JSON array: [[min_inclusive, max_exclusive, grade], ...]",
    )
    risk_bands_json: str = Field(
        default=(
            '[[0,400,"VERY_HIGH"],[400,600,"HIGH"],'
            '[600,800,"MEDIUM"],[800,1001,"LOW"]]'
        ),
        description="Risk bands as JSON array: [[min_inclusive, max_exclusive, category], ...]",
    )

    # === Credit Limit ===
    credit_limit_curve_json: str = Field(
        default="[[0,0.0],[300,0.0],[500,0.5],[700,1.5],[850,2.5],[1000,3.0]]",
        description="Multiplier curve as JSON array: [[score, multiplier], ...]",
    )

    # === Result Validity ===
    validity_days: int = Field(
        default=30,
        ge=1,
        description="Days a score result stays valid after it is produced",
    )

    @model_validator(mode="after")
    def validate_weights_sum(self) -> "ScoringSettings":
        """Weights must sum to 1.0."""
        total = (
            self.weight_financial_strength
            + self.weight_payment_behavior
            + self.weight_business_stability
            + self.weight_compliance
        )
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Component weights must sum to 1.0, got {total:.4f}")
        return self

    @field_validator("grade_bands_json", "risk_bands_json")
    @classmethod
    def validate_bands_json(cls, v: str) -> str:
        """Validate that a band table is parseable and well-formed."""
        try:
            bands = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        if not isinstance(bands, list) or not bands:
            raise ValueError("Bands must be a non-empty list")
        for band in bands:
            if not isinstance(band, list) or len(band) != 3:
                raise ValueError("Each band must be [min_inclusive, max_exclusive, label]")
            lower, upper, label = band
            if not isinstance(lower, int) or not isinstance(upper, int):
                raise ValueError("Band bounds must be integers")
            if not isinstance(label, str):
                raise ValueError("Band label must be a string")
        return v

    @field_validator("risk_bands_json")
    @classmethod
    def validate_risk_labels(cls, v: str) -> str:
        known = {category.value for category in RiskCategory}
        for _, _, label in json.loads(v):
            if label not in known:
                raise ValueError(f"Unknown risk category: {label}")
        return v

    @field_validator("credit_limit_curve_json")
    @classmethod
    def validate_curve_json(cls, v: str) -> str:
        """Validate that the curve JSON is parseable and well-formed."""
        try:
            points = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        if not isinstance(points, list) or not points:
            raise ValueError("Curve must be a non-empty list")
        for point in points:
            if not isinstance(point, list) or len(point) != 2:
                raise ValueError("Each curve point must be [score, multiplier]")
            if not all(isinstance(x, (int, float)) for x in point):
                raise ValueError("Curve values must be numbers")
        return v

    @property
    def weights(self) -> Dict[ScoreComponent, float]:
        """Configured weight of each component."""
        return {
            ScoreComponent.FINANCIAL_STRENGTH: self.weight_financial_strength,
            ScoreComponent.PAYMENT_BEHAVIOR: self.weight_payment_behavior,
            ScoreComponent.BUSINESS_STABILITY: self.weight_business_stability,
            ScoreComponent.COMPLIANCE: self.weight_compliance,
        }

    @property
    def grade_bands(self) -> List[Tuple[int, int, str]]:
        return [tuple(band) for band in json.loads(self.grade_bands_json)]

    @property
    def risk_bands(self) -> List[Tuple[int, int, RiskCategory]]:
        return [
            (lower, upper, RiskCategory(label))
            for lower, upper, label in json.loads(self.risk_bands_json)
        ]

    @property
    def credit_limit_curve(self) -> List[Tuple[float, float]]:
        return [tuple(point) for point in json.loads(self.credit_limit_curve_json)]


@lru_cache
def get_scoring_settings() -> ScoringSettings:
    """Get cached scoring settings instance."""
    return ScoringSettings()


scoring_settings = get_scoring_settings()
