"""
Monitoring Settings for threshold evaluation and alert generation.

Environment variables use the MONITORING_ prefix:
    MONITORING_SEVERITY_HIGH_RATIO=0.25
    MONITORING_EXPIRY_DAYS_CRITICAL=90
    MONITORING_WINDOW_DAILY_SECONDS=86400

Usage:
    from credit_monitor.service.monitoring.settings import monitoring_settings

    window = monitoring_settings.window_for(NotificationFrequency.DAILY)
"""

import json
from datetime import timedelta
from functools import lru_cache
from typing import Dict

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from credit_monitor.domain.entities import (
    AlertCategory,
    AlertSeverity,
    NotificationFrequency,
)


class MonitoringSettings(BaseSettings):
    """
    Configurable parameters for monitoring and alerting.

    All settings can be overridden via environment variables with MONITORING_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITORING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Severity Cut Points ===
    # Ratio |measured - threshold| / threshold at which each severity starts.
    severity_medium_ratio: float = Field(
        default=0.10,
        gt=0.0,
        description="Breach ratio at or above which severity is MEDIUM",
    )
    severity_high_ratio: float = Field(
        default=0.25,
        gt=0.0,
        description="Breach ratio at or above which severity is HIGH",
    )
    severity_critical_ratio: float = Field(
        default=0.50,
        gt=0.0,
        description="Breach ratio at or above which severity is CRITICAL",
    )

    # === Alert Expiry ===
    expiry_days_low: int = Field(default=7, ge=1)
    expiry_days_medium: int = Field(default=30, ge=1)
    expiry_days_high: int = Field(default=60, ge=1)
    expiry_days_critical: int = Field(default=90, ge=1)

    # === Rate-Limit Windows ===
    window_hourly_seconds: int = Field(
        default=3600,
        ge=1,
        description="Rate-limit window for HOURLY profiles",
    )
    window_daily_seconds: int = Field(
        default=86_400,
        ge=1,
        description="Rate-limit window for DAILY profiles",
    )
    window_weekly_seconds: int = Field(
        default=604_800,
        ge=1,
        description="Rate-limit window for WEEKLY profiles",
    )

    # === Default Severities ===
    default_severities_json: str = Field(
        default=(
            '{"score_threshold":"HIGH","score_change":"MEDIUM",'
            '"payment_delay":"HIGH","overdue_amount":"HIGH",'
            '"new_trade_reference":"MEDIUM","new_payment":"MEDIUM",'
            '"new_score":"LOW","profile_change":"LOW"}'
        ),
        description=(
            "Severity per category for event alerts and for breaches of a "
            "zero threshold, as JSON object: {category: severity}"
        ),
    )

    # === Notification Hand-off ===
    handoff_memory_size: int = Field(
        default=10_000,
        ge=1,
        description="Most recent alert ids the scheduler remembers to refuse a second hand-off",
    )

    @model_validator(mode="after")
    def validate_cut_points(self) -> "MonitoringSettings":
        """Cut points must be strictly ascending."""
        if not (
            self.severity_medium_ratio
            < self.severity_high_ratio
            < self.severity_critical_ratio
        ):
            raise ValueError("Severity cut points must be strictly ascending")
        expiry = [
            self.expiry_days_low,
            self.expiry_days_medium,
            self.expiry_days_high,
            self.expiry_days_critical,
        ]
        if expiry != sorted(expiry):
            raise ValueError("Higher severities must not expire sooner")
        return self

    @field_validator("default_severities_json")
    @classmethod
    def validate_default_severities(cls, v: str) -> str:
        """Every category needs a known severity."""
        try:
            mapping = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}")
        if not isinstance(mapping, dict):
            raise ValueError("Default severities must be a JSON object")
        for category in AlertCategory:
            if category.value not in mapping:
                raise ValueError(f"Missing default severity for {category.value}")
            if mapping[category.value] not in AlertSeverity.__members__:
                raise ValueError(f"Unknown severity: {mapping[category.value]}")
        return v

    @property
    def default_severities(self) -> Dict[AlertCategory, AlertSeverity]:
        mapping = json.loads(self.default_severities_json)
        return {
            category: AlertSeverity(mapping[category.value])
            for category in AlertCategory
        }

    def expiry_for(self, severity: AlertSeverity) -> timedelta:
        """Retention window of an alert with the given severity."""
        days = {
            AlertSeverity.LOW: self.expiry_days_low,
            AlertSeverity.MEDIUM: self.expiry_days_medium,
            AlertSeverity.HIGH: self.expiry_days_high,
            AlertSeverity.CRITICAL: self.expiry_days_critical,
        }[severity]
        return timedelta(days=days)

    def window_for(self, frequency: NotificationFrequency) -> timedelta:
        """Rate-limit window for a frequency; zero for IMMEDIATE."""
        seconds = {
            NotificationFrequency.IMMEDIATE: 0,
            NotificationFrequency.HOURLY: self.window_hourly_seconds,
            NotificationFrequency.DAILY: self.window_daily_seconds,
            NotificationFrequency.WEEKLY: self.window_weekly_seconds,
        }[frequency]
        return timedelta(seconds=seconds)


@lru_cache
def get_monitoring_settings() -> MonitoringSettings:
    """Get cached monitoring settings instance."""
    return MonitoringSettings()


monitoring_settings = get_monitoring_settings()
