"""Monitoring profile entities."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, List, Mapping, Optional
from uuid import UUID, uuid4

from .alert import AlertCategory
from .clock import utcnow


class NotificationFrequency(str, Enum):
    """How alerts of a profile are released to the delivery layer."""

    IMMEDIATE = "immediate"  # hand off as soon as created
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"

    @property
    def is_immediate(self) -> bool:
        return self is NotificationFrequency.IMMEDIATE


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    IN_APP = "in_app"


class MonitoringType(str, Enum):
    """Descriptive label of what a profile is meant to watch. Not used for gating."""

    COMPREHENSIVE = "comprehensive"
    CREDIT_SCORE_ONLY = "credit_score_only"
    PAYMENT_BEHAVIOR = "payment_behavior"
    TRADE_REFERENCES = "trade_references"
    BUSINESS_PROFILE = "business_profile"
    CUSTOM = "custom"


# Event categories and the toggle attribute that gates each of them.
EVENT_TOGGLES = {
    AlertCategory.NEW_TRADE_REFERENCE: "new_trade_reference",
    AlertCategory.NEW_PAYMENT: "new_payment",
    AlertCategory.NEW_SCORE: "new_score",
    AlertCategory.PROFILE_CHANGE: "profile_change",
}


@dataclass(frozen=True)
class MonitoringThresholds:
    """
    Numeric thresholds of a profile. None disables the condition.

    Attributes:
        score_min: Alert when the composite score falls below this
        score_max: Alert when the composite score rises above this
        score_change: Alert when |new - last| reaches this many points
        payment_delay_days: Alert when a payment is delayed this many days
        overdue_amount_cents: Alert when the overdue balance reaches this
    """

    score_min: Optional[float] = None
    score_max: Optional[float] = None
    score_change: Optional[float] = None
    payment_delay_days: Optional[int] = None
    overdue_amount_cents: Optional[int] = None

    def validate(self) -> List[str]:
        errors = []

        for name in (
            "score_min",
            "score_max",
            "score_change",
            "payment_delay_days",
            "overdue_amount_cents",
        ):
            value = getattr(self, name)
            if value is not None and value < 0:
                errors.append(f"{name} must be >= 0")

        if (
            self.score_min is not None
            and self.score_max is not None
            and self.score_min > self.score_max
        ):
            errors.append("score_min must be <= score_max")

        return errors


@dataclass(frozen=True)
class AlertToggles:
    """Per-category switches for event alerts."""

    new_trade_reference: bool = True
    new_payment: bool = True
    new_score: bool = True
    profile_change: bool = True

    def is_enabled(self, category: AlertCategory) -> bool:
        attribute = EVENT_TOGGLES.get(category)
        if attribute is None:
            raise ValueError(f"{category.value} is not an event category")
        return getattr(self, attribute)


@dataclass(frozen=True)
class NotificationChannels:
    email: bool = True
    sms: bool = False
    in_app: bool = True

    def enabled(self) -> FrozenSet[NotificationChannel]:
        return frozenset(
            channel
            for channel in NotificationChannel
            if getattr(self, channel.value)
        )


@dataclass(frozen=True)
class ProfileState:
    """
    Rolling evaluation state of a profile.

    last_alert_at, total_alerts_sent and last_credit_score only change
    together, in the same commit.

    band_rearmed is set when the score band thresholds change and cleared
    by the next score evaluation. While set, an unchanged score is still
    checked against the band.
    """

    last_check_at: Optional[datetime] = None
    last_alert_at: Optional[datetime] = None
    total_alerts_sent: int = 0
    last_credit_score: Optional[float] = None
    category_last_alert_at: Mapping[AlertCategory, datetime] = field(default_factory=dict)
    category_watermarks: Mapping[AlertCategory, datetime] = field(default_factory=dict)
    suppressed_counts: Mapping[AlertCategory, int] = field(default_factory=dict)
    band_rearmed: bool = False


@dataclass(frozen=True)
class MonitoringProfile:
    """
    Monitoring configuration and rolling state for one business.

    `version` increases by one on every committed evaluation and is
    used for compare-and-swap writes.
    """

    business_id: str
    name: str = ""
    thresholds: MonitoringThresholds = field(default_factory=MonitoringThresholds)
    toggles: AlertToggles = field(default_factory=AlertToggles)
    channels: NotificationChannels = field(default_factory=NotificationChannels)
    frequency: NotificationFrequency = NotificationFrequency.IMMEDIATE
    monitoring_type: MonitoringType = MonitoringType.COMPREHENSIVE
    state: ProfileState = field(default_factory=ProfileState)
    is_active: bool = True
    notes: Optional[str] = None
    version: int = 0
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def with_state(self, state: ProfileState) -> "MonitoringProfile":
        return replace(self, state=state)

    def score_band_differs(self, other: "MonitoringProfile") -> bool:
        return (
            self.thresholds.score_min != other.thresholds.score_min
            or self.thresholds.score_max != other.thresholds.score_max
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        state = self.state
        return {
            "profile_id": str(self.id),
            "business_id": self.business_id,
            "name": self.name,
            "is_active": self.is_active,
            "thresholds": {
                "score_min": self.thresholds.score_min,
                "score_max": self.thresholds.score_max,
                "score_change": self.thresholds.score_change,
                "payment_delay_days": self.thresholds.payment_delay_days,
                "overdue_amount_cents": self.thresholds.overdue_amount_cents,
            },
            "toggles": {
                category.value: self.toggles.is_enabled(category)
                for category in EVENT_TOGGLES
            },
            "channels": sorted(c.value for c in self.channels.enabled()),
            "frequency": self.frequency.value,
            "monitoring_type": self.monitoring_type.value,
            "last_check_at": state.last_check_at.isoformat() if state.last_check_at else None,
            "last_alert_at": state.last_alert_at.isoformat() if state.last_alert_at else None,
            "total_alerts_sent": state.total_alerts_sent,
            "last_credit_score": state.last_credit_score,
            "version": self.version,
            "created_at": self.created_at.isoformat(),
        }
