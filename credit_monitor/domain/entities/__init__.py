"""Domain Entities - Core business objects."""

from .alert import (
    Alert,
    AlertCategory,
    AlertLifecycle,
    AlertSeverity,
    AlertStatus,
    EntityRef,
)
from .monitoring import (
    AlertToggles,
    MonitoringProfile,
    MonitoringThresholds,
    MonitoringType,
    NotificationChannel,
    NotificationChannels,
    NotificationFrequency,
    ProfileState,
)
from .notification import NotificationTicket
from .observation import (
    Observation,
    OverdueAmountObservation,
    PaymentDelayObservation,
    ProfileChangeObservation,
    ScoreObservation,
    TradeReferenceObservation,
)
from .score import (
    BusinessMetrics,
    ComponentScores,
    RiskCategory,
    ScoreComponent,
    ScoreResult,
)

__all__ = [
    "Alert",
    "AlertCategory",
    "AlertLifecycle",
    "AlertSeverity",
    "AlertStatus",
    "EntityRef",
    "AlertToggles",
    "MonitoringProfile",
    "MonitoringThresholds",
    "MonitoringType",
    "NotificationChannel",
    "NotificationChannels",
    "NotificationFrequency",
    "ProfileState",
    "NotificationTicket",
    "Observation",
    "OverdueAmountObservation",
    "PaymentDelayObservation",
    "ProfileChangeObservation",
    "ScoreObservation",
    "TradeReferenceObservation",
    "BusinessMetrics",
    "ComponentScores",
    "RiskCategory",
    "ScoreComponent",
    "ScoreResult",
]
