"""Data transfer objects for monitoring operations."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from credit_monitor.domain.entities import (
    Alert,
    AlertCategory,
    AlertToggles,
    MonitoringProfile,
    MonitoringThresholds,
    MonitoringType,
    NotificationChannels,
    NotificationFrequency,
    NotificationTicket,
    Observation,
)


@dataclass(frozen=True)
class ProfileRequest:
    """Input data for creating or updating a monitoring profile."""

    business_id: str
    name: str = ""
    score_min: Optional[float] = None
    score_max: Optional[float] = None
    score_change: Optional[float] = None
    payment_delay_days: Optional[int] = None
    overdue_amount_cents: Optional[int] = None
    alert_new_trade_reference: bool = True
    alert_new_payment: bool = True
    alert_new_score: bool = True
    alert_profile_change: bool = True
    email_enabled: bool = True
    sms_enabled: bool = False
    in_app_enabled: bool = True
    frequency: str = NotificationFrequency.IMMEDIATE.value
    monitoring_type: str = MonitoringType.COMPREHENSIVE.value
    is_active: bool = True
    notes: Optional[str] = None

    @property
    def thresholds(self) -> MonitoringThresholds:
        return MonitoringThresholds(
            score_min=self.score_min,
            score_max=self.score_max,
            score_change=self.score_change,
            payment_delay_days=self.payment_delay_days,
            overdue_amount_cents=self.overdue_amount_cents,
        )

    def validate(self) -> List[str]:
        errors = []

        if not self.business_id or not self.business_id.strip():
            errors.append("business_id is required")

        errors.extend(self.thresholds.validate())

        if self.frequency not in {f.value for f in NotificationFrequency}:
            errors.append(f"frequency must be one of: {', '.join(f.value for f in NotificationFrequency)}")

        if self.monitoring_type not in {t.value for t in MonitoringType}:
            errors.append(f"monitoring_type must be one of: {', '.join(t.value for t in MonitoringType)}")

        return errors

    def to_entity(self) -> MonitoringProfile:
        """Build a new profile. Call validate() first."""
        return MonitoringProfile(
            business_id=self.business_id,
            name=self.name,
            thresholds=self.thresholds,
            toggles=AlertToggles(
                new_trade_reference=self.alert_new_trade_reference,
                new_payment=self.alert_new_payment,
                new_score=self.alert_new_score,
                profile_change=self.alert_profile_change,
            ),
            channels=NotificationChannels(
                email=self.email_enabled,
                sms=self.sms_enabled,
                in_app=self.in_app_enabled,
            ),
            frequency=NotificationFrequency(self.frequency),
            monitoring_type=MonitoringType(self.monitoring_type),
            is_active=self.is_active,
            notes=self.notes,
        )


@dataclass(frozen=True)
class EvaluationResult:
    """
    Outcome of one monitoring evaluation as seen by the caller.

    conflict is True when another writer committed first; the result then
    carries the winner's profile and no alerts. If the winner had not
    already applied this observation, requeue is also True and the
    observation must be evaluated again later. skipped is True for
    inactive profiles.
    """

    business_id: str
    observation_id: str
    alerts: Tuple[Alert, ...] = ()
    tickets: Tuple[NotificationTicket, ...] = ()
    suppressed: Tuple[AlertCategory, ...] = ()
    profile: Optional[MonitoringProfile] = None
    conflict: bool = False
    requeue: bool = False
    skipped: bool = False


@dataclass(frozen=True)
class FailedObservation:
    """An observation a batch could not evaluate."""

    observation: Observation
    code: str
    message: str


@dataclass(frozen=True)
class BatchReport:
    """Outcome of a batch run."""

    results: List[EvaluationResult] = field(default_factory=list)
    requeued: List[Observation] = field(default_factory=list)
    failed: List[FailedObservation] = field(default_factory=list)

    @property
    def alerts_emitted(self) -> int:
        return sum(len(result.alerts) for result in self.results)

    @property
    def timed_out(self) -> bool:
        return bool(self.requeued)
