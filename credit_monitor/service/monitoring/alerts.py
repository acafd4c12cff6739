"""
Alert Generation.

Turns a trigger (a breached condition or an enabled event) into an
immutable Alert with derived comparison values, severity and expiry.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from credit_monitor.domain.entities import (
    Alert,
    AlertCategory,
    AlertSeverity,
    EntityRef,
    MonitoringProfile,
)

from .settings import MonitoringSettings, monitoring_settings

EVENT_CATEGORIES = frozenset({
    AlertCategory.NEW_TRADE_REFERENCE,
    AlertCategory.NEW_PAYMENT,
    AlertCategory.NEW_SCORE,
    AlertCategory.PROFILE_CHANGE,
})


@dataclass(frozen=True)
class Trigger:
    """
    One condition found true during an evaluation.

    Attributes:
        category: The alert category
        current_value: Value observed now
        previous_value: Value observed before, when known
        threshold_value: Configured threshold, None for events
        measured_value: Value compared against the threshold; defaults to
            current_value (drift compares |change| instead)
        related_entity: Record that caused the observation
    """

    category: AlertCategory
    current_value: Optional[float] = None
    previous_value: Optional[float] = None
    threshold_value: Optional[float] = None
    measured_value: Optional[float] = None
    related_entity: Optional[EntityRef] = None

    @property
    def measured(self) -> Optional[float]:
        if self.measured_value is not None:
            return self.measured_value
        return self.current_value


def calculate_change(
    previous: Optional[float],
    current: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """
    Compute change amount and change percentage.

    Returns:
        (current - previous, change / previous as a fraction rounded to
        4 places). Either is None when it is undefined; the percentage is
        None when previous is zero or absent.
    """
    if previous is None or current is None:
        return None, None

    change = current - previous
    if previous == 0:
        return change, None

    ratio = (Decimal(str(change)) / Decimal(str(previous))).quantize(
        Decimal("0.0001"), rounding=ROUND_HALF_UP
    )
    return change, float(ratio)


def derive_severity(
    trigger: Trigger,
    settings: MonitoringSettings = monitoring_settings,
) -> AlertSeverity:
    """
    Derive severity from how far the measured value is past its threshold.

    Events, and thresholds of zero where no ratio exists, take the
    configured per-category default.
    """
    threshold = trigger.threshold_value
    measured = trigger.measured
    if (
        trigger.category in EVENT_CATEGORIES
        or threshold is None
        or threshold == 0
        or measured is None
    ):
        return settings.default_severities[trigger.category]

    ratio = abs(measured - threshold) / threshold
    if ratio >= settings.severity_critical_ratio:
        return AlertSeverity.CRITICAL
    if ratio >= settings.severity_high_ratio:
        return AlertSeverity.HIGH
    if ratio >= settings.severity_medium_ratio:
        return AlertSeverity.MEDIUM
    return AlertSeverity.LOW


def _fmt(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:,.1f}"


def describe(trigger: Trigger, business_id: str) -> Tuple[str, str]:
    """Title and description for a trigger."""
    category = trigger.category
    current = trigger.current_value
    threshold = trigger.threshold_value

    if category is AlertCategory.SCORE_THRESHOLD:
        if current is not None and threshold is not None and current < threshold:
            return (
                "Credit Score Below Minimum Threshold",
                f"Credit score ({_fmt(current)}) has fallen below your minimum "
                f"threshold ({_fmt(threshold)}) for {business_id}",
            )
        return (
            "Credit Score Above Maximum Threshold",
            f"Credit score ({_fmt(current)}) has exceeded your maximum "
            f"threshold ({_fmt(threshold)}) for {business_id}",
        )

    if category is AlertCategory.SCORE_CHANGE:
        previous = trigger.previous_value
        direction = "increased" if (current or 0) > (previous or 0) else "decreased"
        return (
            f"Credit Score {direction.capitalize()}",
            f"Credit score has {direction} by {_fmt(trigger.measured)} points "
            f"(from {_fmt(previous)} to {_fmt(current)}) for {business_id}",
        )

    if category is AlertCategory.PAYMENT_DELAY:
        return (
            "Payment Delay Threshold Exceeded",
            f"A payment was {int(current or 0)} days late (threshold "
            f"{int(threshold or 0)} days) for {business_id}",
        )

    if category is AlertCategory.OVERDUE_AMOUNT:
        return (
            "Overdue Amount Threshold Exceeded",
            f"Overdue balance of {int(current or 0)} cents reached the "
            f"threshold of {int(threshold or 0)} cents for {business_id}",
        )

    if category is AlertCategory.NEW_TRADE_REFERENCE:
        return (
            "New Trade Reference Added",
            f"A new trade reference has been added for {business_id}",
        )

    if category is AlertCategory.NEW_PAYMENT:
        return (
            "New Payment History Added",
            f"New payment transaction has been recorded for {business_id}",
        )

    if category is AlertCategory.NEW_SCORE:
        return (
            "New Credit Score Generated",
            f"A new credit score ({_fmt(current)}) has been generated for {business_id}",
        )

    return (
        "Business Profile Updated",
        f"Business profile information has been updated for {business_id}",
    )


def generate_alert(
    trigger: Trigger,
    profile: MonitoringProfile,
    now: datetime,
    settings: MonitoringSettings = monitoring_settings,
) -> Alert:
    """
    Build an alert for a trigger.

    Args:
        trigger: The breached condition or event
        profile: The profile the alert belongs to
        now: Creation time
        settings: Monitoring settings (uses defaults if not provided)

    Returns:
        A new unread, unacknowledged Alert
    """
    change_amount, change_percentage = calculate_change(
        trigger.previous_value,
        trigger.current_value,
    )
    severity = derive_severity(trigger, settings)
    title, description = describe(trigger, profile.business_id)

    return Alert(
        business_id=profile.business_id,
        profile_id=profile.id,
        category=trigger.category,
        severity=severity,
        title=title,
        description=description,
        expires_at=now + settings.expiry_for(severity),
        previous_value=trigger.previous_value,
        current_value=trigger.current_value,
        threshold_value=trigger.threshold_value,
        change_amount=change_amount,
        change_percentage=change_percentage,
        related_entity=trigger.related_entity,
        created_at=now,
    )
