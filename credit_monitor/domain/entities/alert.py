"""Alert entity and its lifecycle."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from credit_monitor.domain.exceptions import (
    AlertExpiredError,
    InvalidAcknowledgementException,
)

from .clock import utcnow


class AlertCategory(str, Enum):
    """Condition that produced an alert."""

    SCORE_THRESHOLD = "score_threshold"      # score left the [min, max] band
    SCORE_CHANGE = "score_change"            # score drifted by >= threshold
    PAYMENT_DELAY = "payment_delay"
    OVERDUE_AMOUNT = "overdue_amount"
    NEW_TRADE_REFERENCE = "new_trade_reference"
    NEW_PAYMENT = "new_payment"
    NEW_SCORE = "new_score"
    PROFILE_CHANGE = "profile_change"


class AlertSeverity(str, Enum):
    """Ordered severity scale, least urgent first."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return list(AlertSeverity).index(self)


class AlertStatus(str, Enum):
    """Derived lifecycle state of an alert at a point in time."""

    CREATED = "created"
    READ = "read"
    ACKNOWLEDGED = "acknowledged"
    EXPIRED = "expired"


@dataclass(frozen=True)
class EntityRef:
    """Reference to the record that caused an observation."""

    entity_type: str
    entity_id: str


@dataclass(frozen=True)
class AlertLifecycle:
    """
    Mutable part of an alert, replaced as a single value.

    acknowledged=True always comes with read=True.
    """

    read: bool = False
    acknowledged: bool = False
    acknowledged_by: Optional[str] = None
    acknowledged_at: Optional[datetime] = None
    notes: Optional[str] = None


def generate_alert_number() -> str:
    return "ALT-" + uuid4().hex[:8].upper()


@dataclass(frozen=True)
class Alert:
    """
    An immutable alert record.

    Only the lifecycle value is ever replaced; every transition returns
    a new Alert and leaves the original untouched.
    """

    business_id: str
    profile_id: UUID
    category: AlertCategory
    severity: AlertSeverity
    title: str
    description: str
    expires_at: datetime
    previous_value: Optional[float] = None
    current_value: Optional[float] = None
    threshold_value: Optional[float] = None
    change_amount: Optional[float] = None
    change_percentage: Optional[float] = None
    related_entity: Optional[EntityRef] = None
    lifecycle: AlertLifecycle = field(default_factory=AlertLifecycle)
    alert_number: str = field(default_factory=generate_alert_number)
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_read(self) -> bool:
        return self.lifecycle.read

    @property
    def is_acknowledged(self) -> bool:
        return self.lifecycle.acknowledged

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def status(self, now: datetime) -> AlertStatus:
        if self.is_expired(now):
            return AlertStatus.EXPIRED
        if self.lifecycle.acknowledged:
            return AlertStatus.ACKNOWLEDGED
        if self.lifecycle.read:
            return AlertStatus.READ
        return AlertStatus.CREATED

    def mark_read(self, now: datetime) -> "Alert":
        """
        Mark the alert as viewed.

        Raises:
            AlertExpiredError: If the alert expired before `now`
        """
        if self.is_expired(now):
            raise AlertExpiredError(str(self.id))
        if self.lifecycle.read:
            return self
        return replace(self, lifecycle=replace(self.lifecycle, read=True))

    def acknowledge(
        self,
        actor: str,
        now: datetime,
        notes: Optional[str] = None,
    ) -> "Alert":
        """
        Acknowledge the alert on behalf of `actor`.

        Read and acknowledged flags are set in the same replacement.

        Raises:
            AlertExpiredError: If the alert expired before `now`
            InvalidAcknowledgementException: If no actor identity is given
        """
        if self.is_expired(now):
            raise AlertExpiredError(str(self.id))
        if not actor or not actor.strip():
            raise InvalidAcknowledgementException(
                "Acknowledgement requires an actor identity"
            )
        return replace(
            self,
            lifecycle=AlertLifecycle(
                read=True,
                acknowledged=True,
                acknowledged_by=actor,
                acknowledged_at=now,
                notes=notes,
            ),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "alert_id": str(self.id),
            "alert_number": self.alert_number,
            "business_id": self.business_id,
            "profile_id": str(self.profile_id),
            "category": self.category.value,
            "severity": self.severity.value,
            "title": self.title,
            "description": self.description,
            "previous_value": self.previous_value,
            "current_value": self.current_value,
            "threshold_value": self.threshold_value,
            "change_amount": self.change_amount,
            "change_percentage": self.change_percentage,
            "related_entity": (
                {
                    "type": self.related_entity.entity_type,
                    "id": self.related_entity.entity_id,
                }
                if self.related_entity
                else None
            ),
            "is_read": self.lifecycle.read,
            "is_acknowledged": self.lifecycle.acknowledged,
            "acknowledged_by": self.lifecycle.acknowledged_by,
            "acknowledged_at": (
                self.lifecycle.acknowledged_at.isoformat()
                if self.lifecycle.acknowledged_at
                else None
            ),
            "acknowledgment_notes": self.lifecycle.notes,
            "expires_at": self.expires_at.isoformat(),
            "created_at": self.created_at.isoformat(),
        }
