"""Ready-to-notify tickets handed to the delivery layer."""

from dataclasses import dataclass
from typing import FrozenSet
from uuid import UUID

from .alert import AlertSeverity
from .monitoring import NotificationChannel


@dataclass(frozen=True)
class NotificationTicket:
    alert_id: UUID
    business_id: str
    channels: FrozenSet[NotificationChannel]
    severity: AlertSeverity

    def to_dict(self) -> dict:
        return {
            "alert_id": str(self.alert_id),
            "business_id": self.business_id,
            "channels": sorted(c.value for c in self.channels),
            "severity": self.severity.value,
        }
