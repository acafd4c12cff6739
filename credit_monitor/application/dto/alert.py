"""Data transfer objects for alert queries."""

from dataclasses import dataclass, field
from typing import Dict, Iterable

from credit_monitor.domain.entities import Alert, AlertCategory, AlertSeverity


@dataclass(frozen=True)
class AlertStatistics:
    """Per-business alert counts."""

    business_id: str
    total: int = 0
    unread: int = 0
    unacknowledged: int = 0
    by_severity: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_alerts(cls, business_id: str, alerts: Iterable[Alert]) -> "AlertStatistics":
        alerts = list(alerts)
        by_severity = {severity.value: 0 for severity in AlertSeverity}
        by_category = {category.value: 0 for category in AlertCategory}
        for alert in alerts:
            by_severity[alert.severity.value] += 1
            by_category[alert.category.value] += 1

        return cls(
            business_id=business_id,
            total=len(alerts),
            unread=sum(1 for a in alerts if not a.is_read),
            unacknowledged=sum(1 for a in alerts if not a.is_acknowledged),
            by_severity=by_severity,
            by_category=by_category,
        )

    def to_dict(self) -> dict:
        return {
            "business_id": self.business_id,
            "total_alerts": self.total,
            "unread_alerts": self.unread,
            "unacknowledged_alerts": self.unacknowledged,
            "by_severity": dict(self.by_severity),
            "by_category": dict(self.by_category),
        }
