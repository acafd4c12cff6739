"""In-memory repository implementations for embedding and tests."""

from dataclasses import replace
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from credit_monitor.domain.entities import Alert, MonitoringProfile, ScoreResult
from credit_monitor.domain.exceptions import (
    AlertNotFoundException,
    DuplicateProfileException,
)
from credit_monitor.domain.interfaces import (
    AlertRepository,
    MonitoringProfileRepository,
    ScoreResultRepository,
)


class InMemoryScoreResultRepository(ScoreResultRepository):
    """Append-only score history held in a dict of lists."""

    def __init__(self):
        self._results: Dict[str, List[ScoreResult]] = {}

    async def save(self, result: ScoreResult) -> ScoreResult:
        self._results.setdefault(result.business_id, []).append(result)
        return result

    async def get_latest(self, business_id: str) -> Optional[ScoreResult]:
        history = await self.get_history(business_id, limit=1)
        return history[0] if history else None

    async def get_history(
        self,
        business_id: str,
        limit: int = 10,
        offset: int = 0,
    ) -> List[ScoreResult]:
        results = sorted(
            self._results.get(business_id, []),
            key=lambda r: r.created_at,
            reverse=True,
        )
        return results[offset:offset + limit]


class InMemoryAlertRepository(AlertRepository):
    def __init__(self):
        self._alerts: Dict[UUID, Alert] = {}

    def add_all(self, alerts: Sequence[Alert]) -> None:
        """Insert new alerts. Called by the profile store on commit."""
        for alert in alerts:
            self._alerts[alert.id] = alert

    async def get_by_id(self, alert_id: UUID) -> Optional[Alert]:
        return self._alerts.get(alert_id)

    async def list_by_business(
        self,
        business_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Alert]:
        alerts = [
            alert
            for alert in self._alerts.values()
            if alert.business_id == business_id
            and not (unread_only and alert.is_read)
        ]
        alerts.sort(key=lambda a: a.created_at, reverse=True)
        end = None if limit is None else offset + limit
        return alerts[offset:end]

    async def update_lifecycle(self, alert: Alert) -> Alert:
        stored = self._alerts.get(alert.id)
        if stored is None:
            raise AlertNotFoundException(str(alert.id))
        updated = replace(stored, lifecycle=alert.lifecycle)
        self._alerts[alert.id] = updated
        return updated

    async def mark_read(self, alert_id: UUID) -> Alert:
        stored = self._alerts.get(alert_id)
        if stored is None:
            raise AlertNotFoundException(str(alert_id))
        if stored.is_read:
            return stored
        updated = replace(stored, lifecycle=replace(stored.lifecycle, read=True))
        self._alerts[alert_id] = updated
        return updated


class InMemoryMonitoringProfileRepository(MonitoringProfileRepository):
    """
    Profile store with versioned compare-and-swap writes.

    Each write checks the version and stores the result with no await in
    between, so it is atomic with respect to other coroutines.
    """

    def __init__(self, alerts: InMemoryAlertRepository):
        self._alerts = alerts
        self._profiles: Dict[UUID, MonitoringProfile] = {}
        self._by_business: Dict[str, UUID] = {}

    async def create(self, profile: MonitoringProfile) -> MonitoringProfile:
        if profile.business_id in self._by_business:
            raise DuplicateProfileException(profile.business_id)
        self._profiles[profile.id] = profile
        self._by_business[profile.business_id] = profile.id
        return profile

    async def get_by_business_id(self, business_id: str) -> Optional[MonitoringProfile]:
        profile_id = self._by_business.get(business_id)
        if profile_id is None:
            return None
        return self._profiles.get(profile_id)

    async def get_by_id(self, profile_id: UUID) -> Optional[MonitoringProfile]:
        return self._profiles.get(profile_id)

    async def update(
        self,
        profile: MonitoringProfile,
        expected_version: int,
    ) -> Optional[MonitoringProfile]:
        stored = self._profiles.get(profile.id)
        if stored is None or stored.version != expected_version:
            return None
        state = replace(stored.state, band_rearmed=profile.state.band_rearmed)
        updated = replace(profile, state=state, version=expected_version + 1)
        self._profiles[profile.id] = updated
        return updated

    async def commit_evaluation(
        self,
        profile: MonitoringProfile,
        expected_version: int,
        alerts: Sequence[Alert],
    ) -> Optional[MonitoringProfile]:
        stored = self._profiles.get(profile.id)
        if stored is None or stored.version != expected_version:
            return None
        updated = replace(stored, state=profile.state, version=expected_version + 1)
        self._profiles[profile.id] = updated
        self._alerts.add_all(alerts)
        return updated
