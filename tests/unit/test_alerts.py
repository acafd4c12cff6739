"""
Unit Tests for the Alert lifecycle and the Notification Scheduler.

These tests verify:
1. Read and acknowledge transitions, and their invariants
2. Expiry blocking every transition
3. Immediate hand-off versus periodic queueing
4. At-most-once hand-off of each alert, with bounded memory
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from credit_monitor.domain.entities import (
    Alert,
    AlertCategory,
    AlertSeverity,
    AlertStatus,
    MonitoringProfile,
    NotificationChannel,
    NotificationChannels,
    NotificationFrequency,
)
from credit_monitor.domain.exceptions import (
    AlertExpiredError,
    InvalidAcknowledgementException,
)
from credit_monitor.service.monitoring import NotificationScheduler


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_alert(
    business_id: str = "biz-1",
    expires_in: timedelta = timedelta(days=30),
    severity: AlertSeverity = AlertSeverity.MEDIUM,
) -> Alert:
    return Alert(
        business_id=business_id,
        profile_id=uuid4(),
        category=AlertCategory.SCORE_CHANGE,
        severity=severity,
        title="Credit Score Decreased",
        description="Credit score has decreased by 60.0 points",
        expires_at=NOW + expires_in,
        previous_value=750,
        current_value=690,
        change_amount=-60,
        created_at=NOW,
    )


# =============================================================================
# Alert Lifecycle Tests
# =============================================================================

class TestAlertLifecycle:

    def test_new_alert_is_created(self):
        alert = make_alert()

        assert alert.status(NOW) is AlertStatus.CREATED

    def test_mark_read(self):
        alert = make_alert()

        read = alert.mark_read(NOW)

        assert read.is_read
        assert read.status(NOW) is AlertStatus.READ
        assert not alert.is_read

    def test_mark_read_twice_is_a_noop(self):
        read = make_alert().mark_read(NOW)

        assert read.mark_read(NOW) is read

    def test_acknowledge_implies_read(self):
        alert = make_alert()

        acked = alert.acknowledge("analyst@example.com", NOW, notes="Reviewed")

        assert acked.is_acknowledged
        assert acked.is_read
        assert acked.lifecycle.acknowledged_by == "analyst@example.com"
        assert acked.lifecycle.acknowledged_at == NOW
        assert acked.lifecycle.notes == "Reviewed"
        assert acked.status(NOW) is AlertStatus.ACKNOWLEDGED

    def test_acknowledge_requires_actor(self):
        with pytest.raises(InvalidAcknowledgementException):
            make_alert().acknowledge("  ", NOW)

    def test_expired_alert_cannot_be_acknowledged(self):
        alert = make_alert(expires_in=timedelta(days=7))
        later = NOW + timedelta(days=8)

        with pytest.raises(AlertExpiredError):
            alert.acknowledge("analyst@example.com", later)

        assert not alert.is_read
        assert not alert.is_acknowledged
        assert alert.status(later) is AlertStatus.EXPIRED

    def test_expired_alert_cannot_be_read(self):
        alert = make_alert(expires_in=timedelta(days=7))

        with pytest.raises(AlertExpiredError):
            alert.mark_read(NOW + timedelta(days=8))

    def test_alert_is_live_at_expiry_instant(self):
        alert = make_alert(expires_in=timedelta(days=7))

        assert not alert.is_expired(alert.expires_at)

    def test_to_dict(self):
        data = make_alert().acknowledge("analyst@example.com", NOW).to_dict()

        assert data["category"] == "score_change"
        assert data["severity"] == "MEDIUM"
        assert data["is_read"] is True
        assert data["acknowledged_at"] == NOW.isoformat()


# =============================================================================
# Scheduler Tests
# =============================================================================

class TestNotificationScheduler:

    @pytest.mark.asyncio
    async def test_immediate_alerts_returned_as_tickets(self):
        scheduler = NotificationScheduler()
        profile = MonitoringProfile(business_id="biz-1")
        alert = make_alert()

        tickets = await scheduler.schedule(profile, [alert])

        assert len(tickets) == 1
        assert tickets[0].alert_id == alert.id
        assert tickets[0].channels == {NotificationChannel.EMAIL, NotificationChannel.IN_APP}
        assert scheduler.pending_count() == 0

    @pytest.mark.asyncio
    async def test_periodic_alerts_wait_for_flush(self):
        scheduler = NotificationScheduler()
        profile = MonitoringProfile(
            business_id="biz-1",
            frequency=NotificationFrequency.DAILY,
        )
        alerts = [make_alert(), make_alert()]

        assert await scheduler.schedule(profile, alerts) == []
        assert scheduler.pending_count(NotificationFrequency.DAILY) == 2

        assert await scheduler.flush(NotificationFrequency.WEEKLY) == []
        released = await scheduler.flush(NotificationFrequency.DAILY)

        assert {t.alert_id for t in released} == {a.id for a in alerts}
        assert scheduler.pending_count() == 0
        assert await scheduler.flush(NotificationFrequency.DAILY) == []

    @pytest.mark.asyncio
    async def test_alert_handed_off_once(self):
        scheduler = NotificationScheduler()
        profile = MonitoringProfile(business_id="biz-1")
        alert = make_alert()

        first = await scheduler.schedule(profile, [alert])
        second = await scheduler.schedule(profile, [alert])

        assert len(first) == 1
        assert second == []

    @pytest.mark.asyncio
    async def test_handoff_memory_is_bounded(self):
        scheduler = NotificationScheduler(max_tracked=2)
        profile = MonitoringProfile(business_id="biz-1")
        alerts = [make_alert() for _ in range(3)]

        for alert in alerts:
            assert len(await scheduler.schedule(profile, [alert])) == 1

        assert scheduler.tracked_count == 2
        assert await scheduler.schedule(profile, [alerts[2]]) == []

    @pytest.mark.asyncio
    async def test_no_channels_no_tickets(self):
        scheduler = NotificationScheduler()
        profile = MonitoringProfile(
            business_id="biz-1",
            channels=NotificationChannels(email=False, sms=False, in_app=False),
        )

        assert await scheduler.schedule(profile, [make_alert()]) == []
        assert scheduler.pending_count() == 0

    @pytest.mark.asyncio
    async def test_flush_immediate_raises(self):
        with pytest.raises(ValueError):
            await NotificationScheduler().flush(NotificationFrequency.IMMEDIATE)
