"""
Integration tests for the monitoring service.

These tests verify:
1. Profile management, validation and band re-arming
2. Evaluation end to end: alerts, rolling state and notifications
3. Concurrency: serialized per-business evaluation, duplicate collapse,
   compare-and-swap conflicts retried or requeued, updates waiting for
   running evaluations, lock release and cancellation during commit
4. Batch runs: per-business ordering, failures, conflict and timeout requeue
"""

import asyncio
from datetime import timedelta

import pytest

from credit_monitor.application.dto import ProfileRequest
from credit_monitor.application.services import MonitoringService
from credit_monitor.domain.entities import (
    AlertCategory,
    MonitoringType,
    NotificationFrequency,
    PaymentDelayObservation,
    ScoreObservation,
    TradeReferenceObservation,
)
from credit_monitor.domain.exceptions import (
    ConfigurationError,
    DuplicateProfileException,
    ProfileNotFoundException,
)
from credit_monitor.infrastructure.repositories import InMemoryMonitoringProfileRepository


# =============================================================================
# Test Repositories
# =============================================================================

class GatedProfileRepository(InMemoryMonitoringProfileRepository):
    """Profile store whose reads or commits can be held open by the test."""

    def __init__(self, alerts):
        super().__init__(alerts)
        self.blocked_reads = set()
        self.hold_commits = False
        self.gate = asyncio.Event()
        self.commit_started = asyncio.Event()

    async def get_by_business_id(self, business_id):
        if business_id in self.blocked_reads:
            await self.gate.wait()
        return await super().get_by_business_id(business_id)

    async def commit_evaluation(self, profile, expected_version, alerts):
        self.commit_started.set()
        if self.hold_commits:
            await self.gate.wait()
        return await super().commit_evaluation(profile, expected_version, alerts)


class InterferingProfileRepository(InMemoryMonitoringProfileRepository):
    """
    Profile store where another writer commits just before an evaluation.

    interferences limits how many commits are beaten; None beats them all.
    """

    def __init__(self, alerts, interferences=None):
        super().__init__(alerts)
        self.interferences = interferences

    async def commit_evaluation(self, profile, expected_version, alerts):
        if self.interferences is None or self.interferences > 0:
            if self.interferences is not None:
                self.interferences -= 1
            current = await self.get_by_id(profile.id)
            await self.update(current, current.version)
        return await super().commit_evaluation(profile, expected_version, alerts)


class DoubleCommitProfileRepository(InMemoryMonitoringProfileRepository):
    """Profile store where another process commits the same evaluation first."""

    async def commit_evaluation(self, profile, expected_version, alerts):
        await super().commit_evaluation(profile, expected_version, alerts)
        return await super().commit_evaluation(profile, expected_version, ())


# =============================================================================
# Helpers
# =============================================================================

def drift_profile(business_id: str = "biz-1", **overrides) -> ProfileRequest:
    values = dict(
        business_id=business_id,
        name="Acme Ltd",
        score_change=50,
        payment_delay_days=30,
        alert_new_trade_reference=False,
        alert_new_payment=False,
        alert_new_score=False,
        alert_profile_change=False,
    )
    values.update(overrides)
    return ProfileRequest(**values)


def delay(business_id: str, days: int, clock, minutes: int = 0) -> PaymentDelayObservation:
    return PaymentDelayObservation(
        business_id=business_id,
        days_delayed=days,
        observed_at=clock.now + timedelta(minutes=minutes),
    )


async def seed_score(service, business_id: str, score: float, clock) -> None:
    """Give a profile a last known score through a new-score event."""
    await service.update_profile(drift_profile(business_id, alert_new_score=True))
    await service.evaluate(ScoreObservation(business_id, score, observed_at=clock.now))
    await service.update_profile(drift_profile(business_id))


# =============================================================================
# Profiles
# =============================================================================

class TestProfiles:

    @pytest.mark.asyncio
    async def test_create_and_get(self, monitoring_service):
        created = await monitoring_service.create_profile(drift_profile())

        fetched = await monitoring_service.get_profile("biz-1")

        assert fetched.id == created.id
        assert fetched.thresholds.score_change == 50
        assert fetched.frequency is NotificationFrequency.IMMEDIATE

    @pytest.mark.asyncio
    async def test_duplicate_profile_rejected(self, monitoring_service):
        await monitoring_service.create_profile(drift_profile())

        with pytest.raises(DuplicateProfileException):
            await monitoring_service.create_profile(drift_profile())

    @pytest.mark.asyncio
    async def test_inconsistent_thresholds_rejected(self, monitoring_service):
        with pytest.raises(ConfigurationError):
            await monitoring_service.create_profile(
                drift_profile(score_min=800, score_max=600)
            )

    @pytest.mark.asyncio
    async def test_unknown_frequency_rejected(self, monitoring_service):
        with pytest.raises(ConfigurationError):
            await monitoring_service.create_profile(drift_profile(frequency="monthly"))

    @pytest.mark.asyncio
    async def test_missing_profile(self, monitoring_service):
        with pytest.raises(ProfileNotFoundException):
            await monitoring_service.get_profile("nobody")

    @pytest.mark.asyncio
    async def test_update_keeps_state_and_bumps_version(self, monitoring_service, clock):
        await monitoring_service.create_profile(drift_profile())
        await monitoring_service.evaluate(delay("biz-1", 45, clock))

        updated = await monitoring_service.update_profile(
            drift_profile(payment_delay_days=60, frequency="weekly")
        )

        assert updated.version == 2
        assert updated.thresholds.payment_delay_days == 60
        assert updated.frequency is NotificationFrequency.WEEKLY
        assert updated.state.total_alerts_sent == 1

    @pytest.mark.asyncio
    async def test_monitoring_type_label(self, monitoring_service):
        created = await monitoring_service.create_profile(
            drift_profile(monitoring_type="payment_behavior")
        )

        assert created.monitoring_type is MonitoringType.PAYMENT_BEHAVIOR
        assert created.to_dict()["monitoring_type"] == "payment_behavior"

        with pytest.raises(ConfigurationError):
            await monitoring_service.create_profile(
                drift_profile("biz-2", monitoring_type="everything")
            )


# =============================================================================
# Evaluation
# =============================================================================

class TestEvaluation:

    @pytest.mark.asyncio
    async def test_drift_breach_and_quiet_repeat(self, monitoring_service, memory_alerts, clock):
        """750 -> 690 with threshold 50 alerts once; 690 again is quiet."""
        await monitoring_service.create_profile(drift_profile())
        await seed_score(monitoring_service, "biz-1", 750, clock)
        before = await monitoring_service.get_profile("biz-1")

        clock.advance(minutes=1)
        result = await monitoring_service.evaluate(
            ScoreObservation("biz-1", 690, observed_at=clock.now)
        )

        assert [a.category for a in result.alerts] == [AlertCategory.SCORE_CHANGE]
        alert = result.alerts[0]
        assert (alert.previous_value, alert.current_value, alert.change_amount) == (750, 690, -60)
        assert result.profile.state.last_credit_score == 690
        assert result.profile.state.total_alerts_sent == before.state.total_alerts_sent + 1
        assert len(result.tickets) == 1

        alert_time = clock.now
        clock.advance(minutes=1)
        repeat = await monitoring_service.evaluate(
            ScoreObservation("biz-1", 690, observed_at=clock.now)
        )

        assert repeat.alerts == ()
        assert repeat.profile.state.last_check_at == clock.now
        assert repeat.profile.state.last_alert_at == alert_time
        assert repeat.profile.state.total_alerts_sent == result.profile.state.total_alerts_sent
        assert await memory_alerts.get_by_id(alert.id) == alert

    @pytest.mark.asyncio
    async def test_periodic_profile_queues_then_suppresses(
        self,
        monitoring_service,
        scheduler,
        clock,
    ):
        await monitoring_service.create_profile(drift_profile(frequency="daily"))

        first = await monitoring_service.evaluate(delay("biz-1", 40, clock))
        clock.advance(hours=3)
        second = await monitoring_service.evaluate(delay("biz-1", 55, clock))

        assert len(first.alerts) == 1
        assert first.tickets == ()
        assert second.alerts == ()
        assert second.suppressed == (AlertCategory.PAYMENT_DELAY,)
        assert scheduler.pending_count(NotificationFrequency.DAILY) == 1

        released = await scheduler.flush(NotificationFrequency.DAILY)
        assert [t.alert_id for t in released] == [first.alerts[0].id]

        clock.advance(days=1)
        third = await monitoring_service.evaluate(delay("biz-1", 60, clock))
        assert len(third.alerts) == 1

    @pytest.mark.asyncio
    async def test_raised_minimum_alerts_on_unchanged_score(
        self,
        monitoring_service,
        clock,
    ):
        await monitoring_service.create_profile(drift_profile())
        await seed_score(monitoring_service, "biz-1", 690, clock)
        assert not (await monitoring_service.get_profile("biz-1")).state.band_rearmed

        updated = await monitoring_service.update_profile(drift_profile(score_min=700))
        assert updated.state.band_rearmed

        clock.advance(minutes=1)
        result = await monitoring_service.evaluate(
            ScoreObservation("biz-1", 690, observed_at=clock.now)
        )

        assert [a.category for a in result.alerts] == [AlertCategory.SCORE_THRESHOLD]
        assert result.alerts[0].threshold_value == 700
        assert not result.profile.state.band_rearmed

        clock.advance(minutes=1)
        repeat = await monitoring_service.evaluate(
            ScoreObservation("biz-1", 690, observed_at=clock.now)
        )
        assert repeat.alerts == ()

    @pytest.mark.asyncio
    async def test_inactive_profile_is_skipped(self, monitoring_service, clock):
        await monitoring_service.create_profile(drift_profile(is_active=False))

        result = await monitoring_service.evaluate(delay("biz-1", 90, clock))

        assert result.skipped
        assert result.alerts == ()
        assert result.profile.version == 0

    @pytest.mark.asyncio
    async def test_event_toggle_enables_alert(self, monitoring_service, clock):
        await monitoring_service.create_profile(
            drift_profile(alert_new_trade_reference=True)
        )

        result = await monitoring_service.evaluate(
            TradeReferenceObservation("biz-1", observed_at=clock.now)
        )

        assert [a.category for a in result.alerts] == [AlertCategory.NEW_TRADE_REFERENCE]
        assert result.alerts[0].title == "New Trade Reference Added"


# =============================================================================
# Concurrency
# =============================================================================

class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_evaluations_do_not_lose_updates(
        self,
        monitoring_service,
        memory_alerts,
        clock,
    ):
        await monitoring_service.create_profile(drift_profile())
        observations = [delay("biz-1", 40 + i, clock, minutes=i) for i in range(10)]

        results = await asyncio.gather(
            *(monitoring_service.evaluate(o) for o in observations)
        )

        profile = await monitoring_service.get_profile("biz-1")
        emitted = sum(len(r.alerts) for r in results)
        assert profile.version == 10
        assert profile.state.total_alerts_sent == emitted
        assert len(await memory_alerts.list_by_business("biz-1")) == emitted

    @pytest.mark.asyncio
    async def test_duplicate_in_flight_observation_runs_once(
        self,
        monitoring_service,
        memory_alerts,
        clock,
    ):
        await monitoring_service.create_profile(drift_profile())
        observation = delay("biz-1", 45, clock)

        first, second = await asyncio.gather(
            monitoring_service.evaluate(observation),
            monitoring_service.evaluate(observation),
        )

        assert first is second
        profile = await monitoring_service.get_profile("biz-1")
        assert profile.version == 1
        assert len(await memory_alerts.list_by_business("biz-1")) == 1

    @pytest.mark.asyncio
    async def test_lost_compare_and_swap_is_evaluated_again(
        self,
        memory_alerts,
        scheduler,
        clock,
    ):
        repository = InterferingProfileRepository(memory_alerts, interferences=1)
        service = MonitoringService(repository, scheduler, clock=clock)
        await service.create_profile(drift_profile())

        result = await service.evaluate(delay("biz-1", 45, clock))

        assert not result.conflict
        assert not result.requeue
        assert [a.category for a in result.alerts] == [AlertCategory.PAYMENT_DELAY]
        assert result.profile.version == 2
        assert result.profile.state.total_alerts_sent == 1
        assert len(await memory_alerts.list_by_business("biz-1")) == 1

    @pytest.mark.asyncio
    async def test_commit_that_keeps_losing_is_requeued(
        self,
        memory_alerts,
        scheduler,
        clock,
    ):
        repository = InterferingProfileRepository(memory_alerts)
        service = MonitoringService(repository, scheduler, clock=clock)
        await service.create_profile(drift_profile())

        result = await service.evaluate(delay("biz-1", 45, clock))

        assert result.conflict
        assert result.requeue
        assert result.alerts == ()
        assert result.profile.state.total_alerts_sent == 0
        assert await memory_alerts.list_by_business("biz-1") == []

    @pytest.mark.asyncio
    async def test_commit_already_applied_by_winner_is_a_noop(
        self,
        memory_alerts,
        scheduler,
        clock,
    ):
        repository = DoubleCommitProfileRepository(memory_alerts)
        service = MonitoringService(repository, scheduler, clock=clock)
        await service.create_profile(drift_profile())

        result = await service.evaluate(delay("biz-1", 45, clock))

        assert result.conflict
        assert not result.requeue
        assert result.profile.version == 1
        assert result.profile.state.total_alerts_sent == 1
        assert len(await memory_alerts.list_by_business("biz-1")) == 1

    @pytest.mark.asyncio
    async def test_profile_update_waits_for_running_evaluation(
        self,
        memory_alerts,
        scheduler,
        clock,
    ):
        repository = GatedProfileRepository(memory_alerts)
        repository.hold_commits = True
        service = MonitoringService(repository, scheduler, clock=clock)
        await service.create_profile(drift_profile())

        batch = asyncio.ensure_future(
            service.run_batch([delay("biz-1", 45, clock)], timeout=5)
        )
        await repository.commit_started.wait()
        update = asyncio.ensure_future(
            service.update_profile(drift_profile(name="Renamed"))
        )
        for _ in range(5):
            await asyncio.sleep(0)
        assert not update.done()

        repository.gate.set()
        report = await batch
        updated = await update

        assert report.alerts_emitted == 1
        assert report.requeued == []
        assert updated.name == "Renamed"
        assert updated.version == 2
        assert updated.state.total_alerts_sent == 1
        assert len(await memory_alerts.list_by_business("biz-1")) == 1

    @pytest.mark.asyncio
    async def test_business_locks_are_released(self, monitoring_service, clock):
        await monitoring_service.create_profile(drift_profile())

        await asyncio.gather(
            *(monitoring_service.evaluate(delay("biz-1", 40 + i, clock, minutes=i))
              for i in range(3)),
            monitoring_service.update_profile(drift_profile(name="Renamed")),
        )

        assert monitoring_service.locked_businesses == 0

    @pytest.mark.asyncio
    async def test_cancel_during_commit_completes_commit(
        self,
        memory_alerts,
        scheduler,
        clock,
    ):
        repository = GatedProfileRepository(memory_alerts)
        repository.hold_commits = True
        service = MonitoringService(repository, scheduler, clock=clock)
        await service.create_profile(drift_profile())

        task = asyncio.ensure_future(service.evaluate(delay("biz-1", 45, clock)))
        await repository.commit_started.wait()
        task.cancel()
        repository.gate.set()
        await asyncio.gather(task, return_exceptions=True)

        profile = await service.get_profile("biz-1")
        assert profile.version == 1
        assert profile.state.total_alerts_sent == 1
        assert len(await memory_alerts.list_by_business("biz-1")) == 1


# =============================================================================
# Batch
# =============================================================================

class TestBatch:

    @pytest.mark.asyncio
    async def test_batch_keeps_per_business_order(self, monitoring_service, clock):
        for business_id in ("biz-1", "biz-2", "biz-3"):
            await monitoring_service.create_profile(drift_profile(business_id))

        observations = [
            delay(business_id, 40 + i, clock, minutes=i)
            for i in range(3)
            for business_id in ("biz-1", "biz-2", "biz-3")
        ]

        report = await monitoring_service.run_batch(observations, timeout=5)

        assert report.requeued == []
        assert report.failed == []
        assert report.alerts_emitted == 9
        for business_id in ("biz-1", "biz-2", "biz-3"):
            expected = [o.observation_id for o in observations if o.business_id == business_id]
            actual = [r.observation_id for r in report.results if r.business_id == business_id]
            assert actual == expected

    @pytest.mark.asyncio
    async def test_batch_records_failures(self, monitoring_service, clock):
        await monitoring_service.create_profile(drift_profile())

        report = await monitoring_service.run_batch(
            [delay("biz-1", 45, clock), delay("unknown", 45, clock)],
            timeout=5,
        )

        assert len(report.results) == 1
        assert [f.code for f in report.failed] == ["PROFILE_NOT_FOUND"]
        assert report.failed[0].observation.business_id == "unknown"

    @pytest.mark.asyncio
    async def test_batch_timeout_requeues_unfinished_work(self, memory_alerts, scheduler, clock):
        repository = GatedProfileRepository(memory_alerts)
        service = MonitoringService(repository, scheduler, clock=clock)
        await service.create_profile(drift_profile("biz-fast"))
        await service.create_profile(drift_profile("biz-slow"))
        repository.blocked_reads.add("biz-slow")

        slow = delay("biz-slow", 45, clock)
        fast = delay("biz-fast", 45, clock)
        report = await service.run_batch([slow, fast], timeout=0.2)

        assert report.timed_out
        assert report.requeued == [slow]
        assert [r.business_id for r in report.results] == ["biz-fast"]

        repository.blocked_reads.clear()
        untouched = await service.get_profile("biz-slow")
        assert untouched.version == 0
        assert await memory_alerts.list_by_business("biz-slow") == []

    @pytest.mark.asyncio
    async def test_batch_requeues_business_after_lost_commits(
        self,
        memory_alerts,
        scheduler,
        clock,
    ):
        repository = InterferingProfileRepository(memory_alerts)
        service = MonitoringService(repository, scheduler, clock=clock)
        await service.create_profile(drift_profile())

        first = delay("biz-1", 45, clock)
        second = delay("biz-1", 50, clock, minutes=1)
        report = await service.run_batch([first, second], timeout=5)

        assert report.requeued == [first, second]
        assert report.results == []
        assert report.failed == []
        assert await memory_alerts.list_by_business("biz-1") == []

    @pytest.mark.asyncio
    async def test_empty_batch(self, monitoring_service):
        report = await monitoring_service.run_batch([])

        assert report.results == []
        assert not report.timed_out
