"""
Integration tests for metrics tracking.

These tests verify:
1. Prometheus exposition contains the custom metrics
2. Business metrics (score results, alerts, suppressions) are tracked
3. Technical metrics (evaluations, conflicts, queue depth) are recorded
"""

import pytest
from prometheus_client import REGISTRY

from credit_monitor.application.dto import ProfileRequest
from credit_monitor.core.metrics import get_metrics, get_metrics_content_type
from credit_monitor.domain.entities import NotificationFrequency, PaymentDelayObservation


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetricsExposition:

    def test_exposition_format(self):
        content = get_metrics().decode()

        assert "# HELP credit_monitor_score_results_total" in content
        assert "credit_monitor_notification_queue_depth" in content
        assert "text/plain" in get_metrics_content_type()


class TestBusinessMetrics:

    @pytest.mark.asyncio
    async def test_score_result_counted(self, scoring_service, clock):
        before = sample(
            "credit_monitor_score_results_total",
            grade="A",
            risk_category="MEDIUM",
        )

        await scoring_service.score_business("biz_reference", now=clock.now)

        after = sample(
            "credit_monitor_score_results_total",
            grade="A",
            risk_category="MEDIUM",
        )
        assert after == before + 1

    @pytest.mark.asyncio
    async def test_alert_and_suppression_counted(self, monitoring_service, clock):
        await monitoring_service.create_profile(ProfileRequest(
            business_id="biz-metrics",
            payment_delay_days=30,
            alert_new_payment=False,
            frequency="daily",
        ))
        emitted_before = sample(
            "credit_monitor_alerts_emitted_total",
            category="payment_delay",
            severity="CRITICAL",
        )
        suppressed_before = sample(
            "credit_monitor_alerts_suppressed_total",
            category="payment_delay",
        )

        await monitoring_service.evaluate(
            PaymentDelayObservation("biz-metrics", 45, observed_at=clock.now)
        )
        clock.advance(minutes=10)
        await monitoring_service.evaluate(
            PaymentDelayObservation("biz-metrics", 50, observed_at=clock.now)
        )

        assert sample(
            "credit_monitor_alerts_emitted_total",
            category="payment_delay",
            severity="CRITICAL",
        ) == emitted_before + 1
        assert sample(
            "credit_monitor_alerts_suppressed_total",
            category="payment_delay",
        ) == suppressed_before + 1


class TestTechnicalMetrics:

    @pytest.mark.asyncio
    async def test_evaluation_outcomes_and_queue_depth(
        self,
        monitoring_service,
        scheduler,
        clock,
    ):
        await monitoring_service.create_profile(ProfileRequest(
            business_id="biz-queue",
            payment_delay_days=30,
            alert_new_payment=False,
            frequency="weekly",
        ))
        alerted_before = sample("credit_monitor_evaluations_total", outcome="alerted")

        await monitoring_service.evaluate(
            PaymentDelayObservation("biz-queue", 45, observed_at=clock.now)
        )

        assert sample("credit_monitor_evaluations_total", outcome="alerted") == alerted_before + 1
        assert sample("credit_monitor_notification_queue_depth", frequency="weekly") == 1

        await scheduler.flush(NotificationFrequency.WEEKLY)

        assert sample("credit_monitor_notification_queue_depth", frequency="weekly") == 0
