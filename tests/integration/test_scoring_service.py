"""
Integration tests for the scoring service.

These tests verify:
1. Scoring a business from its metrics and persisting the result
2. Score history and trend
3. Incomplete input leaves earlier results untouched
4. New scores are fed to monitoring when a profile exists
"""

from datetime import timedelta

import pytest

from credit_monitor.application.dto import ProfileRequest
from credit_monitor.domain.entities import (
    AlertCategory,
    BusinessMetrics,
    ComponentScores,
    RiskCategory,
)
from credit_monitor.domain.exceptions import IncompleteInputError


class TestScoreBusiness:

    @pytest.mark.asyncio
    async def test_reference_business(self, scoring_service, metrics_provider, clock):
        result = await scoring_service.score_business("biz_reference", now=clock.now)

        assert result.composite_score == 735
        assert result.grade == "A"
        assert result.risk_category is RiskCategory.MEDIUM
        assert result.recommended_limit_cents > 0
        assert metrics_provider.call_count == 1

        latest = await scoring_service.get_latest("biz_reference")
        assert latest.id == result.id

    @pytest.mark.asyncio
    async def test_missing_component_is_renormalized(self, scoring_service, clock):
        result = await scoring_service.score_business("biz_no_compliance", now=clock.now)

        assert result.composite_score == 717
        assert result.missing_components == ("compliance",)

    @pytest.mark.asyncio
    async def test_distressed_business(self, scoring_service, clock):
        result = await scoring_service.score_business("biz_distressed", now=clock.now)

        assert result.risk_category is RiskCategory.VERY_HIGH
        assert result.recommended_limit_cents == 0

    @pytest.mark.asyncio
    async def test_unknown_business_is_incomplete(self, scoring_service):
        with pytest.raises(IncompleteInputError):
            await scoring_service.score_business("biz_unknown")

        assert await scoring_service.get_latest("biz_unknown") is None

    @pytest.mark.asyncio
    async def test_failed_rescore_keeps_history(self, scoring_service, metrics_provider, clock):
        first = await scoring_service.score_business("biz_reference", now=clock.now)
        metrics_provider.put(BusinessMetrics("biz_reference", ComponentScores()))

        with pytest.raises(IncompleteInputError):
            await scoring_service.score_business("biz_reference", now=clock.advance(days=1))

        history = await scoring_service.get_history("biz_reference")
        assert [s.score_id for s in history.scores] == [str(first.id)]


class TestScoreHistory:

    @pytest.mark.asyncio
    async def test_history_newest_first_with_trend(
        self,
        scoring_service,
        metrics_provider,
        clock,
    ):
        await scoring_service.score_business("biz_reference", now=clock.now)
        metrics_provider.put(BusinessMetrics(
            "biz_reference",
            ComponentScores(900, 800, 700, 900),
            scale_factor_cents=1_000_000,
        ))
        newer = await scoring_service.score_business(
            "biz_reference",
            now=clock.now + timedelta(days=1),
        )

        history = await scoring_service.get_history("biz_reference", limit=5)

        assert history.scores[0].score_id == str(newer.id)
        assert len(history.scores) == 2
        assert history.trend == newer.composite_score - 735

    @pytest.mark.asyncio
    async def test_history_limit(self, scoring_service, clock):
        for day in range(3):
            await scoring_service.score_business(
                "biz_reference",
                now=clock.now + timedelta(days=day),
            )

        history = await scoring_service.get_history("biz_reference", limit=2)

        assert len(history.scores) == 2


class TestScoreMonitoring:

    @pytest.mark.asyncio
    async def test_new_score_feeds_monitoring(
        self,
        scoring_service,
        monitoring_service,
        alert_service,
        clock,
    ):
        await monitoring_service.create_profile(ProfileRequest(
            business_id="biz_reference",
            score_min=800,
        ))

        result = await scoring_service.score_business("biz_reference", now=clock.now)

        alerts = await alert_service.list_alerts("biz_reference")
        assert {a.category for a in alerts} == {
            AlertCategory.SCORE_THRESHOLD,
            AlertCategory.NEW_SCORE,
        }
        threshold = next(a for a in alerts if a.category is AlertCategory.SCORE_THRESHOLD)
        assert threshold.title == "Credit Score Below Minimum Threshold"
        assert threshold.related_entity.entity_id == str(result.id)

        profile = await monitoring_service.get_profile("biz_reference")
        assert profile.state.last_credit_score == 735

    @pytest.mark.asyncio
    async def test_unmonitored_business_scores_normally(self, scoring_service, clock):
        result = await scoring_service.score_business("biz_reference", now=clock.now)

        assert result.composite_score == 735
