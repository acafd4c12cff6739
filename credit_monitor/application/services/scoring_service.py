"""Scoring service - orchestrates the business scoring use case."""

from datetime import datetime
from typing import List, Optional

import structlog

from credit_monitor.application.dto import ScoreHistoryResponse
from credit_monitor.core.metrics import record_score_result, track_scoring_latency
from credit_monitor.domain.entities import EntityRef, ScoreObservation, ScoreResult
from credit_monitor.domain.exceptions import ProfileNotFoundException
from credit_monitor.domain.interfaces import BusinessMetricsProvider, ScoreResultRepository
from credit_monitor.service.scoring import ScoringEngine

from .monitoring_service import MonitoringService

logger = structlog.get_logger(__name__)


class ScoringService:
    """
    Application service for scoring use cases.

    When a MonitoringService is attached, every new result is fed to it
    as a score observation.
    """

    def __init__(
        self,
        metrics_provider: BusinessMetricsProvider,
        score_repository: ScoreResultRepository,
        engine: Optional[ScoringEngine] = None,
        monitoring_service: Optional[MonitoringService] = None,
    ):
        self._metrics_provider = metrics_provider
        self._score_repo = score_repository
        self._engine = engine or ScoringEngine()
        self._monitoring = monitoring_service

    async def score_business(
        self,
        business_id: str,
        now: Optional[datetime] = None,
    ) -> ScoreResult:
        """
        Score a business from its current metrics.

        Args:
            business_id: The business identifier
            now: Start of the validity window (defaults to the current time)

        Returns:
            The new, persisted ScoreResult

        Raises:
            IncompleteInputError: If no component score is available; no
                result is stored and earlier results are untouched
        """
        log = logger.bind(business_id=business_id)
        log.info("scoring_requested")

        with track_scoring_latency():
            metrics = await self._metrics_provider.get_metrics(business_id)
            result = self._engine.score(metrics, now)
            await self._score_repo.save(result)

        record_score_result(result.grade, result.risk_category.value, result.composite_score)
        log.info(
            "score_generated",
            score_id=str(result.id),
            composite_score=result.composite_score,
            grade=result.grade,
            risk_category=result.risk_category.value,
            recommended_limit_cents=result.recommended_limit_cents,
            missing_components=list(result.missing_components),
        )

        if self._monitoring is not None:
            await self._notify_monitoring(result)

        return result

    async def get_latest(self, business_id: str) -> Optional[ScoreResult]:
        return await self._score_repo.get_latest(business_id)

    async def get_history(
        self,
        business_id: str,
        limit: int = 10,
    ) -> ScoreHistoryResponse:
        """
        Get score history for a business.

        Args:
            business_id: The business identifier
            limit: Maximum number of results to return

        Returns:
            ScoreHistoryResponse, newest first
        """
        results: List[ScoreResult] = await self._score_repo.get_history(business_id, limit=limit)
        return ScoreHistoryResponse.from_entities(business_id, results)

    async def _notify_monitoring(self, result: ScoreResult) -> None:
        observation = ScoreObservation(
            business_id=result.business_id,
            score=result.composite_score,
            observed_at=result.created_at,
            observation_id=str(result.id),
            related_entity=EntityRef("ScoreResult", str(result.id)),
        )
        try:
            await self._monitoring.evaluate(observation)
        except ProfileNotFoundException:
            logger.debug("score_not_monitored", business_id=result.business_id)
