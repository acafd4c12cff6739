"""PostgreSQL implementation of ScoreResultRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from credit_monitor.domain.entities import ComponentScores, RiskCategory, ScoreResult
from credit_monitor.domain.entities.clock import as_utc
from credit_monitor.domain.interfaces import ScoreResultRepository
from credit_monitor.infrastructure.database import DatabaseSessionManager
from credit_monitor.infrastructure.database.models import ScoreResultModel


class PostgresScoreResultRepository(ScoreResultRepository):
    """
    PostgreSQL implementation of the ScoreResult repository.

    Each call runs in its own transactional session.
    """

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def save(self, result: ScoreResult) -> ScoreResult:
        """Persist a score result to the database."""
        components = result.components
        model = ScoreResultModel(
            id=str(result.id),
            business_id=result.business_id,
            composite_score=result.composite_score,
            financial_strength=components.financial_strength,
            payment_behavior=components.payment_behavior,
            business_stability=components.business_stability,
            compliance=components.compliance,
            grade=result.grade,
            risk_category=result.risk_category.value,
            recommended_limit_cents=result.recommended_limit_cents,
            scale_factor_cents=result.scale_factor_cents,
            weights_applied=dict(result.weights_applied),
            missing_components=list(result.missing_components),
            valid_from=result.valid_from,
            valid_until=result.valid_until,
            created_at=result.created_at,
        )

        async with self._db.session() as session:
            session.add(model)
            await session.flush()

        return result

    async def get_latest(self, business_id: str) -> Optional[ScoreResult]:
        """Retrieve the newest result for a business."""
        results = await self.get_history(business_id, limit=1)
        return results[0] if results else None

    async def get_history(
        self,
        business_id: str,
        limit: int = 10,
        offset: int = 0,
    ) -> List[ScoreResult]:
        """Retrieve results for a business, ordered by created_at descending."""
        stmt = (
            select(ScoreResultModel)
            .where(ScoreResultModel.business_id == business_id)
            .order_by(ScoreResultModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: ScoreResultModel) -> ScoreResult:
        """Convert ORM model to domain entity."""
        return ScoreResult(
            id=UUID(model.id),
            business_id=model.business_id,
            composite_score=model.composite_score,
            components=ComponentScores(
                financial_strength=model.financial_strength,
                payment_behavior=model.payment_behavior,
                business_stability=model.business_stability,
                compliance=model.compliance,
            ),
            grade=model.grade,
            risk_category=RiskCategory(model.risk_category),
            recommended_limit_cents=model.recommended_limit_cents,
            scale_factor_cents=model.scale_factor_cents,
            valid_from=as_utc(model.valid_from),
            valid_until=as_utc(model.valid_until),
            weights_applied=dict(model.weights_applied or {}),
            missing_components=tuple(model.missing_components or ()),
            created_at=as_utc(model.created_at),
        )
