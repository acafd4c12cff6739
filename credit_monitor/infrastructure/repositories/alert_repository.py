"""PostgreSQL implementation of AlertRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update

from credit_monitor.domain.entities import (
    Alert,
    AlertCategory,
    AlertLifecycle,
    AlertSeverity,
    EntityRef,
)
from credit_monitor.domain.entities.clock import as_utc
from credit_monitor.domain.exceptions import AlertNotFoundException
from credit_monitor.domain.interfaces import AlertRepository
from credit_monitor.infrastructure.database import DatabaseSessionManager
from credit_monitor.infrastructure.database.models import AlertModel


def alert_to_model(alert: Alert) -> AlertModel:
    """Convert an alert entity to its ORM model."""
    related = alert.related_entity
    lifecycle = alert.lifecycle
    return AlertModel(
        id=str(alert.id),
        alert_number=alert.alert_number,
        business_id=alert.business_id,
        profile_id=str(alert.profile_id),
        category=alert.category.value,
        severity=alert.severity.value,
        title=alert.title,
        description=alert.description,
        previous_value=alert.previous_value,
        current_value=alert.current_value,
        threshold_value=alert.threshold_value,
        change_amount=alert.change_amount,
        change_percentage=alert.change_percentage,
        related_entity_type=related.entity_type if related else None,
        related_entity_id=related.entity_id if related else None,
        is_read=lifecycle.read,
        is_acknowledged=lifecycle.acknowledged,
        acknowledged_by=lifecycle.acknowledged_by,
        acknowledged_at=lifecycle.acknowledged_at,
        acknowledgment_notes=lifecycle.notes,
        expires_at=alert.expires_at,
        created_at=alert.created_at,
    )


def alert_from_model(model: AlertModel) -> Alert:
    """Convert an ORM model to an alert entity."""
    related = None
    if model.related_entity_type is not None:
        related = EntityRef(model.related_entity_type, model.related_entity_id or "")

    return Alert(
        id=UUID(model.id),
        alert_number=model.alert_number,
        business_id=model.business_id,
        profile_id=UUID(model.profile_id),
        category=AlertCategory(model.category),
        severity=AlertSeverity(model.severity),
        title=model.title,
        description=model.description,
        previous_value=model.previous_value,
        current_value=model.current_value,
        threshold_value=model.threshold_value,
        change_amount=model.change_amount,
        change_percentage=model.change_percentage,
        related_entity=related,
        lifecycle=AlertLifecycle(
            read=model.is_read,
            acknowledged=model.is_acknowledged,
            acknowledged_by=model.acknowledged_by,
            acknowledged_at=as_utc(model.acknowledged_at),
            notes=model.acknowledgment_notes,
        ),
        expires_at=as_utc(model.expires_at),
        created_at=as_utc(model.created_at),
    )


class PostgresAlertRepository(AlertRepository):
    """PostgreSQL-backed alert repository."""

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def get_by_id(self, alert_id: UUID) -> Optional[Alert]:
        stmt = select(AlertModel).where(AlertModel.id == str(alert_id))
        async with self._db.session() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()

        if model is None:
            return None

        return alert_from_model(model)

    async def list_by_business(
        self,
        business_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Alert]:
        stmt = select(AlertModel).where(AlertModel.business_id == business_id)
        if unread_only:
            stmt = stmt.where(AlertModel.is_read.is_(False))
        stmt = stmt.order_by(AlertModel.created_at.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._db.session() as session:
            result = await session.execute(stmt)
            models = result.scalars().all()

        return [alert_from_model(model) for model in models]

    async def update_lifecycle(self, alert: Alert) -> Alert:
        lifecycle = alert.lifecycle
        stmt = (
            update(AlertModel)
            .where(AlertModel.id == str(alert.id))
            .values(
                is_read=lifecycle.read,
                is_acknowledged=lifecycle.acknowledged,
                acknowledged_by=lifecycle.acknowledged_by,
                acknowledged_at=lifecycle.acknowledged_at,
                acknowledgment_notes=lifecycle.notes,
            )
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            if result.rowcount != 1:
                raise AlertNotFoundException(str(alert.id))

        return alert

    async def mark_read(self, alert_id: UUID) -> Alert:
        stmt = (
            update(AlertModel)
            .where(AlertModel.id == str(alert_id), AlertModel.is_read.is_(False))
            .values(is_read=True)
        )
        async with self._db.session() as session:
            await session.execute(stmt)

        alert = await self.get_by_id(alert_id)
        if alert is None:
            raise AlertNotFoundException(str(alert_id))
        return alert
