"""PostgreSQL implementation of MonitoringProfileRepository."""

from dataclasses import replace
from datetime import datetime
from typing import Dict, Mapping, Optional, Sequence
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from credit_monitor.domain.entities import (
    Alert,
    AlertCategory,
    AlertToggles,
    MonitoringProfile,
    MonitoringThresholds,
    MonitoringType,
    NotificationChannels,
    NotificationFrequency,
    ProfileState,
)
from credit_monitor.domain.entities.clock import as_utc, utcnow
from credit_monitor.domain.exceptions import DuplicateProfileException
from credit_monitor.domain.interfaces import MonitoringProfileRepository
from credit_monitor.infrastructure.database import DatabaseSessionManager
from credit_monitor.infrastructure.database.models import MonitoringProfileModel

from .alert_repository import alert_to_model

logger = structlog.get_logger(__name__)


def _encode_times(values: Mapping[AlertCategory, datetime]) -> Dict[str, str]:
    return {category.value: moment.isoformat() for category, moment in values.items()}


def _decode_times(values: Optional[Mapping[str, str]]) -> Dict[AlertCategory, datetime]:
    return {
        AlertCategory(key): as_utc(datetime.fromisoformat(moment))
        for key, moment in (values or {}).items()
    }


def _config_values(profile: MonitoringProfile) -> dict:
    """Column values for the configuration part of a profile."""
    thresholds = profile.thresholds
    return {
        "name": profile.name,
        "is_active": profile.is_active,
        "notes": profile.notes,
        "score_min": thresholds.score_min,
        "score_max": thresholds.score_max,
        "score_change": thresholds.score_change,
        "payment_delay_days": thresholds.payment_delay_days,
        "overdue_amount_cents": thresholds.overdue_amount_cents,
        "alert_new_trade_reference": profile.toggles.new_trade_reference,
        "alert_new_payment": profile.toggles.new_payment,
        "alert_new_score": profile.toggles.new_score,
        "alert_profile_change": profile.toggles.profile_change,
        "email_enabled": profile.channels.email,
        "sms_enabled": profile.channels.sms,
        "in_app_enabled": profile.channels.in_app,
        "frequency": profile.frequency.value,
        "monitoring_type": profile.monitoring_type.value,
    }


def _state_values(state: ProfileState) -> dict:
    """Column values for the rolling state of a profile."""
    return {
        "last_check_at": state.last_check_at,
        "last_alert_at": state.last_alert_at,
        "total_alerts_sent": state.total_alerts_sent,
        "last_credit_score": state.last_credit_score,
        "category_last_alert_at": _encode_times(state.category_last_alert_at),
        "category_watermarks": _encode_times(state.category_watermarks),
        "suppressed_counts": {
            category.value: count for category, count in state.suppressed_counts.items()
        },
        "band_rearmed": state.band_rearmed,
    }


class PostgresMonitoringProfileRepository(MonitoringProfileRepository):
    """
    PostgreSQL-backed monitoring profile repository.

    Writes are compare-and-swap updates on (id, version); the rowcount of
    the UPDATE tells whether this writer won.
    """

    def __init__(self, db: DatabaseSessionManager):
        self._db = db

    async def create(self, profile: MonitoringProfile) -> MonitoringProfile:
        model = MonitoringProfileModel(
            id=str(profile.id),
            business_id=profile.business_id,
            version=profile.version,
            created_at=profile.created_at,
            updated_at=profile.created_at,
            **_config_values(profile),
            **_state_values(profile.state),
        )

        try:
            async with self._db.session() as session:
                session.add(model)
                await session.flush()
        except IntegrityError as e:
            raise DuplicateProfileException(profile.business_id) from e

        return profile

    async def get_by_business_id(self, business_id: str) -> Optional[MonitoringProfile]:
        stmt = select(MonitoringProfileModel).where(
            MonitoringProfileModel.business_id == business_id
        )
        return await self._fetch_one(stmt)

    async def get_by_id(self, profile_id: UUID) -> Optional[MonitoringProfile]:
        stmt = select(MonitoringProfileModel).where(
            MonitoringProfileModel.id == str(profile_id)
        )
        return await self._fetch_one(stmt)

    async def update(
        self,
        profile: MonitoringProfile,
        expected_version: int,
    ) -> Optional[MonitoringProfile]:
        stmt = (
            update(MonitoringProfileModel)
            .where(
                MonitoringProfileModel.id == str(profile.id),
                MonitoringProfileModel.version == expected_version,
            )
            .values(
                version=expected_version + 1,
                updated_at=utcnow(),
                band_rearmed=profile.state.band_rearmed,
                **_config_values(profile),
            )
        )
        async with self._db.session() as session:
            result = await session.execute(stmt)
            won = result.rowcount == 1

        if not won:
            logger.info(
                "profile_update_conflict",
                profile_id=str(profile.id),
                expected_version=expected_version,
            )
            return None

        return await self.get_by_id(profile.id)

    async def commit_evaluation(
        self,
        profile: MonitoringProfile,
        expected_version: int,
        alerts: Sequence[Alert],
    ) -> Optional[MonitoringProfile]:
        stmt = (
            update(MonitoringProfileModel)
            .where(
                MonitoringProfileModel.id == str(profile.id),
                MonitoringProfileModel.version == expected_version,
            )
            .values(
                version=expected_version + 1,
                updated_at=utcnow(),
                **_state_values(profile.state),
            )
        )

        async with self._db.session() as session:
            result = await session.execute(stmt)
            if result.rowcount != 1:
                return None
            session.add_all([alert_to_model(alert) for alert in alerts])
            await session.flush()

        return replace(profile, version=expected_version + 1)

    async def _fetch_one(self, stmt) -> Optional[MonitoringProfile]:
        async with self._db.session() as session:
            result = await session.execute(stmt)
            model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    def _to_entity(self, model: MonitoringProfileModel) -> MonitoringProfile:
        """Convert ORM model to domain entity."""
        return MonitoringProfile(
            id=UUID(model.id),
            business_id=model.business_id,
            name=model.name,
            is_active=model.is_active,
            notes=model.notes,
            thresholds=MonitoringThresholds(
                score_min=model.score_min,
                score_max=model.score_max,
                score_change=model.score_change,
                payment_delay_days=model.payment_delay_days,
                overdue_amount_cents=model.overdue_amount_cents,
            ),
            toggles=AlertToggles(
                new_trade_reference=model.alert_new_trade_reference,
                new_payment=model.alert_new_payment,
                new_score=model.alert_new_score,
                profile_change=model.alert_profile_change,
            ),
            channels=NotificationChannels(
                email=model.email_enabled,
                sms=model.sms_enabled,
                in_app=model.in_app_enabled,
            ),
            frequency=NotificationFrequency(model.frequency),
            monitoring_type=MonitoringType(model.monitoring_type),
            state=ProfileState(
                last_check_at=as_utc(model.last_check_at),
                last_alert_at=as_utc(model.last_alert_at),
                total_alerts_sent=model.total_alerts_sent,
                last_credit_score=model.last_credit_score,
                category_last_alert_at=_decode_times(model.category_last_alert_at),
                category_watermarks=_decode_times(model.category_watermarks),
                suppressed_counts={
                    AlertCategory(key): count
                    for key, count in (model.suppressed_counts or {}).items()
                },
                band_rearmed=model.band_rearmed,
            ),
            version=model.version,
            created_at=as_utc(model.created_at),
        )
