"""Alert service - alert queries and lifecycle transitions."""

from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

import structlog

from credit_monitor.application.dto import AlertStatistics
from credit_monitor.domain.entities import Alert
from credit_monitor.domain.entities.clock import utcnow
from credit_monitor.domain.exceptions import AlertNotFoundException
from credit_monitor.domain.interfaces import AlertRepository

logger = structlog.get_logger(__name__)


class AlertService:
    """
    Application service for alert use cases.

    The acting identity is always passed in explicitly.
    """

    def __init__(
        self,
        alert_repository: AlertRepository,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._alert_repo = alert_repository
        self._clock = clock

    async def list_alerts(
        self,
        business_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Alert]:
        return await self._alert_repo.list_by_business(
            business_id,
            unread_only=unread_only,
            limit=limit,
            offset=offset,
        )

    async def get_alert(self, alert_id: UUID) -> Alert:
        """
        Raises:
            AlertNotFoundException: If the alert does not exist
        """
        alert = await self._alert_repo.get_by_id(alert_id)
        if alert is None:
            raise AlertNotFoundException(str(alert_id))
        return alert

    async def mark_read(self, alert_id: UUID) -> Alert:
        """
        Mark an alert as read.

        Only the read flag is written, so an acknowledgment stored in the
        meantime is kept.

        Raises:
            AlertNotFoundException: If the alert does not exist
            AlertExpiredError: If the alert has expired
        """
        alert = await self.get_alert(alert_id)
        if alert.mark_read(self._clock()) is alert:
            return alert

        stored = await self._alert_repo.mark_read(alert_id)
        logger.info("alert_read", alert_id=str(alert_id), business_id=alert.business_id)
        return stored

    async def acknowledge(
        self,
        alert_id: UUID,
        actor: str,
        notes: Optional[str] = None,
    ) -> Alert:
        """
        Acknowledge an alert on behalf of an actor.

        Args:
            alert_id: The alert to acknowledge
            actor: Identity of the acknowledging user
            notes: Optional acknowledgment notes

        Returns:
            The alert, now read and acknowledged

        Raises:
            AlertNotFoundException: If the alert does not exist
            AlertExpiredError: If the alert has expired; nothing is stored
            InvalidAcknowledgementException: If actor is blank
        """
        alert = await self.get_alert(alert_id)
        updated = alert.acknowledge(actor, self._clock(), notes)
        await self._alert_repo.update_lifecycle(updated)

        logger.info(
            "alert_acknowledged",
            alert_id=str(alert_id),
            business_id=alert.business_id,
            acknowledged_by=actor,
        )
        return updated

    async def get_statistics(self, business_id: str) -> AlertStatistics:
        """Alert counts for a business, by read state, severity and category."""
        alerts = await self._alert_repo.list_by_business(business_id)
        return AlertStatistics.from_alerts(business_id, alerts)
