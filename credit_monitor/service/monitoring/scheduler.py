"""
Notification Scheduler.

Decides when alerts are handed to the delivery layer. Alerts of
IMMEDIATE profiles are returned as tickets straight away; the rest wait
in a per-profile queue until flush() is called for their frequency.
Every recently created alert is handed off at most once.
"""

import asyncio
from collections import defaultdict, deque
from typing import Deque, Dict, List, Optional, Sequence, Set, Tuple
from uuid import UUID

import structlog

from credit_monitor.core.metrics import record_notifications, set_queue_depth
from credit_monitor.domain.entities import (
    Alert,
    MonitoringProfile,
    NotificationFrequency,
    NotificationTicket,
)

logger = structlog.get_logger(__name__)


class NotificationScheduler:
    """
    In-process notification hand-off point.

    Safe to share between coroutines; queue mutations run under a lock.
    Only the most recent `max_tracked` alert ids are remembered for the
    at-most-once check, so memory stays bounded.
    """

    def __init__(self, max_tracked: int = 10_000):
        self._pending: Dict[UUID, List[Tuple[NotificationFrequency, NotificationTicket]]] = (
            defaultdict(list)
        )
        self._max_tracked = max_tracked
        self._seen: Set[UUID] = set()
        self._seen_order: Deque[UUID] = deque()
        self._lock = asyncio.Lock()

    async def schedule(
        self,
        profile: MonitoringProfile,
        alerts: Sequence[Alert],
    ) -> List[NotificationTicket]:
        """
        Route freshly created alerts.

        Args:
            profile: The profile the alerts belong to
            alerts: Newly created alerts

        Returns:
            Tickets ready for immediate delivery. Empty for periodic
            profiles, whose alerts are queued instead.
        """
        channels = profile.channels.enabled()
        if not channels:
            logger.info(
                "notification_skipped_no_channels",
                profile_id=str(profile.id),
                business_id=profile.business_id,
                alerts=len(alerts),
            )
            return []

        async with self._lock:
            tickets = []
            for alert in alerts:
                if alert.id in self._seen:
                    continue
                self._remember(alert.id)
                tickets.append(NotificationTicket(
                    alert_id=alert.id,
                    business_id=alert.business_id,
                    channels=channels,
                    severity=alert.severity,
                ))

            if profile.frequency.is_immediate:
                record_notifications("immediate", len(tickets))
                return tickets

            self._pending[profile.id].extend(
                (profile.frequency, ticket) for ticket in tickets
            )
            self._update_depth(profile.frequency)

        if tickets:
            logger.debug(
                "notifications_queued",
                profile_id=str(profile.id),
                frequency=profile.frequency.value,
                count=len(tickets),
            )
        return []

    async def flush(self, frequency: NotificationFrequency) -> List[NotificationTicket]:
        """
        Release every ticket queued at the given cadence.

        Args:
            frequency: The cadence whose timer fired

        Returns:
            All pending tickets for that cadence; they are removed from
            the queue and will not be returned again

        Raises:
            ValueError: If frequency is IMMEDIATE
        """
        if frequency.is_immediate:
            raise ValueError("IMMEDIATE alerts are never queued")

        async with self._lock:
            released: List[NotificationTicket] = []
            for profile_id in list(self._pending):
                entries = self._pending[profile_id]
                keep = [entry for entry in entries if entry[0] is not frequency]
                released.extend(ticket for freq, ticket in entries if freq is frequency)
                if keep:
                    self._pending[profile_id] = keep
                else:
                    del self._pending[profile_id]
            self._update_depth(frequency)

        record_notifications("batch", len(released))
        logger.info(
            "notifications_flushed",
            frequency=frequency.value,
            count=len(released),
        )
        return released

    def pending_count(self, frequency: Optional[NotificationFrequency] = None) -> int:
        """Number of queued tickets, optionally for one cadence."""
        return sum(
            1
            for entries in self._pending.values()
            for freq, _ in entries
            if frequency is None or freq is frequency
        )

    @property
    def tracked_count(self) -> int:
        """Number of alert ids currently remembered as handed off."""
        return len(self._seen)

    def _remember(self, alert_id: UUID) -> None:
        self._seen.add(alert_id)
        self._seen_order.append(alert_id)
        if len(self._seen_order) > self._max_tracked:
            self._seen.discard(self._seen_order.popleft())

    def _update_depth(self, frequency: NotificationFrequency) -> None:
        set_queue_depth(frequency.value, self.pending_count(frequency))
