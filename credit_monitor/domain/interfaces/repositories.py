"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from credit_monitor.domain.entities import Alert, MonitoringProfile, ScoreResult


class ScoreResultRepository(ABC):
    """
    Abstract repository for ScoreResult persistence.

    Results are append-only: every scoring request adds a row.
    """

    @abstractmethod
    async def save(self, result: ScoreResult) -> ScoreResult:
        """
        Persist a score result.

        Args:
            result: The result to save

        Returns:
            The saved result
        """
        ...

    @abstractmethod
    async def get_latest(self, business_id: str) -> Optional[ScoreResult]:
        """
        Retrieve the most recent result for a business.

        Args:
            business_id: The business identifier

        Returns:
            The newest result if any, None otherwise
        """
        ...

    @abstractmethod
    async def get_history(
        self,
        business_id: str,
        limit: int = 10,
        offset: int = 0,
    ) -> List[ScoreResult]:
        """
        Retrieve past results for a business.

        Args:
            business_id: The business identifier
            limit: Maximum number of results to return
            offset: Number of results to skip

        Returns:
            List of results, ordered by created_at descending
        """
        ...


class MonitoringProfileRepository(ABC):
    """
    Abstract repository for MonitoringProfile persistence.

    Every write is a compare-and-swap on (profile id, version); a
    successful write stores the profile with version + 1.
    """

    @abstractmethod
    async def create(self, profile: MonitoringProfile) -> MonitoringProfile:
        """
        Persist a new profile.

        Args:
            profile: The profile to create

        Returns:
            The stored profile

        Raises:
            DuplicateProfileException: If the business already has a profile
        """
        ...

    @abstractmethod
    async def get_by_business_id(self, business_id: str) -> Optional[MonitoringProfile]:
        """
        Retrieve the profile of a business.

        Args:
            business_id: The business identifier

        Returns:
            The profile if found, None otherwise
        """
        ...

    @abstractmethod
    async def get_by_id(self, profile_id: UUID) -> Optional[MonitoringProfile]:
        """
        Retrieve a profile by ID.

        Args:
            profile_id: The profile's unique identifier

        Returns:
            The profile if found, None otherwise
        """
        ...

    @abstractmethod
    async def update(
        self,
        profile: MonitoringProfile,
        expected_version: int,
    ) -> Optional[MonitoringProfile]:
        """
        Replace a profile's configuration if its version is unchanged.

        The rolling state is kept as stored, except band_rearmed, which is
        taken from `profile`.

        Args:
            profile: The profile with the new configuration
            expected_version: The version the caller read

        Returns:
            The stored profile with its new version, or None if another
            writer committed first
        """
        ...

    @abstractmethod
    async def commit_evaluation(
        self,
        profile: MonitoringProfile,
        expected_version: int,
        alerts: Sequence[Alert],
    ) -> Optional[MonitoringProfile]:
        """
        Write evaluated profile state and its new alerts in one transaction.

        Args:
            profile: The profile carrying the updated state
            expected_version: The version the evaluation started from
            alerts: Alerts produced by the evaluation

        Returns:
            The stored profile with its new version, or None if the
            version check failed. Nothing is written in that case.
        """
        ...


class AlertRepository(ABC):
    """
    Abstract repository for Alert persistence.

    New alerts are written by MonitoringProfileRepository.commit_evaluation;
    this repository reads them and stores lifecycle transitions.
    """

    @abstractmethod
    async def get_by_id(self, alert_id: UUID) -> Optional[Alert]:
        """
        Retrieve an alert by ID.

        Args:
            alert_id: The alert's unique identifier

        Returns:
            The alert if found, None otherwise
        """
        ...

    @abstractmethod
    async def list_by_business(
        self,
        business_id: str,
        unread_only: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Alert]:
        """
        Retrieve alerts for a business.

        Args:
            business_id: The business identifier
            unread_only: Only return alerts that have not been read
            limit: Maximum number of alerts to return, None for all
            offset: Number of alerts to skip

        Returns:
            List of alerts, ordered by created_at descending
        """
        ...

    @abstractmethod
    async def update_lifecycle(self, alert: Alert) -> Alert:
        """
        Store the lifecycle value of an existing alert.

        Args:
            alert: The alert carrying the new lifecycle

        Returns:
            The updated alert

        Raises:
            AlertNotFoundException: If the alert does not exist
        """
        ...

    @abstractmethod
    async def mark_read(self, alert_id: UUID) -> Alert:
        """
        Set the read flag of an alert, leaving the rest of its lifecycle as stored.

        Args:
            alert_id: The alert's unique identifier

        Returns:
            The alert as stored after the write

        Raises:
            AlertNotFoundException: If the alert does not exist
        """
        ...
