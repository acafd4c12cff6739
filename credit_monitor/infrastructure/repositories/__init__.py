"""Repository implementations."""

from .score_repository import PostgresScoreResultRepository
from .profile_repository import PostgresMonitoringProfileRepository
from .alert_repository import PostgresAlertRepository
from .memory import (
    InMemoryAlertRepository,
    InMemoryMonitoringProfileRepository,
    InMemoryScoreResultRepository,
)

__all__ = [
    "PostgresScoreResultRepository",
    "PostgresMonitoringProfileRepository",
    "PostgresAlertRepository",
    "InMemoryAlertRepository",
    "InMemoryMonitoringProfileRepository",
    "InMemoryScoreResultRepository",
]
