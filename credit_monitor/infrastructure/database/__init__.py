"""Database infrastructure."""

from .connection import DatabaseSessionManager, db_manager
from .models import Base, AlertModel, MonitoringProfileModel, ScoreResultModel

__all__ = [
    "DatabaseSessionManager",
    "db_manager",
    "Base",
    "AlertModel",
    "MonitoringProfileModel",
    "ScoreResultModel",
]
