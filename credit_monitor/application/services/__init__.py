"""Application services (use cases)."""

from .alert_service import AlertService
from .monitoring_service import MonitoringService
from .scoring_service import ScoringService

__all__ = [
    "AlertService",
    "MonitoringService",
    "ScoringService",
]
