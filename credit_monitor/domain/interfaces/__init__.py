"""
Domain Interfaces (Ports)
"""

from .repositories import (
    AlertRepository,
    MonitoringProfileRepository,
    ScoreResultRepository,
)
from .clients import BusinessMetricsProvider

__all__ = [
    "AlertRepository",
    "MonitoringProfileRepository",
    "ScoreResultRepository",
    "BusinessMetricsProvider",
]
