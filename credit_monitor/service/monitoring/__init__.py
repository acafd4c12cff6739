"""
Monitoring Module: threshold evaluation, alert generation and notification scheduling
"""

from .settings import MonitoringSettings, monitoring_settings
from .alerts import (
    EVENT_CATEGORIES,
    Trigger,
    calculate_change,
    derive_severity,
    generate_alert,
)
from .evaluator import Evaluation, detect_triggers, evaluate, is_applied
from .scheduler import NotificationScheduler

__all__ = [
    # Settings
    "MonitoringSettings",
    "monitoring_settings",
    # Alerts
    "EVENT_CATEGORIES",
    "Trigger",
    "calculate_change",
    "derive_severity",
    "generate_alert",
    # Evaluator
    "Evaluation",
    "detect_triggers",
    "evaluate",
    "is_applied",
    # Scheduler
    "NotificationScheduler",
]
