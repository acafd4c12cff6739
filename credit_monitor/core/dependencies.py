"""Composition root: wires repositories, engines and services."""

from dataclasses import dataclass
from typing import Optional

from credit_monitor.application.services import (
    AlertService,
    MonitoringService,
    ScoringService,
)
from credit_monitor.domain.interfaces import BusinessMetricsProvider
from credit_monitor.infrastructure.database import DatabaseSessionManager, db_manager
from credit_monitor.infrastructure.repositories import (
    InMemoryAlertRepository,
    InMemoryMonitoringProfileRepository,
    InMemoryScoreResultRepository,
    PostgresAlertRepository,
    PostgresMonitoringProfileRepository,
    PostgresScoreResultRepository,
)
from credit_monitor.service.monitoring import (
    MonitoringSettings,
    NotificationScheduler,
    monitoring_settings,
)
from credit_monitor.service.scoring import ScoringEngine, ScoringSettings, scoring_settings


@dataclass
class Services:
    """The application services sharing one scheduler."""

    scoring: ScoringService
    monitoring: MonitoringService
    alerts: AlertService
    scheduler: NotificationScheduler


def build_services(
    metrics_provider: BusinessMetricsProvider,
    db: Optional[DatabaseSessionManager] = None,
    scoring_config: ScoringSettings = scoring_settings,
    monitoring_config: MonitoringSettings = monitoring_settings,
    max_workers: Optional[int] = None,
) -> Services:
    """
    Build the services backed by the SQL database.

    Raises:
        ConfigurationError: If the scoring tables are inconsistent
    """
    db = db or db_manager
    scheduler = NotificationScheduler(max_tracked=monitoring_config.handoff_memory_size)
    monitoring = MonitoringService(
        profile_repository=PostgresMonitoringProfileRepository(db),
        scheduler=scheduler,
        settings=monitoring_config,
        max_workers=max_workers,
    )
    scoring = ScoringService(
        metrics_provider=metrics_provider,
        score_repository=PostgresScoreResultRepository(db),
        engine=ScoringEngine(scoring_config),
        monitoring_service=monitoring,
    )
    alerts = AlertService(alert_repository=PostgresAlertRepository(db))
    return Services(scoring=scoring, monitoring=monitoring, alerts=alerts, scheduler=scheduler)


def build_in_memory_services(
    metrics_provider: BusinessMetricsProvider,
    scoring_config: ScoringSettings = scoring_settings,
    monitoring_config: MonitoringSettings = monitoring_settings,
    max_workers: Optional[int] = None,
) -> Services:
    """Build the services backed by in-memory repositories."""
    alert_repo = InMemoryAlertRepository()
    scheduler = NotificationScheduler(max_tracked=monitoring_config.handoff_memory_size)
    monitoring = MonitoringService(
        profile_repository=InMemoryMonitoringProfileRepository(alert_repo),
        scheduler=scheduler,
        settings=monitoring_config,
        max_workers=max_workers,
    )
    scoring = ScoringService(
        metrics_provider=metrics_provider,
        score_repository=InMemoryScoreResultRepository(),
        engine=ScoringEngine(scoring_config),
        monitoring_service=monitoring,
    )
    alerts = AlertService(alert_repository=alert_repo)
    return Services(scoring=scoring, monitoring=monitoring, alerts=alerts, scheduler=scheduler)
