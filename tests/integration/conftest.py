"""
Fixtures for integration tests.

Provides:
- In-memory SQLite database behind a DatabaseSessionManager
- SQL and in-memory repositories
- Static metrics provider with test businesses
- Fully wired services with a controllable clock
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from credit_monitor.application.services import (
    AlertService,
    MonitoringService,
    ScoringService,
)
from credit_monitor.domain.entities import BusinessMetrics, ComponentScores
from credit_monitor.infrastructure.clients import StaticMetricsProvider
from credit_monitor.infrastructure.database import DatabaseSessionManager
from credit_monitor.infrastructure.repositories import (
    InMemoryAlertRepository,
    InMemoryMonitoringProfileRepository,
    InMemoryScoreResultRepository,
    PostgresAlertRepository,
    PostgresMonitoringProfileRepository,
    PostgresScoreResultRepository,
)
from credit_monitor.service.monitoring import MonitoringSettings, NotificationScheduler
from credit_monitor.service.scoring import ScoringEngine, ScoringSettings


START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Test Clock
# =============================================================================

class FakeClock:
    """Clock the tests move forward explicitly."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# =============================================================================
# Test Data
# =============================================================================

REFERENCE_BUSINESS = BusinessMetrics(
    business_id="biz_reference",
    components=ComponentScores(
        financial_strength=800,
        payment_behavior=700,
        business_stability=600,
        compliance=900,
    ),
    scale_factor_cents=1_000_000,
)

NO_COMPLIANCE_BUSINESS = BusinessMetrics(
    business_id="biz_no_compliance",
    components=ComponentScores(
        financial_strength=800,
        payment_behavior=700,
        business_stability=600,
    ),
    scale_factor_cents=1_000_000,
)

DISTRESSED_BUSINESS = BusinessMetrics(
    business_id="biz_distressed",
    components=ComponentScores(
        financial_strength=150,
        payment_behavior=200,
        business_stability=300,
        compliance=250,
    ),
    scale_factor_cents=500_000,
)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def db() -> AsyncGenerator[DatabaseSessionManager, None]:
    """Create an in-memory SQLite database with all tables."""
    manager = DatabaseSessionManager()
    manager.init(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await manager.create_all()

    yield manager

    await manager.close()


@pytest.fixture
def score_repository(db) -> PostgresScoreResultRepository:
    return PostgresScoreResultRepository(db)


@pytest.fixture
def profile_repository(db) -> PostgresMonitoringProfileRepository:
    return PostgresMonitoringProfileRepository(db)


@pytest.fixture
def alert_repository(db) -> PostgresAlertRepository:
    return PostgresAlertRepository(db)


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def metrics_provider() -> StaticMetricsProvider:
    return StaticMetricsProvider([
        REFERENCE_BUSINESS,
        NO_COMPLIANCE_BUSINESS,
        DISTRESSED_BUSINESS,
    ])


@pytest.fixture
def memory_alerts() -> InMemoryAlertRepository:
    return InMemoryAlertRepository()


@pytest.fixture
def memory_profiles(memory_alerts) -> InMemoryMonitoringProfileRepository:
    return InMemoryMonitoringProfileRepository(memory_alerts)


@pytest.fixture
def scheduler() -> NotificationScheduler:
    return NotificationScheduler()


@pytest.fixture
def monitoring_service(memory_profiles, scheduler, clock) -> MonitoringService:
    """Monitoring service over in-memory repositories."""
    return MonitoringService(
        profile_repository=memory_profiles,
        scheduler=scheduler,
        settings=MonitoringSettings(),
        max_workers=4,
        clock=clock,
    )


@pytest.fixture
def alert_service(memory_alerts, clock) -> AlertService:
    return AlertService(alert_repository=memory_alerts, clock=clock)


@pytest.fixture
def scoring_service(metrics_provider, monitoring_service) -> ScoringService:
    return ScoringService(
        metrics_provider=metrics_provider,
        score_repository=InMemoryScoreResultRepository(),
        engine=ScoringEngine(ScoringSettings()),
        monitoring_service=monitoring_service,
    )


@pytest.fixture
def sql_services(db, metrics_provider, clock):
    """Scoring, monitoring and alert services sharing one SQLite database."""
    monitoring = MonitoringService(
        profile_repository=PostgresMonitoringProfileRepository(db),
        scheduler=NotificationScheduler(),
        settings=MonitoringSettings(),
        max_workers=1,
        clock=clock,
    )
    scoring = ScoringService(
        metrics_provider=metrics_provider,
        score_repository=PostgresScoreResultRepository(db),
        engine=ScoringEngine(ScoringSettings()),
        monitoring_service=monitoring,
    )
    alerts = AlertService(alert_repository=PostgresAlertRepository(db), clock=clock)
    return scoring, monitoring, alerts
