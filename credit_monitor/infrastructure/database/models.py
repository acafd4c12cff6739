"""SQLAlchemy ORM models for scoring and monitoring entities."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from credit_monitor.domain.entities.clock import utcnow


class Base(DeclarativeBase):
    pass


class ScoreResultModel(Base):
    """Persisted score result. Rows are never updated."""

    __tablename__ = "score_results"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    business_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    composite_score: Mapped[int] = mapped_column(Integer, nullable=False)
    financial_strength: Mapped[float | None] = mapped_column(Float, nullable=True)
    payment_behavior: Mapped[float | None] = mapped_column(Float, nullable=True)
    business_stability: Mapped[float | None] = mapped_column(Float, nullable=True)
    compliance: Mapped[float | None] = mapped_column(Float, nullable=True)
    grade: Mapped[str] = mapped_column(String(20), nullable=False)
    risk_category: Mapped[str] = mapped_column(String(20), nullable=False)
    recommended_limit_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    scale_factor_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    weights_applied: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    missing_components: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    valid_from: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class MonitoringProfileModel(Base):
    """Persisted monitoring profile with its rolling state."""

    __tablename__ = "monitoring_profiles"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    business_id: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Thresholds
    score_min: Mapped[float | None] = mapped_column(Float, nullable=True)
    score_max: Mapped[float | None] = mapped_column(Float, nullable=True)
    score_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    payment_delay_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    overdue_amount_cents: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    # Event toggles
    alert_new_trade_reference: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    alert_new_payment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    alert_new_score: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    alert_profile_change: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Channels
    email_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sms_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    in_app_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False, default="immediate")
    monitoring_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="comprehensive"
    )

    # Rolling state
    last_check_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_alert_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    total_alerts_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_credit_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    category_last_alert_at: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    category_watermarks: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    suppressed_counts: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    band_rearmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class AlertModel(Base):
    """Persisted alert record."""

    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    alert_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    business_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    profile_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("monitoring_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    previous_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    threshold_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    change_amount: Mapped[float | None] = mapped_column(Float, nullable=True)
    change_percentage: Mapped[float | None] = mapped_column(Float, nullable=True)
    related_entity_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    related_entity_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Lifecycle
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    acknowledged_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    acknowledgment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
