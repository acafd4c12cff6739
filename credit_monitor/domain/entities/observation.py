"""Observations fed into the monitoring evaluator."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union
from uuid import uuid4

from .alert import EntityRef


def _observation_id() -> str:
    return str(uuid4())


class _ObservationMixin:
    business_id: str
    observation_id: str

    @property
    def key(self) -> Tuple[str, str]:
        """Identity used to collapse duplicate in-flight evaluations."""
        return (self.business_id, self.observation_id)


@dataclass(frozen=True)
class ScoreObservation(_ObservationMixin):
    """A freshly computed composite score for a business."""

    business_id: str
    score: float
    observed_at: datetime
    observation_id: str = field(default_factory=_observation_id)
    related_entity: Optional[EntityRef] = None


@dataclass(frozen=True)
class PaymentDelayObservation(_ObservationMixin):
    """A recorded payment, with how many days past due it was."""

    business_id: str
    days_delayed: int
    observed_at: datetime
    observation_id: str = field(default_factory=_observation_id)
    related_entity: Optional[EntityRef] = None


@dataclass(frozen=True)
class OverdueAmountObservation(_ObservationMixin):
    business_id: str
    overdue_amount_cents: int
    observed_at: datetime
    observation_id: str = field(default_factory=_observation_id)
    related_entity: Optional[EntityRef] = None


@dataclass(frozen=True)
class TradeReferenceObservation(_ObservationMixin):
    business_id: str
    observed_at: datetime
    observation_id: str = field(default_factory=_observation_id)
    related_entity: Optional[EntityRef] = None


@dataclass(frozen=True)
class ProfileChangeObservation(_ObservationMixin):
    """A change to the business's registered details."""

    business_id: str
    observed_at: datetime
    description: str = ""
    observation_id: str = field(default_factory=_observation_id)
    related_entity: Optional[EntityRef] = None


Observation = Union[
    ScoreObservation,
    PaymentDelayObservation,
    OverdueAmountObservation,
    TradeReferenceObservation,
    ProfileChangeObservation,
]
