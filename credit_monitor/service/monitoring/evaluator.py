"""
Monitoring Evaluator.

Evaluates one observation against one monitoring profile:
1. Detect triggers (threshold breaches and enabled events)
2. Drop replays: observations not newer than the category watermark
3. Suppress breaches inside the rate-limit window of periodic profiles
4. Generate one alert per surviving trigger
5. Derive the next profile state

The evaluator is pure. It never writes; the caller commits the returned
state and alerts together, or neither.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from credit_monitor.domain.entities import (
    Alert,
    AlertCategory,
    MonitoringProfile,
    Observation,
    OverdueAmountObservation,
    PaymentDelayObservation,
    ProfileChangeObservation,
    ProfileState,
    ScoreObservation,
    TradeReferenceObservation,
)

from .alerts import Trigger, generate_alert
from .settings import MonitoringSettings, monitoring_settings


@dataclass(frozen=True)
class Evaluation:
    """
    Outcome of evaluating one observation.

    Attributes:
        profile: The profile carrying its next state (version unchanged)
        alerts: Alerts to persist, at most one per category
        suppressed: Categories whose breach was absorbed by the rate limit
        replayed: Categories skipped because the observation was a replay
    """

    profile: MonitoringProfile
    alerts: Tuple[Alert, ...]
    suppressed: Tuple[AlertCategory, ...] = ()
    replayed: Tuple[AlertCategory, ...] = ()


def _score_triggers(
    profile: MonitoringProfile,
    observation: ScoreObservation,
) -> List[Trigger]:
    thresholds = profile.thresholds
    score = observation.score
    previous = profile.state.last_credit_score
    related = observation.related_entity
    triggers = []

    # An unchanged score never re-fires a band breach, unless the band moved.
    if score != previous or profile.state.band_rearmed:
        if thresholds.score_min is not None and score < thresholds.score_min:
            triggers.append(Trigger(
                category=AlertCategory.SCORE_THRESHOLD,
                current_value=score,
                previous_value=previous,
                threshold_value=thresholds.score_min,
                related_entity=related,
            ))
        elif thresholds.score_max is not None and score > thresholds.score_max:
            triggers.append(Trigger(
                category=AlertCategory.SCORE_THRESHOLD,
                current_value=score,
                previous_value=previous,
                threshold_value=thresholds.score_max,
                related_entity=related,
            ))

    if thresholds.score_change is not None and previous is not None:
        change = score - previous
        if change != 0 and abs(change) >= thresholds.score_change:
            triggers.append(Trigger(
                category=AlertCategory.SCORE_CHANGE,
                current_value=score,
                previous_value=previous,
                threshold_value=thresholds.score_change,
                measured_value=abs(change),
                related_entity=related,
            ))

    if profile.toggles.new_score:
        triggers.append(Trigger(
            category=AlertCategory.NEW_SCORE,
            current_value=score,
            previous_value=previous,
            related_entity=related,
        ))

    return triggers


def _payment_triggers(
    profile: MonitoringProfile,
    observation: PaymentDelayObservation,
) -> List[Trigger]:
    threshold = profile.thresholds.payment_delay_days
    triggers = []

    if threshold is not None and observation.days_delayed >= threshold:
        triggers.append(Trigger(
            category=AlertCategory.PAYMENT_DELAY,
            current_value=observation.days_delayed,
            threshold_value=threshold,
            related_entity=observation.related_entity,
        ))

    if profile.toggles.new_payment:
        triggers.append(Trigger(
            category=AlertCategory.NEW_PAYMENT,
            current_value=observation.days_delayed,
            related_entity=observation.related_entity,
        ))

    return triggers


def detect_triggers(
    profile: MonitoringProfile,
    observation: Observation,
) -> List[Trigger]:
    """
    Find every condition the observation makes true for the profile.

    Threshold conditions require their threshold to be configured; event
    categories require their toggle to be enabled.
    """
    if isinstance(observation, ScoreObservation):
        return _score_triggers(profile, observation)

    if isinstance(observation, PaymentDelayObservation):
        return _payment_triggers(profile, observation)

    if isinstance(observation, OverdueAmountObservation):
        threshold = profile.thresholds.overdue_amount_cents
        if threshold is not None and observation.overdue_amount_cents >= threshold:
            return [Trigger(
                category=AlertCategory.OVERDUE_AMOUNT,
                current_value=observation.overdue_amount_cents,
                threshold_value=threshold,
                related_entity=observation.related_entity,
            )]
        return []

    if isinstance(observation, TradeReferenceObservation):
        if profile.toggles.new_trade_reference:
            return [Trigger(
                category=AlertCategory.NEW_TRADE_REFERENCE,
                related_entity=observation.related_entity,
            )]
        return []

    if isinstance(observation, ProfileChangeObservation):
        if profile.toggles.profile_change:
            return [Trigger(
                category=AlertCategory.PROFILE_CHANGE,
                related_entity=observation.related_entity,
            )]
        return []

    raise TypeError(f"Unsupported observation: {type(observation).__name__}")


def evaluate(
    profile: MonitoringProfile,
    observation: Observation,
    now: datetime,
    settings: MonitoringSettings = monitoring_settings,
) -> Evaluation:
    """
    Evaluate one observation against a profile.

    Args:
        profile: The business's monitoring profile
        observation: The new fact to evaluate
        now: Evaluation time, used for rate limiting and commit timestamps
        settings: Monitoring settings (uses defaults if not provided)

    Returns:
        Evaluation with the alerts to emit and the profile's next state
    """
    state = profile.state
    window = settings.window_for(profile.frequency)

    emitting: List[Trigger] = []
    suppressed: List[AlertCategory] = []
    replayed: List[AlertCategory] = []

    for trigger in detect_triggers(profile, observation):
        category = trigger.category

        watermark = state.category_watermarks.get(category)
        if watermark is not None and observation.observed_at <= watermark:
            replayed.append(category)
            continue

        last_alert = state.category_last_alert_at.get(category)
        if (
            not profile.frequency.is_immediate
            and last_alert is not None
            and now - last_alert < window
        ):
            suppressed.append(category)
            continue

        emitting.append(trigger)

    alerts = tuple(generate_alert(t, profile, now, settings) for t in emitting)

    suppressed_counts: Dict[AlertCategory, int] = dict(state.suppressed_counts)
    for category in suppressed:
        suppressed_counts[category] = suppressed_counts.get(category, 0) + 1

    band_rearmed = state.band_rearmed and not isinstance(observation, ScoreObservation)

    if not alerts:
        next_state = ProfileState(
            last_check_at=now,
            last_alert_at=state.last_alert_at,
            total_alerts_sent=state.total_alerts_sent,
            last_credit_score=state.last_credit_score,
            category_last_alert_at=dict(state.category_last_alert_at),
            category_watermarks=dict(state.category_watermarks),
            suppressed_counts=suppressed_counts,
            band_rearmed=band_rearmed,
        )
    else:
        last_alert_at = dict(state.category_last_alert_at)
        watermarks = dict(state.category_watermarks)
        for alert in alerts:
            last_alert_at[alert.category] = now
            previous_mark = watermarks.get(alert.category)
            if previous_mark is None or observation.observed_at > previous_mark:
                watermarks[alert.category] = observation.observed_at

        last_score = state.last_credit_score
        if isinstance(observation, ScoreObservation):
            last_score = observation.score

        next_state = ProfileState(
            last_check_at=now,
            last_alert_at=now,
            total_alerts_sent=state.total_alerts_sent + len(alerts),
            last_credit_score=last_score,
            category_last_alert_at=last_alert_at,
            category_watermarks=watermarks,
            suppressed_counts=suppressed_counts,
            band_rearmed=band_rearmed,
        )

    return Evaluation(
        profile=profile.with_state(next_state),
        alerts=alerts,
        suppressed=tuple(suppressed),
        replayed=tuple(replayed),
    )


def is_applied(
    profile: Optional[MonitoringProfile],
    observation: Observation,
    evaluation: Evaluation,
) -> bool:
    """
    Tell whether a stored profile already reflects an evaluation's alerts.

    True when every category the evaluation alerted on has a watermark at
    or after the observation time, meaning another writer committed the
    same observation first. An evaluation without alerts is never
    considered applied, so it is evaluated again against the newer state.
    """
    if profile is None or not evaluation.alerts:
        return False

    watermarks = profile.state.category_watermarks
    for alert in evaluation.alerts:
        mark = watermarks.get(alert.category)
        if mark is None or observation.observed_at > mark:
            return False
    return True
