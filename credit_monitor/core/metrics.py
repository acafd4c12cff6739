"""Prometheus metrics for the credit monitor.

Metrics are organized into two categories:

Business Metrics (for Risk/Credit teams):
- credit_monitor_score_results_total: Score results by grade and risk tier
- credit_monitor_composite_score: Distribution of composite scores
- credit_monitor_alerts_emitted_total: Alerts by category and severity
- credit_monitor_alerts_suppressed_total: Breaches absorbed by rate limiting

Technical Metrics (for Engineering/SRE):
- credit_monitor_scoring_latency_seconds: Scoring request latency
- credit_monitor_evaluation_latency_seconds: Monitoring evaluation latency
- credit_monitor_evaluations_total: Evaluations by outcome
- credit_monitor_cas_conflicts_total: Lost compare-and-swap commits
- credit_monitor_batch_requeued_total: Observations returned for requeue
- credit_monitor_notifications_total: Tickets handed to delivery by mode
- credit_monitor_notification_queue_depth: Pending tickets per frequency
"""

import time
from contextlib import contextmanager
from typing import Generator

from prometheus_client import Counter, Histogram, Gauge, REGISTRY, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST


# =============================================================================
# Business Metrics (Risk/Credit dashboards)
# =============================================================================

score_results_total = Counter(
    "credit_monitor_score_results_total",
    "Total number of score results produced",
    ["grade", "risk_category"],
)

composite_score = Histogram(
    "credit_monitor_composite_score",
    "Composite scores produced (0-1000)",
    buckets=[100, 200, 300, 400, 500, 600, 700, 800, 900, 1000],
)

alerts_emitted_total = Counter(
    "credit_monitor_alerts_emitted_total",
    "Total number of alerts emitted",
    ["category", "severity"],
)

alerts_suppressed_total = Counter(
    "credit_monitor_alerts_suppressed_total",
    "Breaches suppressed by the rate-limit window",
    ["category"],
)


# =============================================================================
# Technical Metrics (Engineering/SRE dashboards)
# =============================================================================

scoring_latency = Histogram(
    "credit_monitor_scoring_latency_seconds",
    "Scoring request latency in seconds",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

evaluation_latency = Histogram(
    "credit_monitor_evaluation_latency_seconds",
    "Monitoring evaluation latency in seconds",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
)

evaluations_total = Counter(
    "credit_monitor_evaluations_total",
    "Total number of monitoring evaluations",
    ["outcome"],  # alerted, quiet, conflict, skipped, failed
)

cas_conflicts_total = Counter(
    "credit_monitor_cas_conflicts_total",
    "Evaluations whose versioned commit lost to another writer",
)

batch_requeued_total = Counter(
    "credit_monitor_batch_requeued_total",
    "Observations cancelled by a batch timeout and returned for requeue",
)

notifications_total = Counter(
    "credit_monitor_notifications_total",
    "Notification tickets handed to the delivery layer",
    ["mode"],  # immediate, batch
)

notification_queue_depth = Gauge(
    "credit_monitor_notification_queue_depth",
    "Tickets waiting for a periodic flush",
    ["frequency"],
)


# =============================================================================
# Helper Functions
# =============================================================================

def record_score_result(grade: str, risk_category: str, score: int) -> None:
    """Record a produced score result."""
    score_results_total.labels(grade=grade, risk_category=risk_category).inc()
    composite_score.observe(score)


def record_alert(category: str, severity: str) -> None:
    """Record an emitted alert."""
    alerts_emitted_total.labels(category=category, severity=severity).inc()


def record_suppressed(category: str) -> None:
    alerts_suppressed_total.labels(category=category).inc()


def record_evaluation(outcome: str) -> None:
    """Record the outcome of one evaluation."""
    evaluations_total.labels(outcome=outcome).inc()


def record_cas_conflict() -> None:
    cas_conflicts_total.inc()


def record_requeued(count: int) -> None:
    """Record observations returned by a timed-out batch."""
    if count:
        batch_requeued_total.inc(count)


def record_notifications(mode: str, count: int) -> None:
    """Record tickets handed off to delivery."""
    if count:
        notifications_total.labels(mode=mode).inc(count)


def set_queue_depth(frequency: str, depth: int) -> None:
    notification_queue_depth.labels(frequency=frequency).set(depth)


@contextmanager
def track_scoring_latency() -> Generator[None, None, None]:
    """Context manager to track scoring latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        scoring_latency.observe(duration)


@contextmanager
def track_evaluation_latency() -> Generator[None, None, None]:
    """Context manager to track evaluation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        evaluation_latency.observe(duration)


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST
