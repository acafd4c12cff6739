"""In-process implementation of BusinessMetricsProvider."""

from typing import Dict, Iterable

import structlog

from credit_monitor.domain.entities import BusinessMetrics, ComponentScores
from credit_monitor.domain.interfaces import BusinessMetricsProvider

logger = structlog.get_logger(__name__)


class StaticMetricsProvider(BusinessMetricsProvider):
    """
    Metrics provider backed by a dict of pre-loaded metrics.

    Used when the metrics feed is pushed into the process rather than
    pulled, and in tests. Unknown businesses have no components, which
    the engine reports as IncompleteInputError.
    """

    def __init__(self, metrics: Iterable[BusinessMetrics] = ()):
        self._metrics: Dict[str, BusinessMetrics] = {m.business_id: m for m in metrics}
        self.call_count = 0

    def put(self, metrics: BusinessMetrics) -> None:
        """Replace the metrics held for a business."""
        self._metrics[metrics.business_id] = metrics

    async def get_metrics(self, business_id: str) -> BusinessMetrics:
        self.call_count += 1
        metrics = self._metrics.get(business_id)
        if metrics is None:
            logger.warning("business_metrics_missing", business_id=business_id)
            return BusinessMetrics(business_id=business_id, components=ComponentScores())
        return metrics
