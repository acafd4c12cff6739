"""External client interfaces."""

from abc import ABC, abstractmethod

from credit_monitor.domain.entities import BusinessMetrics


class BusinessMetricsProvider(ABC):
    """
    Abstract feed of raw business metrics.

    Supplies the four component sub-scores and the declared scale factor
    used by the scoring engine.
    """

    @abstractmethod
    async def get_metrics(self, business_id: str) -> BusinessMetrics:
        """
        Fetch the current metrics for a business.

        Args:
            business_id: The business identifier

        Returns:
            The business's component scores and scale factor. Components
            whose source is unavailable are None.
        """
        ...
