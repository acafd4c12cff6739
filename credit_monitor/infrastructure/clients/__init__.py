"""External client implementations."""

from .metrics_provider import StaticMetricsProvider

__all__ = [
    "StaticMetricsProvider",
]
