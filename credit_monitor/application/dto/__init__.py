"""Data Transfer Objects for application layer."""

from .alert import AlertStatistics
from .monitoring import BatchReport, EvaluationResult, FailedObservation, ProfileRequest
from .scoring import ScoreHistoryResponse, ScoreSummary

__all__ = [
    "AlertStatistics",
    "BatchReport",
    "EvaluationResult",
    "FailedObservation",
    "ProfileRequest",
    "ScoreHistoryResponse",
    "ScoreSummary",
]
