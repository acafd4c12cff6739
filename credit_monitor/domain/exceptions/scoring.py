"""Scoring-related domain exceptions."""

from .base import DomainException


class IncompleteInputError(DomainException):
    """Raised when no component score is available for a business."""

    def __init__(self, business_id: str | None = None):
        subject = f" for business {business_id}" if business_id else ""
        super().__init__(
            message=f"All component scores are missing{subject}",
            code="INCOMPLETE_INPUT",
        )
        self.business_id = business_id


class ConfigurationError(DomainException):
    """Raised when bands, curves or thresholds are misconfigured."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
        )
