"""Alert lifecycle domain exceptions."""

from .base import DomainException


class AlertNotFoundException(DomainException):
    """Raised when an alert cannot be found."""

    def __init__(self, alert_id: str):
        super().__init__(
            message=f"Alert not found: {alert_id}",
            code="ALERT_NOT_FOUND",
        )
        self.alert_id = alert_id


class AlertExpiredError(DomainException):
    """Raised when a lifecycle transition is attempted on an expired alert."""

    def __init__(self, alert_id: str):
        super().__init__(
            message=f"Alert has expired: {alert_id}",
            code="ALERT_EXPIRED",
        )
        self.alert_id = alert_id


class InvalidAcknowledgementException(DomainException):
    """Raised when an acknowledgement is missing the acting identity."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_ACKNOWLEDGEMENT",
        )
