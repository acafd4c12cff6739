"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .scoring import ConfigurationError, IncompleteInputError
from .monitoring import DuplicateProfileException, ProfileNotFoundException
from .alert import (
    AlertExpiredError,
    AlertNotFoundException,
    InvalidAcknowledgementException,
)

__all__ = [
    "DomainException",
    "ConfigurationError",
    "IncompleteInputError",
    "DuplicateProfileException",
    "ProfileNotFoundException",
    "AlertExpiredError",
    "AlertNotFoundException",
    "InvalidAcknowledgementException",
]
