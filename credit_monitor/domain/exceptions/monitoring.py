"""Monitoring profile domain exceptions."""

from .base import DomainException


class ProfileNotFoundException(DomainException):
    """Raised when a business has no monitoring profile."""

    def __init__(self, business_id: str):
        super().__init__(
            message=f"Monitoring profile not found for business: {business_id}",
            code="PROFILE_NOT_FOUND",
        )
        self.business_id = business_id


class DuplicateProfileException(DomainException):
    """Raised when a business already has an active monitoring profile."""

    def __init__(self, business_id: str):
        super().__init__(
            message=f"Monitoring profile already exists for business: {business_id}",
            code="DUPLICATE_PROFILE",
        )
        self.business_id = business_id
