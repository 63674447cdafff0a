"""Exception hierarchy for the onboarding form."""

from typing import Dict, Optional


class KYCFormError(Exception):
    """Base exception for all onboarding form errors."""


class ValidationError(KYCFormError):
    """Raised when a step is left while some of its fields fail validation."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid fields: {fields}")


class NetworkError(KYCFormError):
    """Raised when an API call fails or returns a non-2xx response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class MissingStateError(KYCFormError):
    """Raised when the review page loads without a persisted application."""


class InvalidTransitionError(KYCFormError):
    """Raised when an action is not allowed in the current step."""
