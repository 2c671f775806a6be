"""Domain errors for rds-replica."""

from typing import Optional


class ProvisioningError(RuntimeError):
    """Raised when provisioning cannot continue safely."""


class ProviderError(ProvisioningError):
    """Raised when an AWS API call is rejected or a waiter gives up."""

    def __init__(self, code: str, message: str, operation: Optional[str] = None, outcome=None):
        self.code = code
        self.message = message
        self.operation = operation
        self.outcome = outcome
        prefix = f"{operation} failed" if operation else "AWS request failed"
        super().__init__(f"{prefix} [{code}]: {message}")


class ValidationError(ProvisioningError):
    """Raised when a local precondition for provisioning does not hold."""


class SelectionAbortError(ValidationError):
    """Raised when an interactive choice could not produce a selection."""
