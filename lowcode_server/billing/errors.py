"""
Billing exceptions.
"""

from typing import Optional


class BillingLimitationError(Exception):
    """Exception raised when a workspace exceeds what its plan allows."""

    def __init__(self, message: str, billing_feature: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.billing_feature = billing_feature

    def __eq__(self, other):
        if not isinstance(other, BillingLimitationError):
            return NotImplemented
        return self.message == other.message

    def __hash__(self):
        return hash(self.message)


class BillingProviderError(Exception):
    """Exception raised when the billing provider cannot be reached or rejects a call."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
