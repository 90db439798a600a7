"""
Billing module.

This module provides subscription lookup, entitlement checks and plan
limitation validation backed by the hosted billing provider.

Components:
- features: BillingFeature, BillingPlan and subscription status enums
- entitlements: Boolean, metered and numeric entitlement value objects
- provider_client: REST client for the billing provider
- billing_service: Subscription lookup, usage reporting and limitation checks
- feature_gate: Decorator for feature access control
- limitations: Plan limitation checks run before publishing and code generation

Note: Imports are done lazily to avoid circular import issues.
Use: from lowcode_server.billing.billing_service import billing_service
"""

from lowcode_server.billing.errors import BillingLimitationError, BillingProviderError
from lowcode_server.billing.features import BillingFeature, BillingPlan

__all__ = [
    "BillingFeature",
    "BillingLimitationError",
    "BillingPlan",
    "BillingProviderError",
]


def __getattr__(name):
    """Lazy import to avoid circular dependencies."""
    if name == "billing_service":
        from lowcode_server.billing.billing_service import billing_service

        return billing_service
    elif name == "requires_billing_feature":
        from lowcode_server.billing.feature_gate import requires_billing_feature

        return requires_billing_feature
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
