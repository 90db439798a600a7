"""
Entitlement and subscription value objects returned by the billing layer.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from lowcode_server.billing.features import EnumSubscriptionPlan, EnumSubscriptionStatus


class BooleanEntitlement(BaseModel):
    """Access flag for a boolean feature."""

    has_access: bool

    @classmethod
    def unlimited(cls) -> "BooleanEntitlement":
        return cls(has_access=True)


class MeteredEntitlement(BaseModel):
    """Access flag plus usage counters for a metered feature."""

    has_access: bool
    usage_limit: Optional[int] = None
    current_usage: int = 0
    is_unlimited: bool = False

    @classmethod
    def unlimited(cls) -> "MeteredEntitlement":
        return cls(has_access=True, is_unlimited=True)


class NumericEntitlement(BaseModel):
    """Access flag plus a configured value for a numeric feature."""

    has_access: bool
    value: Optional[int] = None
    is_unlimited: bool = False

    @classmethod
    def unlimited(cls) -> "NumericEntitlement":
        return cls(has_access=True, is_unlimited=True)


class ProviderPlan(BaseModel):
    """Plan reference on a provider subscription."""

    id: str
    display_name: Optional[str] = None


class ProviderSubscription(BaseModel):
    """Subscription as returned by the billing provider."""

    id: str
    status: str
    plan: ProviderPlan
    price: Optional[Dict[str, Any]] = None
    current_billing_period_end: Optional[datetime] = None
    metadata: Dict[str, Any] = {}


class Subscription(BaseModel):
    """A workspace subscription in platform terms."""

    id: str
    status: EnumSubscriptionStatus
    workspace_id: str
    subscription_plan: EnumSubscriptionPlan
    created_at: datetime
    updated_at: datetime
    next_billing_date: Optional[datetime] = None
    price: Optional[Dict[str, Any]] = None
    cancel_url: Optional[str] = None
    update_url: Optional[str] = None


class ProvisionCustomerResult(BaseModel):
    """Outcome of provisioning a billing customer."""

    customer_id: str
    subscription_ids: List[str] = []
