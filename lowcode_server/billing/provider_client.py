"""
REST client for the hosted billing provider.

Every call opens a short-lived aiohttp session, sends JSON with the configured
API key and raises BillingProviderError on network failures or non-2xx
responses.
"""

from typing import Any, Dict, List, Optional

import aiohttp

from lowcode_server.billing.entitlements import (
    BooleanEntitlement,
    MeteredEntitlement,
    NumericEntitlement,
    ProviderSubscription,
    ProvisionCustomerResult,
)
from lowcode_server.billing.errors import BillingProviderError
from lowcode_server.billing.features import EnumUsageUpdateBehavior
from lowcode_server.utils.verbosity_logger import get_logger, sanitize_log

logger = get_logger("lowcode_server.billing.provider_client")

# Default request timeout in seconds
DEFAULT_TIMEOUT = 30

API_KEY_HEADER = "X-API-KEY"


class BillingProviderClient:
    """
    Thin async client for the billing provider's customer, entitlement and
    usage endpoints.
    """

    def __init__(self, base_url: str, api_key: str, timeout: int = DEFAULT_TIMEOUT):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def _headers(self) -> Dict[str, str]:
        return {
            API_KEY_HEADER: self._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Send a request and return the decoded JSON body."""
        url = f"{self._base_url}{path}"
        try:
            async with aiohttp.ClientSession(headers=self._headers()) as session:
                async with session.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                ) as response:
                    if response.status >= 400:
                        body = await response.text()
                        logger.warning(
                            "Billing provider %s %s returned status %d: %s",
                            method,
                            sanitize_log(path),
                            response.status,
                            sanitize_log(body[:200]),
                        )
                        raise BillingProviderError(
                            f"Billing provider returned status {response.status}",
                            status=response.status,
                        )
                    if response.status == 204:
                        return None
                    return await response.json()
        except aiohttp.ClientError as e:
            logger.warning("Billing provider network error: %s", e)
            raise BillingProviderError(f"Billing provider unreachable: {e}") from e

    async def get_active_subscriptions(
        self, customer_id: str
    ) -> List[ProviderSubscription]:
        """Get the customer's subscriptions that are currently in effect."""
        data = await self._request(
            "GET",
            f"/v1/customers/{customer_id}/subscriptions",
            params={"status": "active"},
        )
        return [ProviderSubscription(**item) for item in (data or [])]

    async def provision_customer(
        self, customer_id: str, plan_id: str, should_sync_free: bool
    ) -> ProvisionCustomerResult:
        """Create or update a customer and subscribe it to a plan."""
        data = await self._request(
            "POST",
            "/v1/customers",
            json={
                "customerId": customer_id,
                "shouldSyncFree": should_sync_free,
                "subscriptionParams": {"planId": plan_id},
            },
        )
        data = data or {}
        return ProvisionCustomerResult(
            customer_id=data.get("customerId", customer_id),
            subscription_ids=data.get("subscriptionIds", []),
        )

    async def _get_entitlement(
        self, customer_id: str, feature_id: str, kind: str
    ) -> Dict[str, Any]:
        data = await self._request(
            "GET",
            f"/v1/customers/{customer_id}/entitlements/{feature_id}",
            params={"type": kind},
        )
        return data or {}

    async def get_boolean_entitlement(
        self, customer_id: str, feature_id: str
    ) -> BooleanEntitlement:
        data = await self._get_entitlement(customer_id, feature_id, "boolean")
        return BooleanEntitlement(has_access=bool(data.get("hasAccess")))

    async def get_metered_entitlement(
        self, customer_id: str, feature_id: str
    ) -> MeteredEntitlement:
        data = await self._get_entitlement(customer_id, feature_id, "metered")
        return MeteredEntitlement(
            has_access=bool(data.get("hasAccess")),
            usage_limit=data.get("usageLimit"),
            current_usage=data.get("currentUsage", 0),
            is_unlimited=bool(data.get("isUnlimited", False)),
        )

    async def get_numeric_entitlement(
        self, customer_id: str, feature_id: str
    ) -> NumericEntitlement:
        data = await self._get_entitlement(customer_id, feature_id, "numeric")
        return NumericEntitlement(
            has_access=bool(data.get("hasAccess")),
            value=data.get("value"),
            is_unlimited=bool(data.get("isUnlimited", False)),
        )

    async def report_usage(
        self,
        customer_id: str,
        feature_id: str,
        value: int,
        update_behavior: EnumUsageUpdateBehavior = EnumUsageUpdateBehavior.DELTA,
    ) -> None:
        """Report feature usage, either as a delta or as the new absolute value."""
        await self._request(
            "POST",
            "/v1/usage",
            json={
                "customerId": customer_id,
                "featureId": feature_id,
                "value": value,
                "updateBehavior": update_behavior.value,
            },
        )
