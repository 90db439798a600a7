"""
Tests for lowcode_server/billing/provider_client.py module.

The HTTP layer is mocked at _request so the tests check the request layout and
the parsing of the provider's responses.
"""

from unittest.mock import AsyncMock, patch

import pytest

from lowcode_server.billing.features import EnumUsageUpdateBehavior
from lowcode_server.billing.provider_client import API_KEY_HEADER, BillingProviderClient


@pytest.fixture
def client():
    return BillingProviderClient("https://billing.test/", "secret-key", timeout=5)


def test_base_url_strips_trailing_slash(client):
    assert client.base_url == "https://billing.test"


def test_headers_carry_api_key(client):
    headers = client._headers()
    assert headers[API_KEY_HEADER] == "secret-key"
    assert headers["Content-Type"] == "application/json"


@pytest.mark.asyncio
async def test_get_active_subscriptions(client):
    payload = [
        {
            "id": "sub-1",
            "status": "ACTIVE",
            "plan": {"id": "plan-amplication-pro"},
            "current_billing_period_end": "2030-01-01T00:00:00Z",
        }
    ]
    with patch.object(
        client, "_request", new_callable=AsyncMock, return_value=payload
    ) as mock_request:
        subscriptions = await client.get_active_subscriptions("ws-1")

    mock_request.assert_awaited_once_with(
        "GET", "/v1/customers/ws-1/subscriptions", params={"status": "active"}
    )
    assert len(subscriptions) == 1
    assert subscriptions[0].plan.id == "plan-amplication-pro"
    assert subscriptions[0].current_billing_period_end.year == 2030


@pytest.mark.asyncio
async def test_get_active_subscriptions_empty_body(client):
    with patch.object(client, "_request", new_callable=AsyncMock, return_value=None):
        assert await client.get_active_subscriptions("ws-1") == []


@pytest.mark.asyncio
async def test_provision_customer(client):
    with patch.object(
        client,
        "_request",
        new_callable=AsyncMock,
        return_value={"customerId": "ws-1", "subscriptionIds": ["sub-9"]},
    ) as mock_request:
        result = await client.provision_customer(
            "ws-1", "plan-amplication-free", should_sync_free=False
        )

    mock_request.assert_awaited_once_with(
        "POST",
        "/v1/customers",
        json={
            "customerId": "ws-1",
            "shouldSyncFree": False,
            "subscriptionParams": {"planId": "plan-amplication-free"},
        },
    )
    assert result.customer_id == "ws-1"
    assert result.subscription_ids == ["sub-9"]


@pytest.mark.asyncio
async def test_boolean_entitlement(client):
    with patch.object(
        client, "_request", new_callable=AsyncMock, return_value={"hasAccess": True}
    ) as mock_request:
        entitlement = await client.get_boolean_entitlement("ws-1", "feature-gitlab")

    mock_request.assert_awaited_once_with(
        "GET",
        "/v1/customers/ws-1/entitlements/feature-gitlab",
        params={"type": "boolean"},
    )
    assert entitlement.has_access is True


@pytest.mark.asyncio
async def test_metered_entitlement(client):
    with patch.object(
        client,
        "_request",
        new_callable=AsyncMock,
        return_value={"hasAccess": False, "usageLimit": 3, "currentUsage": 4},
    ):
        entitlement = await client.get_metered_entitlement("ws-1", "services")

    assert entitlement.has_access is False
    assert entitlement.usage_limit == 3
    assert entitlement.current_usage == 4
    assert entitlement.is_unlimited is False


@pytest.mark.asyncio
async def test_numeric_entitlement_missing_body_denies(client):
    with patch.object(client, "_request", new_callable=AsyncMock, return_value=None):
        entitlement = await client.get_numeric_entitlement(
            "ws-1", "entities-per-service"
        )

    assert entitlement.has_access is False
    assert entitlement.value is None


@pytest.mark.asyncio
async def test_report_usage(client):
    with patch.object(
        client, "_request", new_callable=AsyncMock, return_value=None
    ) as mock_request:
        await client.report_usage(
            "ws-1", "code-generation-builds", 2, EnumUsageUpdateBehavior.SET
        )

    mock_request.assert_awaited_once_with(
        "POST",
        "/v1/usage",
        json={
            "customerId": "ws-1",
            "featureId": "code-generation-builds",
            "value": 2,
            "updateBehavior": "SET",
        },
    )
