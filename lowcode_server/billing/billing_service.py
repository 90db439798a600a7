"""
Billing service for subscription lookup and entitlement enforcement.

Handles:
- Fetching the active subscription of a workspace from the billing provider
- Provisioning billing customers
- Reading boolean, metered and numeric entitlements
- Reporting feature usage
- Validating a workspace against its plan limitations before code generation
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from lowcode_server.billing.entitlements import (
    BooleanEntitlement,
    MeteredEntitlement,
    NumericEntitlement,
    ProviderSubscription,
    Subscription,
)
from lowcode_server.billing.errors import BillingLimitationError, BillingProviderError
from lowcode_server.billing.features import (
    GIT_PROVIDER_FEATURES,
    SUBSCRIPTION_PLAN_MAP,
    SUBSCRIPTION_STATUS_MAP,
    BillingFeature,
    BillingPlan,
    EnumSubscriptionPlan,
    EnumSubscriptionStatus,
    EnumUsageUpdateBehavior,
    ProviderSubscriptionStatus,
)
from lowcode_server.billing.provider_client import BillingProviderClient
from lowcode_server.config.config import get_billing_config, is_billing_enabled
from lowcode_server.persistence.models import EnumGitProvider
from lowcode_server.services.analytics_service import EnumEventType, analytics_service
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.billing.billing_service")

MSG_RESOURCE_LIMITATION = "Your workspace exceeds its resource limitation."
MSG_TEAM_MEMBER_LIMITATION = "Your workspace exceeds its team member limitation."
MSG_ENTITIES_PER_SERVICE_LIMITATION = (
    "Your workspace has one or more services with more than {limit} entities, "
    "while it is not part of your current plan."
)
MSG_GIT_PROVIDER_LIMITATION = (
    "Your workspace uses {provider} integration, while it is not part of your "
    "current plan."
)


def _git_provider_of(repository) -> Optional[EnumGitProvider]:
    """Resolve the git provider a repository is hosted on."""
    git_organization = getattr(repository, "git_organization", None)
    if git_organization is None:
        return None
    provider = git_organization.provider
    if isinstance(provider, EnumGitProvider):
        return provider
    try:
        return EnumGitProvider(provider)
    except ValueError:
        logger.warning("Unknown git provider '%s' on repository", provider)
        return None


def _distinct_providers(repositories: Iterable) -> List[EnumGitProvider]:
    providers: List[EnumGitProvider] = []
    for repository in repositories:
        provider = _git_provider_of(repository)
        if provider is not None and provider not in providers:
            providers.append(provider)
    return providers


class BillingService:
    """
    Service for subscription and entitlement queries against the billing provider.
    """

    def __init__(self, client: Optional[BillingProviderClient] = None):
        self._client = client
        self._initialized = False

    @property
    def is_billing_enabled(self) -> bool:
        """Check if billing enforcement is enabled in config."""
        return is_billing_enabled()

    def _get_client(self) -> Optional[BillingProviderClient]:
        """Get the provider client, creating it from config on first use."""
        if not self.is_billing_enabled:
            return None
        if self._client is None:
            billing_config = get_billing_config()
            self._client = BillingProviderClient(
                billing_config["url"],
                billing_config["api_key"],
                timeout=billing_config["timeout"],
            )
        return self._client

    async def initialize(self) -> None:
        """Prepare the provider client if billing is enabled."""
        if self._initialized:
            logger.debug("Billing service already initialized")
            return

        if self.is_billing_enabled:
            client = self._get_client()
            logger.info("Billing enabled - provider at %s", client.base_url)
        else:
            logger.info("Billing disabled - all entitlements are granted")
        self._initialized = True

    async def shutdown(self) -> None:
        """Release the provider client."""
        self._client = None
        self._initialized = False
        logger.info("Billing service shut down")

    async def get_boolean_entitlement(
        self, workspace_id: str, feature: BillingFeature
    ) -> BooleanEntitlement:
        """Get the workspace's access to a boolean feature."""
        client = self._get_client()
        if client is None:
            return BooleanEntitlement.unlimited()
        return await client.get_boolean_entitlement(str(workspace_id), feature.value)

    async def get_metered_entitlement(
        self, workspace_id: str, feature: BillingFeature
    ) -> MeteredEntitlement:
        """Get the workspace's access and usage for a metered feature."""
        client = self._get_client()
        if client is None:
            return MeteredEntitlement.unlimited()
        return await client.get_metered_entitlement(str(workspace_id), feature.value)

    async def get_numeric_entitlement(
        self, workspace_id: str, feature: BillingFeature
    ) -> NumericEntitlement:
        """Get the workspace's configured value for a numeric feature."""
        client = self._get_client()
        if client is None:
            return NumericEntitlement.unlimited()
        return await client.get_numeric_entitlement(str(workspace_id), feature.value)

    async def report_usage(
        self, workspace_id: str, feature: BillingFeature, value: int = 1
    ) -> None:
        """Add to the workspace's usage of a metered feature."""
        await self._report(workspace_id, feature, value, EnumUsageUpdateBehavior.DELTA)

    async def set_usage(
        self, workspace_id: str, feature: BillingFeature, value: int
    ) -> None:
        """Overwrite the workspace's usage of a metered feature."""
        await self._report(workspace_id, feature, value, EnumUsageUpdateBehavior.SET)

    async def _report(
        self,
        workspace_id: str,
        feature: BillingFeature,
        value: int,
        update_behavior: EnumUsageUpdateBehavior,
    ) -> None:
        client = self._get_client()
        if client is None:
            return
        try:
            await client.report_usage(
                str(workspace_id), feature.value, value, update_behavior
            )
        except BillingProviderError as e:
            logger.error(
                "Failed to report usage of %s for workspace %s: %s",
                feature.value,
                workspace_id,
                e,
            )

    async def provision_customer(self, workspace_id: str, plan: BillingPlan) -> None:
        """Register the workspace as a billing customer on the given plan."""
        client = self._get_client()
        if client is None:
            return
        await client.provision_customer(
            str(workspace_id), plan.value, should_sync_free=False
        )
        logger.info("Provisioned billing customer %s on %s", workspace_id, plan.value)

    async def get_subscription(self, workspace_id: str) -> Optional[Subscription]:
        """
        Get the workspace's subscription.

        A workspace has at most one subscription in effect, so the first
        active provider subscription is the one returned.
        """
        client = self._get_client()
        if client is None:
            return None

        active_subscriptions = await client.get_active_subscriptions(str(workspace_id))
        if not active_subscriptions:
            return None

        subscription = active_subscriptions[0]
        now = datetime.now(timezone.utc)
        return Subscription(
            id=subscription.id,
            status=self._map_subscription_status(subscription),
            workspace_id=str(workspace_id),
            subscription_plan=self._map_subscription_plan(subscription),
            created_at=now,
            updated_at=now,
            next_billing_date=subscription.current_billing_period_end,
            price=subscription.price,
        )

    @staticmethod
    def _map_subscription_status(
        subscription: ProviderSubscription,
    ) -> EnumSubscriptionStatus:
        try:
            status = ProviderSubscriptionStatus(subscription.status)
        except ValueError:
            logger.warning("Unknown subscription status '%s'", subscription.status)
            return EnumSubscriptionStatus.DELETED
        return SUBSCRIPTION_STATUS_MAP[status]

    @staticmethod
    def _map_subscription_plan(
        subscription: ProviderSubscription,
    ) -> EnumSubscriptionPlan:
        try:
            plan = BillingPlan(subscription.plan.id)
        except ValueError:
            logger.warning("Unknown billing plan '%s'", subscription.plan.id)
            return EnumSubscriptionPlan.FREE
        return SUBSCRIPTION_PLAN_MAP[plan]

    def _limitation_reached(
        self,
        message: str,
        feature: BillingFeature,
        workspace_id: str,
        current_user,
        current_project_id: Optional[str],
        bypass_limitations: bool,
    ) -> None:
        """Raise for a failed check, or record it when limitations are bypassed."""
        if not bypass_limitations:
            raise BillingLimitationError(message, feature.value)

        logger.warning(
            "Workspace %s passed its %s limitation", workspace_id, feature.value
        )
        analytics_service.track(
            EnumEventType.SUBSCRIPTION_LIMIT_PASSED,
            workspace_id=workspace_id,
            user_id=getattr(current_user, "id", None),
            properties={
                "limitType": feature.value,
                "projectId": str(current_project_id) if current_project_id else None,
                "message": message,
            },
        )

    async def validate_subscription_plan_limitations_for_workspace(
        self,
        workspace_id: str,
        current_user,
        current_project_id: Optional[str],
        projects: Sequence,
        repositories: Sequence,
        bypass_limitations: bool = False,
    ) -> None:
        """
        Check the workspace against the limitations of its plan.

        Checks run in a fixed order and stop at the first failure:
        services, team members, entities per service, then every non-default
        git provider in use. Workspaces entitled to skip code generation
        validation are not checked at all.

        Raises:
            BillingLimitationError: a limitation is exceeded and
                bypass_limitations is False
        """
        if not self.is_billing_enabled:
            return

        ignore_validation = await self.get_boolean_entitlement(
            workspace_id, BillingFeature.IGNORE_VALIDATION_CODE_GENERATION
        )
        if ignore_validation.has_access:
            return

        logger.debug(
            "Validating plan limitations for workspace %s "
            "(%d projects, %d repositories)",
            workspace_id,
            len(projects),
            len(repositories),
        )

        services_entitlement = await self.get_metered_entitlement(
            workspace_id, BillingFeature.SERVICES
        )
        if not services_entitlement.has_access:
            self._limitation_reached(
                MSG_RESOURCE_LIMITATION,
                BillingFeature.SERVICES,
                workspace_id,
                current_user,
                current_project_id,
                bypass_limitations,
            )

        members_entitlement = await self.get_metered_entitlement(
            workspace_id, BillingFeature.TEAM_MEMBERS
        )
        if not members_entitlement.has_access:
            self._limitation_reached(
                MSG_TEAM_MEMBER_LIMITATION,
                BillingFeature.TEAM_MEMBERS,
                workspace_id,
                current_user,
                current_project_id,
                bypass_limitations,
            )

        entities_above_limit_entitlement = await self.get_metered_entitlement(
            workspace_id, BillingFeature.SERVICES_ABOVE_ENTITIES_PER_SERVICE_LIMIT
        )
        if not entities_above_limit_entitlement.has_access:
            entities_per_service = await self.get_numeric_entitlement(
                workspace_id, BillingFeature.ENTITIES_PER_SERVICE
            )
            self._limitation_reached(
                MSG_ENTITIES_PER_SERVICE_LIMITATION.format(
                    limit=entities_per_service.value
                ),
                BillingFeature.SERVICES_ABOVE_ENTITIES_PER_SERVICE_LIMIT,
                workspace_id,
                current_user,
                current_project_id,
                bypass_limitations,
            )

        for provider in _distinct_providers(repositories):
            feature = GIT_PROVIDER_FEATURES.get(provider)
            if feature is None:
                continue
            provider_entitlement = await self.get_boolean_entitlement(
                workspace_id, feature
            )
            if not provider_entitlement.has_access:
                self._limitation_reached(
                    MSG_GIT_PROVIDER_LIMITATION.format(provider=provider.value),
                    feature,
                    workspace_id,
                    current_user,
                    current_project_id,
                    bypass_limitations,
                )


# Global billing service instance
billing_service = BillingService()
