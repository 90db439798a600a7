"""
Billing plan, feature and subscription status definitions.

BillingFeature: features the billing provider tracks per workspace
BillingPlan: plan ids as known to the billing provider
"""

from enum import Enum

from lowcode_server.persistence.models import EnumGitProvider


class BillingFeature(str, Enum):
    """
    Feature ids as configured in the billing provider.
    Metered features carry a usage limit, boolean features only grant access.
    """

    # Metered features
    PROJECTS = "projects"
    SERVICES = "services"
    TEAM_MEMBERS = "team-members"
    SERVICES_ABOVE_ENTITIES_PER_SERVICE_LIMIT = (
        "services-above-entities-per-service-limit"
    )
    CODE_GENERATION_BUILDS = "code-generation-builds"

    # Numeric features
    ENTITIES_PER_SERVICE = "entities-per-service"

    # Boolean features
    IGNORE_VALIDATION_CODE_GENERATION = "ignore-validation-code-generation"
    BITBUCKET = "feature-bitbucket"
    GITLAB = "feature-gitlab"
    AWS_CODE_COMMIT = "feature-aws-codecommit"
    AZURE_DEVOPS = "feature-azure-devops"
    CUSTOM_ACTIONS = "feature-custom-actions"
    CODE_PUSH = "feature-code-push"
    PRIVATE_PLUGINS = "feature-private-plugins"

    @classmethod
    def from_string(cls, value: str) -> "BillingFeature":
        """Convert string to BillingFeature enum."""
        try:
            return cls(value)
        except ValueError as exc:
            raise ValueError(f"Unknown billing feature: {value}") from exc


class BillingPlan(str, Enum):
    """
    Plan ids as configured in the billing provider.
    """

    FREE = "plan-amplication-free"
    PRO = "plan-amplication-pro"
    TEAM = "plan-amplication-team"
    ENTERPRISE = "plan-amplication-enterprise"


class ProviderSubscriptionStatus(str, Enum):
    """Subscription status as reported by the billing provider."""

    ACTIVE = "ACTIVE"
    IN_TRIAL = "IN_TRIAL"
    CANCELED = "CANCELED"
    EXPIRED = "EXPIRED"
    NOT_STARTED = "NOT_STARTED"
    PAYMENT_PENDING = "PAYMENT_PENDING"


class EnumSubscriptionStatus(str, Enum):
    """Subscription status as exposed by the platform."""

    ACTIVE = "Active"
    TRAILING = "Trailing"
    PAST_DUE = "PastDue"
    PAUSED = "Paused"
    DELETED = "Deleted"


class EnumSubscriptionPlan(str, Enum):
    """Subscription plan as exposed by the platform."""

    FREE = "Free"
    PRO = "Pro"
    TEAM = "Team"
    ENTERPRISE = "Enterprise"


class EnumUsageUpdateBehavior(str, Enum):
    """How a usage report is applied to the current usage counter."""

    DELTA = "DELTA"
    SET = "SET"


SUBSCRIPTION_STATUS_MAP = {
    ProviderSubscriptionStatus.ACTIVE: EnumSubscriptionStatus.ACTIVE,
    ProviderSubscriptionStatus.IN_TRIAL: EnumSubscriptionStatus.TRAILING,
    ProviderSubscriptionStatus.PAYMENT_PENDING: EnumSubscriptionStatus.PAST_DUE,
    ProviderSubscriptionStatus.NOT_STARTED: EnumSubscriptionStatus.PAUSED,
    ProviderSubscriptionStatus.CANCELED: EnumSubscriptionStatus.DELETED,
    ProviderSubscriptionStatus.EXPIRED: EnumSubscriptionStatus.DELETED,
}

SUBSCRIPTION_PLAN_MAP = {
    BillingPlan.FREE: EnumSubscriptionPlan.FREE,
    BillingPlan.PRO: EnumSubscriptionPlan.PRO,
    BillingPlan.TEAM: EnumSubscriptionPlan.TEAM,
    BillingPlan.ENTERPRISE: EnumSubscriptionPlan.ENTERPRISE,
}

# Github is the default provider and is available on every plan
GIT_PROVIDER_FEATURES = {
    EnumGitProvider.BITBUCKET: BillingFeature.BITBUCKET,
    EnumGitProvider.GITLAB: BillingFeature.GITLAB,
    EnumGitProvider.AWS_CODE_COMMIT: BillingFeature.AWS_CODE_COMMIT,
    EnumGitProvider.AZURE_DEVOPS: BillingFeature.AZURE_DEVOPS,
}
