"""
Feature gating decorator for billing entitlements.

Restricts async handlers to workspaces whose plan includes a boolean feature.
"""

import functools
from typing import Callable, Union

from lowcode_server.billing.errors import BillingLimitationError
from lowcode_server.billing.features import BillingFeature
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.billing.feature_gate")


def requires_billing_feature(feature: Union[BillingFeature, str]) -> Callable:
    """
    Decorator to require a boolean billing feature for the calling workspace.

    The decorated coroutine must receive the workspace id as the
    ``workspace_id`` keyword argument.

    Usage:
        @requires_billing_feature(BillingFeature.CUSTOM_ACTIONS)
        async def create_custom_action(*, workspace_id: str, ...):
            ...

    Raises:
        BillingLimitationError: the workspace has no access to the feature
    """
    if isinstance(feature, str) and not isinstance(feature, BillingFeature):
        feature_code = BillingFeature.from_string(feature)
    else:
        feature_code = feature

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            # pylint: disable=import-outside-toplevel
            from lowcode_server.billing.billing_service import billing_service

            workspace_id = kwargs.get("workspace_id")
            if workspace_id is None:
                raise ValueError(
                    f"{func.__name__} must be called with a workspace_id "
                    "keyword argument"
                )

            entitlement = await billing_service.get_boolean_entitlement(
                workspace_id, feature_code
            )
            if not entitlement.has_access:
                logger.warning(
                    "Workspace %s denied feature '%s'", workspace_id, feature_code.value
                )
                raise BillingLimitationError(
                    f"This feature requires a plan with '{feature_code.value}' enabled",
                    feature_code.value,
                )
            return await func(*args, **kwargs)

        return wrapper

    return decorator
