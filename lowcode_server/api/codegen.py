"""
Code generation API endpoints.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from lowcode_server.auth.auth_bearer import get_current_user
from lowcode_server.billing.billing_service import billing_service
from lowcode_server.billing.features import BillingFeature
from lowcode_server.billing.limitations import (
    ensure_plugins_allowed,
    validate_workspace_limitations,
)
from lowcode_server.codegen.context import DsgResourceData
from lowcode_server.codegen.generator import create_dotnet_service
from lowcode_server.codegen.plugins import PluginRegistry
from lowcode_server.persistence.db import get_db
from lowcode_server.persistence.models import User
from lowcode_server.services.analytics_service import EnumEventType, analytics_service
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.api.codegen")

router = APIRouter()


def _plugin_registry(request: Request) -> PluginRegistry:
    registry = getattr(request.app.state, "plugin_registry", None)
    if registry is None:
        # Lifespan did not run, e.g. the app is mounted without it
        registry = PluginRegistry()
        request.app.state.plugin_registry = registry
    return registry


@router.post("/codegen/generate")
async def generate_service(
    data: DsgResourceData,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Generate the source of a .NET service resource.

    The workspace must be within the limitations of its plan, and builds
    running plugins need a plan that includes them.
    Returns the generated files and the build log.
    """
    logger.info(
        "User %s requested generation of resource %s",
        current_user.id,
        data.resource_info.id,
    )
    await validate_workspace_limitations(db, current_user.workspace_id, current_user)
    if any(installation.enabled for installation in data.plugin_installations):
        await ensure_plugins_allowed(workspace_id=str(current_user.workspace_id))

    result = await create_dotnet_service(data, _plugin_registry(request))

    await billing_service.report_usage(
        str(current_user.workspace_id), BillingFeature.CODE_GENERATION_BUILDS
    )
    analytics_service.track(
        EnumEventType.CODE_GENERATED,
        workspace_id=current_user.workspace_id,
        user_id=current_user.id,
        properties={
            "resourceId": data.resource_info.id,
            "files": len(result.modules),
        },
    )
    return result.to_dict()
