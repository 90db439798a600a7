"""
Billing API endpoints - subscription, entitlements and plan limitations of a
workspace.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from lowcode_server.auth.auth_bearer import ensure_workspace_access, get_current_user
from lowcode_server.billing.billing_service import billing_service
from lowcode_server.billing.features import BillingFeature
from lowcode_server.billing.limitations import validate_workspace_limitations
from lowcode_server.persistence.db import get_db
from lowcode_server.persistence.models import User

router = APIRouter()

ENTITLEMENT_KINDS = ("boolean", "metered", "numeric")


class ValidateLimitationsRequest(BaseModel):
    """Schema for a plan limitation check"""

    project_id: Optional[str] = None
    bypass_limitations: bool = False


@router.get("/workspaces/{workspace_id}/subscription")
async def get_subscription(
    workspace_id: str, current_user: User = Depends(get_current_user)
):
    """Get the workspace's subscription, or null when it has none."""
    ensure_workspace_access(current_user, workspace_id)
    subscription = await billing_service.get_subscription(workspace_id)
    if subscription is None:
        return None
    return subscription.model_dump(mode="json")


@router.get("/workspaces/{workspace_id}/entitlements/{feature}")
async def get_entitlement(
    workspace_id: str,
    feature: str,
    kind: str = Query("boolean"),
    current_user: User = Depends(get_current_user),
):
    """Get the workspace's entitlement to a billing feature."""
    ensure_workspace_access(current_user, workspace_id)
    if kind not in ENTITLEMENT_KINDS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown entitlement kind '{kind}', expected one of "
            f"{', '.join(ENTITLEMENT_KINDS)}",
        )
    try:
        billing_feature = BillingFeature.from_string(feature)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    if kind == "metered":
        entitlement = await billing_service.get_metered_entitlement(
            workspace_id, billing_feature
        )
    elif kind == "numeric":
        entitlement = await billing_service.get_numeric_entitlement(
            workspace_id, billing_feature
        )
    else:
        entitlement = await billing_service.get_boolean_entitlement(
            workspace_id, billing_feature
        )
    return {"feature": billing_feature.value, "kind": kind, **entitlement.model_dump()}


@router.post("/workspaces/{workspace_id}/validate-limitations")
async def validate_limitations(
    workspace_id: str,
    request: ValidateLimitationsRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Check the workspace against the limitations of its plan. A failed check
    is reported as a billing limitation error.
    """
    workspace_uuid = ensure_workspace_access(current_user, workspace_id)
    await validate_workspace_limitations(
        db,
        workspace_uuid,
        current_user,
        current_project_id=request.project_id,
        bypass_limitations=request.bypass_limitations,
    )
    return {"valid": True}
