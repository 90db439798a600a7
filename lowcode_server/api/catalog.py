"""
Catalog API endpoints - search the resources of a workspace.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from lowcode_server.auth.auth_bearer import ensure_workspace_access, get_current_user
from lowcode_server.catalog.filters import build_catalog_where
from lowcode_server.catalog.search import get_custom_properties_map, search_catalog
from lowcode_server.persistence.db import get_db
from lowcode_server.persistence.models import User

router = APIRouter()


class CatalogSearchRequest(BaseModel):
    """Schema for a catalog search"""

    search_phrase: str = ""
    filters: Optional[Dict[str, str]] = None


class CatalogResource(BaseModel):
    """Schema for a resource in catalog results"""

    id: str
    name: str
    description: str
    resource_type: str
    project_id: str
    properties: Optional[dict] = None
    owner_user_id: Optional[str] = None
    owner_team_id: Optional[str] = None


def _optional_str(value) -> Optional[str]:
    return str(value) if value is not None else None


@router.post(
    "/workspaces/{workspace_id}/catalog", response_model=List[CatalogResource]
)
async def search_workspace_catalog(
    workspace_id: str,
    request: CatalogSearchRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Search the workspace's resources by name, type, owner or custom property."""
    workspace_uuid = ensure_workspace_access(current_user, workspace_id)
    where = build_catalog_where(
        request.search_phrase,
        request.filters,
        get_custom_properties_map(db, workspace_uuid),
    )
    return [
        CatalogResource(
            id=str(resource.id),
            name=resource.name,
            description=resource.description or "",
            resource_type=resource.resource_type,
            project_id=str(resource.project_id),
            properties=resource.properties,
            owner_user_id=_optional_str(resource.owner_user_id),
            owner_team_id=_optional_str(resource.owner_team_id),
        )
        for resource in search_catalog(db, workspace_uuid, where)
    ]
