"""
Publishing API endpoints - pending changes and commits of a project.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from lowcode_server.auth.auth_bearer import get_current_user
from lowcode_server.billing.limitations import validate_workspace_limitations
from lowcode_server.persistence.db import get_db
from lowcode_server.persistence.models import EnumCommitStrategy, Project, User
from lowcode_server.publishing.commit_service import commit_changes
from lowcode_server.publishing.pending_changes import (
    get_pending_changes_by_resource,
    plan_publish,
)
from lowcode_server.publishing.versions import ReleaseType

router = APIRouter()


class ResourceVersionRequest(BaseModel):
    """Schema for the version requested for one resource"""

    resource_id: str
    version: str


class CommitRequest(BaseModel):
    """Schema for publishing the pending changes of a project"""

    message: str = Field("", max_length=1000)
    strategy: EnumCommitStrategy = EnumCommitStrategy.ALL_WITH_PENDING_CHANGES
    resource_versions: List[ResourceVersionRequest] = []
    resource_id: Optional[str] = None


def _get_project(db: Session, project_id: str, current_user: User) -> Project:
    """Load a project of the current user's workspace, or fail with 404."""
    try:
        project_uuid = uuid.UUID(project_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Project not found") from exc

    project = (
        db.query(Project)
        .filter(
            Project.id == project_uuid,
            Project.workspace_id == current_user.workspace_id,
            Project.deleted_at.is_(None),
        )
        .first()
    )
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/projects/{project_id}/pending-changes")
async def get_pending_changes(
    project_id: str,
    release_type: ReleaseType = Query(ReleaseType.MINOR),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    List the project's pending changes per resource, with the versions
    service templates would be published as.
    """
    project = _get_project(db, project_id, current_user)
    pending = get_pending_changes_by_resource(db, project.id)
    plan = plan_publish(pending, release_type)
    return {
        "resources": [
            {
                "resourceId": str(entry.resource.id),
                "resourceName": entry.resource.name,
                "resourceType": entry.resource.resource_type,
                "changes": [
                    {
                        "id": str(change.id),
                        "action": change.action,
                        "originType": change.origin_type,
                        "originId": change.origin_id,
                        "originName": change.origin_name,
                        "versionNumber": change.version_number,
                    }
                    for change in entry.changes
                ],
            }
            for entry in pending
        ],
        "templates": [
            {
                "resourceId": str(template.resource.id),
                "currentVersion": template.current_version,
                "newVersion": template.new_version,
            }
            for template in plan.templates
        ],
        "others": [str(resource.id) for resource in plan.others],
    }


@router.post("/projects/{project_id}/commit")
async def commit(
    project_id: str,
    request: CommitRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Publish the project's pending changes as new resource versions.

    The workspace must be within the limitations of its plan.
    """
    project = _get_project(db, project_id, current_user)
    await validate_workspace_limitations(
        db,
        current_user.workspace_id,
        current_user,
        current_project_id=str(project.id),
    )
    created = commit_changes(
        db,
        project.id,
        current_user.id,
        request.message,
        request.strategy,
        resource_versions=[item.model_dump() for item in request.resource_versions],
        resource_id=request.resource_id,
    )
    return {
        "id": str(created.id),
        "message": created.message,
        "strategy": created.strategy,
        "createdAt": created.created_at.isoformat(),
        "resourceVersions": [
            {"resourceId": str(version.resource_id), "version": version.version}
            for version in created.resource_versions
        ],
    }
