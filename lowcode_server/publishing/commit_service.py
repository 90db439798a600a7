"""
Commit service - publishes pending changes as new resource versions.
"""

import uuid
from typing import Iterable, List, Mapping, Optional

from sqlalchemy.orm import Session

from lowcode_server.persistence.models import (
    Commit,
    EnumCommitStrategy,
    PendingChange,
    Project,
    ResourceVersion,
    utcnow,
)
from lowcode_server.publishing.pending_changes import (
    ResourceChanges,
    current_version_of,
    get_pending_changes_by_resource,
)
from lowcode_server.publishing.versions import (
    ReleaseType,
    increment_version,
    is_newer_version,
    is_valid_version,
)
from lowcode_server.services.analytics_service import AnalyticsService, EnumEventType
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.publishing.commit_service")


class CommitError(Exception):
    """Exception raised when a commit request cannot be applied."""


def _as_uuid(value) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise CommitError(f"'{value}' is not a valid id") from exc


def _select_resources(
    pending: List[ResourceChanges],
    strategy: EnumCommitStrategy,
    resource_id: Optional[uuid.UUID],
) -> List[ResourceChanges]:
    if strategy != EnumCommitStrategy.SPECIFIC:
        return pending

    if resource_id is None:
        raise CommitError("A resource id is required for the Specific commit strategy")
    selected = [entry for entry in pending if entry.resource.id == resource_id]
    if not selected:
        raise CommitError(f"Resource {resource_id} has no pending changes")
    return selected


def commit_changes(
    db: Session,
    project_id,
    user_id,
    message: str,
    strategy: EnumCommitStrategy,
    resource_versions: Optional[Iterable[Mapping[str, str]]] = None,
    resource_id=None,
) -> Commit:
    """
    Publish the project's pending changes.

    Args:
        db: Database session
        project_id: Project whose changes are published
        user_id: User publishing the changes
        message: Commit message, also stored on every created version
        strategy: Which resources to publish
        resource_versions: Requested {"resource_id", "version"} pairs; resources
            without a requested version get a minor bump
        resource_id: The resource to publish with the Specific strategy

    Returns:
        The created Commit

    Raises:
        CommitError: unknown project, nothing to publish, or an invalid version
    """
    project_id = _as_uuid(project_id)
    project = (
        db.query(Project)
        .filter(Project.id == project_id, Project.deleted_at.is_(None))
        .first()
    )
    if project is None:
        raise CommitError(f"Project {project_id} not found")

    requested_versions = {
        _as_uuid(item["resource_id"]): item["version"]
        for item in (resource_versions or [])
    }

    pending = get_pending_changes_by_resource(db, project_id)
    selected = _select_resources(
        pending, strategy, _as_uuid(resource_id) if resource_id else None
    )
    if not selected:
        raise CommitError("There are no pending changes to publish")

    new_versions = []
    for entry in selected:
        resource = entry.resource
        current_version = current_version_of(resource)
        new_version = requested_versions.get(resource.id) or increment_version(
            current_version, ReleaseType.MINOR
        )
        if not is_valid_version(new_version):
            raise CommitError(f"'{new_version}' is not a valid semantic version")
        if not is_newer_version(new_version, current_version):
            raise CommitError(
                f"Version {new_version} of {resource.name} must be greater "
                f"than {current_version}"
            )
        new_versions.append(new_version)

    commit = Commit(
        id=uuid.uuid4(),
        project_id=project_id,
        user_id=_as_uuid(user_id) if user_id else None,
        message=message,
        strategy=strategy.value,
        created_at=utcnow(),
    )
    db.add(commit)

    published = []
    for entry, new_version in zip(selected, new_versions):
        resource = entry.resource
        db.add(
            ResourceVersion(
                id=uuid.uuid4(),
                resource_id=resource.id,
                commit_id=commit.id,
                version=new_version,
                message=message,
                created_at=utcnow(),
            )
        )
        for change in entry.changes:
            db.delete(change)
        published.append({"resourceId": str(resource.id), "version": new_version})

    AnalyticsService.track_in_session(
        db,
        EnumEventType.COMMIT_CREATED,
        workspace_id=project.workspace_id,
        user_id=user_id,
        properties={"projectId": str(project_id), "resources": published},
    )
    db.commit()
    db.refresh(commit)

    logger.info(
        "Committed %d resources in project %s with strategy %s",
        len(published),
        project_id,
        strategy.value,
    )
    return commit


def count_pending_changes(db: Session, resource_id) -> int:
    """Count a resource's pending changes."""
    return (
        db.query(PendingChange)
        .filter(PendingChange.resource_id == _as_uuid(resource_id))
        .count()
    )
