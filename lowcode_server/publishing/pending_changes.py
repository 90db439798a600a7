"""
Pending change grouping and publish planning.
"""

import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from lowcode_server.persistence.models import (
    RESOURCE_TYPE_GROUPS,
    EnumResourceType,
    EnumResourceTypeGroup,
    PendingChange,
    Resource,
)
from lowcode_server.publishing.versions import ReleaseType, increment_version


@dataclass
class ResourceChanges:
    """The pending changes of one resource."""

    resource: Resource
    changes: List[PendingChange] = field(default_factory=list)


@dataclass
class TemplateVersion:
    """A service template with the version it will be published as."""

    resource: Resource
    current_version: Optional[str]
    new_version: str


@dataclass
class PublishPlan:
    """Pending resources split into versioned templates and everything else."""

    templates: List[TemplateVersion]
    others: List[Resource]


def current_version_of(resource: Resource) -> Optional[str]:
    """Get the version string of the resource's latest published version."""
    latest = resource.latest_version
    return latest.version if latest is not None else None


def get_pending_changes_by_resource(
    db: Session,
    project_id,
    type_group: Optional[EnumResourceTypeGroup] = None,
) -> List[ResourceChanges]:
    """
    Get the project's pending changes grouped per resource.

    Resources keep the order of their oldest pending change.
    """
    if not isinstance(project_id, uuid.UUID):
        project_id = uuid.UUID(str(project_id))

    query = (
        db.query(PendingChange)
        .join(Resource, PendingChange.resource_id == Resource.id)
        .filter(Resource.project_id == project_id)
        .filter(Resource.deleted_at.is_(None))
    )
    if type_group is not None:
        types = [t.value for t in RESOURCE_TYPE_GROUPS[type_group]]
        query = query.filter(Resource.resource_type.in_(types))

    grouped: Dict[uuid.UUID, ResourceChanges] = {}
    for change in query.order_by(PendingChange.created_at).all():
        entry = grouped.get(change.resource_id)
        if entry is None:
            entry = ResourceChanges(resource=change.resource)
            grouped[change.resource_id] = entry
        entry.changes.append(change)
    return list(grouped.values())


def plan_publish(
    pending: List[ResourceChanges], release_type: ReleaseType = ReleaseType.MINOR
) -> PublishPlan:
    """
    Split pending resources into service templates, which are published
    under a new semantic version, and other resources.
    """
    templates = []
    others = []
    for resource_changes in pending:
        resource = resource_changes.resource
        if resource.resource_type == EnumResourceType.SERVICE_TEMPLATE.value:
            current_version = current_version_of(resource)
            templates.append(
                TemplateVersion(
                    resource=resource,
                    current_version=current_version,
                    new_version=increment_version(current_version, release_type),
                )
            )
        else:
            others.append(resource)
    return PublishPlan(templates=templates, others=others)
