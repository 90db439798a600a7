"""
Catalog search over the resources of a workspace.
"""

import uuid
from typing import Any, Dict, List, Mapping

from sqlalchemy.orm import Session

from lowcode_server.persistence.models import CustomProperty, Project, Resource
from lowcode_server.utils.verbosity_logger import get_logger, sanitize_log

logger = get_logger("lowcode_server.catalog.search")

OWNERSHIP_COLUMNS = {
    "user": Resource.owner_user_id,
    "team": Resource.owner_team_id,
}


def _as_uuid(value):
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _filter_uuid(key: str, value):
    """Parse an id given in a filter; None when it is not a valid id."""
    try:
        return _as_uuid(value)
    except ValueError:
        logger.debug("Invalid id in catalog filter %s: %s", key, sanitize_log(value))
        return None


def get_custom_properties_map(db: Session, workspace_id) -> Dict[str, CustomProperty]:
    """Get the workspace's custom properties keyed by property key."""
    properties = (
        db.query(CustomProperty)
        .filter(CustomProperty.workspace_id == _as_uuid(workspace_id))
        .all()
    )
    return {prop.key: prop for prop in properties}


def _matches_property_item(
    properties: Mapping[str, Any], item: Mapping[str, Any]
) -> bool:
    path = item["path"]
    if path not in properties:
        return False
    value = properties[path]

    if "equals" in item and item["equals"] is not None:
        return value == item["equals"]
    if "array_contains" in item and item["array_contains"] is not None:
        expected = item["array_contains"]
        if not isinstance(value, list):
            return False
        if isinstance(expected, list):
            return all(entry in value for entry in expected)
        return expected in value
    # Path-only items match any resource that has the property set
    return value is not None


def matches_properties_filter(
    properties: Mapping[str, Any], properties_filter: Mapping[str, Any]
) -> bool:
    """Check a resource's custom property values against a match_all filter."""
    properties = properties or {}
    return all(
        _matches_property_item(properties, item)
        for item in properties_filter.get("match_all", [])
    )


def search_catalog(
    db: Session, workspace_id, where: Mapping[str, Any]
) -> List[Resource]:
    """
    Find the workspace resources matching a catalog where-input.

    Column filters are applied in SQL; custom property filters are applied to
    the loaded rows so the same JSON matching works on every database.
    """
    query = (
        db.query(Resource)
        .join(Project, Resource.project_id == Project.id)
        .filter(Project.workspace_id == _as_uuid(workspace_id))
        .filter(Project.deleted_at.is_(None))
        .filter(Resource.deleted_at.is_(None))
    )

    for key, value in where.items():
        if key == "name":
            query = query.filter(
                Resource.name.icontains(value["contains"], autoescape=True)
            )
        elif key == "resourceType":
            query = query.filter(Resource.resource_type == value["equals"])
        elif key == "ownership":
            for kind, owner_id in value.items():
                column = OWNERSHIP_COLUMNS.get(kind)
                if column is None:
                    logger.debug(
                        "Ignoring unknown ownership kind %s", sanitize_log(kind)
                    )
                    continue
                owner_uuid = _filter_uuid(key, owner_id)
                if owner_uuid is None:
                    return []
                query = query.filter(column == owner_uuid)
        elif key == "projectId":
            project_uuid = _filter_uuid(key, value)
            if project_uuid is None:
                return []
            query = query.filter(Resource.project_id == project_uuid)
        elif key == "properties":
            continue
        else:
            logger.debug("Ignoring unsupported catalog filter %s", sanitize_log(key))

    resources = query.order_by(Resource.name).all()

    properties_filter = where.get("properties")
    if properties_filter:
        resources = [
            resource
            for resource in resources
            if matches_properties_filter(resource.properties, properties_filter)
        ]

    logger.debug("Catalog search returned %d resources", len(resources))
    return resources
