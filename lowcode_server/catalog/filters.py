"""
Translation of catalog search input into a resource where-input.

The catalog UI sends a free-text search phrase and a flat mapping of filter
key to value. Keys that name a workspace custom property are turned into
JSON-path filters over the resource properties; the rest are resource column
filters.
"""

from typing import Any, Dict, List, Mapping, Optional

from lowcode_server.persistence.models import EnumCustomPropertyType

QUERY_MODE_INSENSITIVE = "insensitive"

RESOURCE_TYPE_KEY = "resourceType"
OWNERSHIP_KEY = "ownership"


def _property_type(custom_property) -> str:
    """Read the type of a custom property given as a model, dict or bare type."""
    if isinstance(custom_property, Mapping):
        value = custom_property.get("type") or custom_property.get("property_type")
    elif isinstance(custom_property, str):
        value = custom_property
    else:
        value = getattr(custom_property, "property_type", None) or getattr(
            custom_property, "type", None
        )
    return value.value if isinstance(value, EnumCustomPropertyType) else value


def build_properties_filter(
    property_filters: Mapping[str, str], custom_properties_map: Mapping[str, Any]
) -> Optional[Dict[str, List[Dict[str, Any]]]]:
    """
    Build the JSON-path filter for custom property values.

    Select properties match on equality, MultiSelect properties match when the
    stored list contains the value. Empty values are skipped; None is returned
    when nothing is left to filter on.
    """
    items = []
    for key, value in property_filters.items():
        if not value:
            continue
        property_type = _property_type(custom_properties_map[key])
        item = {"path": key}
        if property_type == EnumCustomPropertyType.SELECT.value:
            item["equals"] = value
        elif property_type == EnumCustomPropertyType.MULTI_SELECT.value:
            item["array_contains"] = value
        items.append(item)

    if not items:
        return None
    return {"match_all": items}


def build_other_filters(other_filters: Mapping[str, str]) -> Dict[str, Any]:
    """Build resource column filters from the non-property filter keys."""
    where: Dict[str, Any] = {}
    for key, value in other_filters.items():
        if not value:
            continue
        if key == RESOURCE_TYPE_KEY:
            where[key] = {"equals": value}
        elif key == OWNERSHIP_KEY:
            parts = value.split(":")
            if len(parts) != 2 or not parts[0] or not parts[1]:
                continue
            where[key] = {parts[0]: parts[1]}
        else:
            where[key] = value
    return where


def build_catalog_where(
    search_phrase: str,
    filters: Optional[Mapping[str, str]],
    custom_properties_map: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Build the where-input for a catalog search.

    Args:
        search_phrase: Free text matched case-insensitively against the name
        filters: Filter key to value, as selected in the catalog UI
        custom_properties_map: Custom property key to property (or its type)

    Returns:
        Where-input with optional 'name', 'properties' and column filter keys
    """
    filters = filters or {}
    property_filters = {k: v for k, v in filters.items() if k in custom_properties_map}
    other_filters = {k: v for k, v in filters.items() if k not in custom_properties_map}

    where = build_other_filters(other_filters)

    properties_filter = build_properties_filter(property_filters, custom_properties_map)
    if properties_filter is not None:
        where["properties"] = properties_filter

    if search_phrase:
        where["name"] = {"contains": search_phrase, "mode": QUERY_MODE_INSENSITIVE}

    return where
