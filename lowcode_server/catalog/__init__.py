"""Resource catalog search: filter translation and query execution."""

from lowcode_server.catalog.filters import build_catalog_where
from lowcode_server.catalog.search import get_custom_properties_map, search_catalog

__all__ = ["build_catalog_where", "get_custom_properties_map", "search_catalog"]
