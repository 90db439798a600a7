"""
Models package for the low-code platform persistence layer.

All models are re-exported here so callers can import them from one place.
"""

from .core import *
from .git import *
from .project import *
from .analytics import *

__all__ = [
    # Core models
    "GUID",
    "Account",
    "Workspace",
    "User",
    "utcnow",
    # Git models
    "EnumGitProvider",
    "GitOrganization",
    "GitRepository",
    # Project models
    "EnumResourceType",
    "EnumResourceTypeGroup",
    "RESOURCE_TYPE_GROUPS",
    "EnumPendingChangeAction",
    "EnumPendingChangeOriginType",
    "EnumCommitStrategy",
    "EnumCustomPropertyType",
    "Project",
    "Resource",
    "Commit",
    "ResourceVersion",
    "PendingChange",
    "CustomProperty",
    # Analytics models
    "AnalyticsEvent",
]
