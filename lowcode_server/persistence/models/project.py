"""
Project models - projects, resources, pending changes, commits and versions.
"""

import uuid
from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from lowcode_server.persistence.db import Base
from lowcode_server.persistence.models.core import GUID, utcnow

# Constants
PROJECT_ID_FK = "project.id"
RESOURCE_ID_FK = "resource.id"
CASCADE_DELETE = "CASCADE"
CASCADE_ALL_DELETE_ORPHAN = "all, delete-orphan"


class EnumResourceType(str, Enum):
    """Kinds of resources a project can hold."""

    SERVICE = "Service"
    MESSAGE_BROKER = "MessageBroker"
    PROJECT_CONFIGURATION = "ProjectConfiguration"
    PLUGIN_REPOSITORY = "PluginRepository"
    SERVICE_TEMPLATE = "ServiceTemplate"
    COMPONENT = "Component"


class EnumResourceTypeGroup(str, Enum):
    """Groups of resource types shown together when publishing."""

    SERVICES = "Services"
    PLATFORM = "Platform"


RESOURCE_TYPE_GROUPS = {
    EnumResourceTypeGroup.SERVICES: {
        EnumResourceType.SERVICE,
        EnumResourceType.MESSAGE_BROKER,
        EnumResourceType.PROJECT_CONFIGURATION,
        EnumResourceType.COMPONENT,
    },
    EnumResourceTypeGroup.PLATFORM: {
        EnumResourceType.SERVICE_TEMPLATE,
        EnumResourceType.PLUGIN_REPOSITORY,
    },
}


class EnumPendingChangeAction(str, Enum):
    """What happened to the changed object."""

    CREATE = "Create"
    UPDATE = "Update"
    DELETE = "Delete"


class EnumPendingChangeOriginType(str, Enum):
    """Kind of object a pending change was recorded against."""

    ENTITY = "Entity"
    BLOCK = "Block"


class EnumCommitStrategy(str, Enum):
    """Which resources a commit publishes."""

    ALL = "All"
    ALL_WITH_PENDING_CHANGES = "AllWithPendingChanges"
    SPECIFIC = "Specific"


class EnumCustomPropertyType(str, Enum):
    """Value shape of a workspace custom property."""

    TEXT = "Text"
    SELECT = "Select"
    MULTI_SELECT = "MultiSelect"


class Project(Base):
    """
    A project groups the resources of a workspace.
    """

    __tablename__ = "project"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    workspace_id = Column(
        GUID(), ForeignKey("workspace.id", ondelete=CASCADE_DELETE), nullable=False
    )
    name = Column(String(255), nullable=False)
    use_demo_repo = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    workspace = relationship("Workspace", back_populates="projects")
    resources = relationship(
        "Resource", back_populates="project", cascade=CASCADE_ALL_DELETE_ORPHAN
    )
    commits = relationship(
        "Commit", back_populates="project", cascade=CASCADE_ALL_DELETE_ORPHAN
    )

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"


class Resource(Base):
    """
    A modeled resource: a service, message broker, template or plugin repository.
    """

    __tablename__ = "resource"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    project_id = Column(
        GUID(), ForeignKey(PROJECT_ID_FK, ondelete=CASCADE_DELETE), nullable=False
    )
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    resource_type = Column(String(50), nullable=False, index=True)
    # Custom property values keyed by property key
    properties = Column(JSON, nullable=True)
    owner_user_id = Column(GUID(), nullable=True)
    owner_team_id = Column(GUID(), nullable=True)
    git_repository_id = Column(
        GUID(), ForeignKey("git_repository.id", ondelete="SET NULL"), nullable=True
    )
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    project = relationship("Project", back_populates="resources")
    git_repository = relationship("GitRepository")
    versions = relationship(
        "ResourceVersion",
        back_populates="resource",
        cascade=CASCADE_ALL_DELETE_ORPHAN,
        order_by="ResourceVersion.created_at",
    )
    pending_changes = relationship(
        "PendingChange", back_populates="resource", cascade=CASCADE_ALL_DELETE_ORPHAN
    )

    @property
    def latest_version(self):
        """Most recently published version, if any."""
        if not self.versions:
            return None
        return self.versions[-1]

    def __repr__(self):
        return f"<Resource(id={self.id}, name='{self.name}', type='{self.resource_type}')>"


class Commit(Base):
    """
    A publish operation over one or more resources of a project.
    """

    __tablename__ = "commit"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    project_id = Column(
        GUID(), ForeignKey(PROJECT_ID_FK, ondelete=CASCADE_DELETE), nullable=False
    )
    user_id = Column(GUID(), nullable=True)
    message = Column(Text, nullable=False, default="")
    strategy = Column(String(30), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    project = relationship("Project", back_populates="commits")
    resource_versions = relationship("ResourceVersion", back_populates="commit")

    def __repr__(self):
        return f"<Commit(id={self.id}, strategy='{self.strategy}')>"


class ResourceVersion(Base):
    """
    A published, semver-tagged snapshot of a resource.
    """

    __tablename__ = "resource_version"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    resource_id = Column(
        GUID(), ForeignKey(RESOURCE_ID_FK, ondelete=CASCADE_DELETE), nullable=False
    )
    commit_id = Column(
        GUID(), ForeignKey("commit.id", ondelete="SET NULL"), nullable=True
    )
    version = Column(String(50), nullable=False)
    message = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, nullable=False, default=utcnow)

    resource = relationship("Resource", back_populates="versions")
    commit = relationship("Commit", back_populates="resource_versions")

    def __repr__(self):
        return f"<ResourceVersion(resource_id={self.resource_id}, version='{self.version}')>"


class PendingChange(Base):
    """
    An unpublished change to an entity or block of a resource.
    """

    __tablename__ = "pending_change"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    resource_id = Column(
        GUID(), ForeignKey(RESOURCE_ID_FK, ondelete=CASCADE_DELETE), nullable=False
    )
    action = Column(String(20), nullable=False)
    origin_type = Column(String(20), nullable=False)
    origin_id = Column(String(36), nullable=False)
    origin_name = Column(String(255), nullable=True)
    version_number = Column(Integer, nullable=False, default=1)
    user_id = Column(GUID(), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    resource = relationship("Resource", back_populates="pending_changes")

    def __repr__(self):
        return f"<PendingChange(resource_id={self.resource_id}, action='{self.action}', origin_type='{self.origin_type}')>"


class CustomProperty(Base):
    """
    A workspace-defined property resources can carry in their 'properties' JSON.
    """

    __tablename__ = "custom_property"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    workspace_id = Column(
        GUID(), ForeignKey("workspace.id", ondelete=CASCADE_DELETE), nullable=False
    )
    key = Column(String(100), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    property_type = Column(String(20), nullable=False)
    options = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<CustomProperty(key='{self.key}', type='{self.property_type}')>"
