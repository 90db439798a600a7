"""
Git integration models - connected git organizations and repositories.
"""

import uuid
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from lowcode_server.persistence.db import Base
from lowcode_server.persistence.models.core import GUID, utcnow


class EnumGitProvider(str, Enum):
    """Git hosting providers a workspace can connect."""

    GITHUB = "Github"
    BITBUCKET = "Bitbucket"
    GITLAB = "GitLab"
    AWS_CODE_COMMIT = "AwsCodeCommit"
    AZURE_DEVOPS = "AzureDevOps"


class GitOrganization(Base):
    """
    A git provider organization (or user namespace) connected to a workspace.
    """

    __tablename__ = "git_organization"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    workspace_id = Column(
        GUID(), ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False
    )
    provider = Column(String(30), nullable=False)
    name = Column(String(255), nullable=False)
    installation_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    workspace = relationship("Workspace", back_populates="git_organizations")
    repositories = relationship("GitRepository", back_populates="git_organization")

    def __repr__(self):
        return f"<GitOrganization(id={self.id}, provider='{self.provider}', name='{self.name}')>"


class GitRepository(Base):
    """
    A repository that generated code is pushed to.
    """

    __tablename__ = "git_repository"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    git_organization_id = Column(
        GUID(), ForeignKey("git_organization.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255), nullable=False)
    group_name = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    git_organization = relationship("GitOrganization", back_populates="repositories")

    def __repr__(self):
        return f"<GitRepository(id={self.id}, name='{self.name}')>"
