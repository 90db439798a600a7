"""
Core models - accounts, workspaces and workspace users.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from lowcode_server.persistence.db import Base


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator):  # pylint: disable=too-many-ancestors
    """
    UUID column: native UUID on PostgreSQL, canonical 36 character text
    elsewhere. Bound values may be UUIDs or their string form; loaded values
    are always uuid.UUID.
    """

    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(String(36))

    @staticmethod
    def _coerce(value):
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = self._coerce(value)
        return value if dialect.name == "postgresql" else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else self._coerce(value)

    def process_literal_param(self, value, dialect):
        return None if value is None else f"'{self._coerce(value)}'"

    @property
    def python_type(self):
        return uuid.UUID


class Account(Base):
    """
    A login identity. One account may be a user in several workspaces.
    """

    __tablename__ = "account"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    hashed_password = Column(String(255), nullable=False)
    current_user_id = Column(GUID(), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    users = relationship("User", back_populates="account")

    def __repr__(self):
        return f"<Account(id={self.id}, email='{self.email}')>"


class Workspace(Base):
    """
    Billing customer and tenant boundary. Subscriptions and entitlements are
    always evaluated per workspace.
    """

    __tablename__ = "workspace"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    users = relationship("User", back_populates="workspace")
    projects = relationship("Project", back_populates="workspace")
    git_organizations = relationship("GitOrganization", back_populates="workspace")

    def __repr__(self):
        return f"<Workspace(id={self.id}, name='{self.name}')>"


class User(Base):
    """
    Membership of an account in a workspace.
    """

    __tablename__ = "user"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    account_id = Column(
        GUID(), ForeignKey("account.id", ondelete="CASCADE"), nullable=False
    )
    workspace_id = Column(
        GUID(), ForeignKey("workspace.id", ondelete="CASCADE"), nullable=False
    )
    is_owner = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    account = relationship("Account", back_populates="users")
    workspace = relationship("Workspace", back_populates="users")

    def __repr__(self):
        return f"<User(id={self.id}, workspace_id={self.workspace_id}, is_owner={self.is_owner})>"
