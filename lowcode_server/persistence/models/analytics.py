"""
Analytics event model.
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String

from lowcode_server.persistence.db import Base
from lowcode_server.persistence.models.core import GUID, utcnow


class AnalyticsEvent(Base):
    """
    A tracked product event, e.g. a subscription limit that was bypassed.
    """

    __tablename__ = "analytics_event"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)
    workspace_id = Column(
        GUID(),
        ForeignKey("workspace.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    user_id = Column(GUID(), nullable=True)
    event = Column(String(100), nullable=False, index=True)
    properties = Column(JSON, nullable=True)
    occurred_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self):
        return f"<AnalyticsEvent(id={self.id}, event='{self.event}')>"
