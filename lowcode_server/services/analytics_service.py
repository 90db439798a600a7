"""
Analytics tracking service.

Records product events (subscription limits bypassed, commits, code
generation runs) so they can be reported on later.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from lowcode_server.persistence import db as db_module
from lowcode_server.persistence.models import AnalyticsEvent, utcnow
from lowcode_server.utils.verbosity_logger import get_logger

logger = get_logger("lowcode_server.services.analytics_service")


class EnumEventType(str, Enum):
    """Enumeration of tracked analytics events"""

    SUBSCRIPTION_LIMIT_PASSED = "SubscriptionLimitPassed"
    COMMIT_CREATED = "CommitCreated"
    CODE_GENERATED = "CodeGenerated"


def _to_uuid(value) -> Optional[uuid.UUID]:
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class AnalyticsService:
    """
    Service for persisting analytics events.

    Tracking never fails the caller: database errors are logged and the
    transaction is rolled back.
    """

    def track(
        self,
        event: EnumEventType,
        workspace_id=None,
        user_id=None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Track an event in its own database session.

        Args:
            event: The event being tracked
            workspace_id: Workspace the event belongs to (optional)
            user_id: User that caused the event (optional)
            properties: Additional structured data about the event (optional)
        """
        logger.info(
            "Tracking analytics event %s for workspace %s", event.value, workspace_id
        )
        session_local = sessionmaker(
            autocommit=False, autoflush=False, bind=db_module.get_engine()
        )

        with session_local() as session:
            try:
                self.track_in_session(
                    session,
                    event,
                    workspace_id=workspace_id,
                    user_id=user_id,
                    properties=properties,
                )
                session.commit()
            except Exception as e:
                logger.error("Failed to track analytics event: %s", e)
                session.rollback()

    @staticmethod
    def track_in_session(
        db: Session,
        event: EnumEventType,
        workspace_id=None,
        user_id=None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> AnalyticsEvent:
        """Add an event to an existing session without committing it."""
        entry = AnalyticsEvent(
            id=uuid.uuid4(),
            workspace_id=_to_uuid(workspace_id),
            user_id=_to_uuid(user_id),
            event=event.value,
            properties=properties,
            occurred_at=utcnow(),
        )
        db.add(entry)
        return entry

    @staticmethod
    def list_events(
        db: Session,
        workspace_id=None,
        event: Optional[EnumEventType] = None,
        limit: int = 100,
    ) -> List[AnalyticsEvent]:
        """Query tracked events, newest first."""
        query = db.query(AnalyticsEvent)
        if workspace_id is not None:
            query = query.filter(AnalyticsEvent.workspace_id == _to_uuid(workspace_id))
        if event is not None:
            query = query.filter(AnalyticsEvent.event == event.value)
        return query.order_by(AnalyticsEvent.occurred_at.desc()).limit(limit).all()


# Global analytics service instance
analytics_service = AnalyticsService()
