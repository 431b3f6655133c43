"""Repository for ActivityLog entities. Insert and read only."""
from typing import Optional, List

from sqlalchemy.orm import joinedload

from certguardian.models_db import ActivityAction, ActivityEntity, ActivityLog


class ActivityLogRepository:
    def __init__(self, session):
        self._session = session

    def add(self, log: ActivityLog) -> ActivityLog:
        self._session.add(log)
        return log

    def get_recent(
        self,
        limit: int = 100,
        user_id: Optional[int] = None,
        entity: Optional[ActivityEntity] = None,
        action: Optional[ActivityAction] = None,
        entity_id: Optional[int] = None,
    ) -> List[ActivityLog]:
        """Newest first."""
        query = self._session.query(ActivityLog).options(joinedload(ActivityLog.user))

        if user_id is not None:
            query = query.filter(ActivityLog.user_id == user_id)
        if entity is not None:
            query = query.filter(ActivityLog.entity == entity)
        if action is not None:
            query = query.filter(ActivityLog.action == action)
        if entity_id is not None:
            query = query.filter(ActivityLog.entity_id == entity_id)

        return query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc()).limit(limit).all()
