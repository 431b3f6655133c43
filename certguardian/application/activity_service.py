"""Service for the append-only activity log."""
import logging
from dataclasses import dataclass
from typing import Optional

from certguardian.models_db import ActivityAction, ActivityEntity, ActivityLog, User

logger = logging.getLogger(__name__)

MAX_LOG_LIMIT = 500


@dataclass
class Actor:
    """Who is performing a request, and from where."""
    user: Optional[User]
    ip_address: Optional[str] = None

    @property
    def user_id(self) -> Optional[int]:
        return self.user.id if self.user is not None else None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin


class ActivityService:
    def __init__(self, uow):
        self._uow = uow

    def record(self, actor: Actor, action: ActivityAction, entity: ActivityEntity,
               entity_id: Optional[int] = None, details: Optional[dict] = None) -> ActivityLog:
        """
        Stage an activity log row in the current transaction.

        The caller commits, so the row lands together with the change it describes.
        """
        log = ActivityLog(
            user_id=actor.user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            details=details or None,
            ip_address=actor.ip_address,
        )
        self._uow.activity_logs.add(log)
        logger.info(f"Atividade: {action.value}/{entity.value} id={entity_id} por user={actor.user_id}")
        return log

    def list_recent(self, limit: int = 100, user_id: Optional[int] = None,
                    entity: Optional[ActivityEntity] = None, action: Optional[ActivityAction] = None):
        limit = max(1, min(int(limit), MAX_LOG_LIMIT))
        return self._uow.activity_logs.get_recent(limit=limit, user_id=user_id, entity=entity, action=action)
