"""Repository for UserPermission entities."""
from typing import Optional, List

from sqlalchemy.orm import joinedload

from certguardian.models_db import UserPermission


class PermissionRepository:
    def __init__(self, session):
        self._session = session

    def get(self, user_id: int, company_id: int) -> Optional[UserPermission]:
        return self._session.query(UserPermission).filter_by(
            user_id=user_id, company_id=company_id
        ).first()

    def get_by_user(self, user_id: int) -> List[UserPermission]:
        return self._session.query(UserPermission).options(
            joinedload(UserPermission.company),
        ).filter(UserPermission.user_id == user_id).order_by(UserPermission.company_id).all()

    def get_viewable_company_ids(self, user_id: int) -> List[int]:
        rows = self._session.query(UserPermission.company_id).filter(
            UserPermission.user_id == user_id,
            UserPermission.can_view.is_(True),
        ).all()
        return [row[0] for row in rows]

    def add(self, permission: UserPermission) -> UserPermission:
        self._session.add(permission)
        return permission

    def delete(self, permission: UserPermission) -> None:
        self._session.delete(permission)
