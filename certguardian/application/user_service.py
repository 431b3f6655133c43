"""Service for admin user management and per-company permissions."""
import logging
from typing import List

from certguardian.application.activity_service import ActivityService, Actor
from certguardian.domain.exceptions import (
    BusinessRuleViolationError, CompanyNotFoundError, ConflictError, PermissionNotFoundError, UserNotFoundError,
)
from certguardian.models_db import ActivityAction, ActivityEntity, User, UserPermission
from certguardian.schemas import PermissionUpsert, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, uow, activity: ActivityService = None):
        self._uow = uow
        self._activity = activity or ActivityService(uow)

    def list_users(self) -> List[User]:
        return self._uow.users.get_all()

    def get_user(self, user_id: int) -> User:
        user = self._uow.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    def update_user(self, user_id: int, data: UserUpdate, actor: Actor) -> User:
        user = self.get_user(user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if 'email' in changes:
            existing = self._uow.users.get_by_email(changes['email'])
            if existing and existing.id != user.id:
                raise ConflictError("Email já está em uso", "email")

        if 'role' in changes and user.id == actor.user_id and changes['role'] != user.role:
            raise BusinessRuleViolationError("self_demotion", "Você não pode alterar o próprio perfil")

        for field, value in changes.items():
            setattr(user, field, value)

        self._activity.record(
            actor, ActivityAction.UPDATE, ActivityEntity.USER, user.id,
            {key: getattr(value, 'value', value) for key, value in changes.items()},
        )
        self._uow.commit()
        return user

    def delete_user(self, user_id: int, actor: Actor) -> None:
        if user_id == actor.user_id:
            raise BusinessRuleViolationError("self_delete", "Você não pode excluir o próprio usuário")

        user = self.get_user(user_id)
        username = user.username
        self._uow.users.delete(user)
        self._activity.record(actor, ActivityAction.DELETE, ActivityEntity.USER, user_id, {"username": username})
        self._uow.commit()
        logger.info(f"Usuário {username} excluído por {actor.user_id}")

    # Permissões

    def list_permissions(self, user_id: int) -> List[UserPermission]:
        self.get_user(user_id)
        return self._uow.permissions.get_by_user(user_id)

    def upsert_permission(self, data: PermissionUpsert, actor: Actor) -> UserPermission:
        self.get_user(data.user_id)
        if not self._uow.companies.get_by_id(data.company_id):
            raise CompanyNotFoundError(data.company_id)

        permission = self._uow.permissions.get(data.user_id, data.company_id)
        action = ActivityAction.UPDATE
        if permission is None:
            permission = UserPermission(user_id=data.user_id, company_id=data.company_id)
            self._uow.permissions.add(permission)
            action = ActivityAction.CREATE

        permission.can_view = data.view
        permission.can_edit = data.edit
        permission.can_delete = data.delete
        permission.can_view_password = data.view_password

        self._activity.record(
            actor, action, ActivityEntity.USER, data.user_id,
            {
                "permission": {
                    "companyId": data.company_id,
                    "view": data.view,
                    "edit": data.edit,
                    "delete": data.delete,
                    "viewPassword": data.view_password,
                }
            },
        )
        self._uow.commit()
        return permission

    def delete_permission(self, user_id: int, company_id: int, actor: Actor) -> None:
        permission = self._uow.permissions.get(user_id, company_id)
        if permission is None:
            raise PermissionNotFoundError()

        self._uow.permissions.delete(permission)
        self._activity.record(
            actor, ActivityAction.DELETE, ActivityEntity.USER, user_id,
            {"permission": {"companyId": company_id}},
        )
        self._uow.commit()
