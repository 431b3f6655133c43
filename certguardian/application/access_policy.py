"""Per-company authorization: admins pass, everyone else needs a permission flag."""
from enum import Enum
from typing import List, Optional

from certguardian.domain.exceptions import PermissionDeniedError
from certguardian.models_db import User


class Capability(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    VIEW_PASSWORD = "view_password"

    @property
    def attribute(self) -> str:
        return f"can_{self.value}"

    @property
    def denied_message(self) -> str:
        messages = {
            Capability.VIEW: "Sem permissão para visualizar esta empresa",
            Capability.EDIT: "Sem permissão para editar certificados desta empresa",
            Capability.DELETE: "Sem permissão para excluir certificados desta empresa",
            Capability.VIEW_PASSWORD: "Sem permissão para visualizar senhas desta empresa",
        }
        return messages[self]


class AccessPolicy:
    def __init__(self, uow):
        self._uow = uow

    def can(self, user: User, company_id: int, capability: Capability) -> bool:
        if user is None:
            return False
        if user.is_admin:
            return True
        permission = self._uow.permissions.get(user.id, company_id)
        return bool(permission and getattr(permission, capability.attribute))

    def require(self, user: User, company_id: int, capability: Capability) -> None:
        if not self.can(user, company_id, capability):
            raise PermissionDeniedError(capability.denied_message)

    def viewable_company_ids(self, user: User) -> Optional[List[int]]:
        """None means unrestricted (admin)."""
        if user.is_admin:
            return None
        return self._uow.permissions.get_viewable_company_ids(user.id)
