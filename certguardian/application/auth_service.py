"""Service for account registration, credential checks and password changes."""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from certguardian.application.activity_service import ActivityService, Actor
from certguardian.domain.exceptions import ConflictError, InvalidCredentialsError, ValidationError
from certguardian.models_db import ActivityAction, ActivityEntity, User, UserRole
from certguardian.schemas import ChangePasswordRequest, RegisterRequest

logger = logging.getLogger(__name__)

# Burned on unknown usernames so the response time doesn't reveal which accounts exist
_DUMMY_HASH = generate_password_hash("certguardian-dummy-password")


def validate_password_strength(password: str) -> None:
    if len(password) < 8 or not any(char.isdigit() for char in password):
        raise ValidationError("A senha deve ter no mínimo 8 caracteres e conter números.", "password")


class AuthService:
    def __init__(self, uow, activity: Optional[ActivityService] = None):
        self._uow = uow
        self._activity = activity or ActivityService(uow)

    def register(self, data: RegisterRequest, actor: Actor) -> User:
        """
        Create an account.

        Only an authenticated admin may choose the role; self-registration
        always yields a plain user.
        """
        validate_password_strength(data.password)

        if self._uow.users.get_by_username(data.username):
            raise ConflictError("Nome de usuário já está em uso", "username")
        if self._uow.users.get_by_email(data.email):
            raise ConflictError("Email já está em uso", "email")

        role = data.role if (actor.is_admin and data.role) else UserRole.USER

        user = User(
            username=data.username,
            password=generate_password_hash(data.password),
            email=data.email,
            name=data.name,
            role=role,
        )
        self._uow.users.add(user)
        try:
            self._uow.flush()
        except IntegrityError as e:
            self._uow.rollback()
            raise ConflictError("Usuário ou email já cadastrado") from e

        # Self-registration is attributed to the new account itself
        log_actor = actor if actor.user is not None else Actor(user=user, ip_address=actor.ip_address)
        self._activity.record(
            log_actor, ActivityAction.CREATE, ActivityEntity.USER, user.id,
            {"username": user.username, "role": role.value},
        )
        self._uow.commit()

        logger.info(f"Usuário cadastrado: {user.username} ({role.value})")
        return user

    def authenticate(self, login: str, password: str, ip_address: Optional[str] = None) -> User:
        user = self._uow.users.get_by_login(login)

        if user is None:
            check_password_hash(_DUMMY_HASH, password)
            logger.warning(f"Login falhou para '{login}' (ip={ip_address})")
            raise InvalidCredentialsError()

        if not check_password_hash(user.password, password):
            logger.warning(f"Login falhou para '{login}' (ip={ip_address})")
            raise InvalidCredentialsError()

        self._activity.record(
            Actor(user=user, ip_address=ip_address), ActivityAction.LOGIN, ActivityEntity.USER, user.id
        )
        self._uow.commit()
        return user

    def record_logout(self, actor: Actor) -> None:
        self._activity.record(actor, ActivityAction.LOGOUT, ActivityEntity.USER, actor.user_id)
        self._uow.commit()

    def change_password(self, user_id: int, data: ChangePasswordRequest, actor: Actor) -> None:
        user = self._uow.users.get_by_id(user_id)
        if user is None or not check_password_hash(user.password, data.current_password):
            raise ValidationError("Senha atual incorreta.", "current_password")

        validate_password_strength(data.new_password)

        user.password = generate_password_hash(data.new_password)
        self._activity.record(actor, ActivityAction.UPDATE, ActivityEntity.USER, user.id, {"field": "password"})
        self._uow.commit()
        logger.info(f"Senha alterada para o usuário {user.id}")
