"""Repository for User entities."""
from typing import Optional, List

from sqlalchemy import func, or_

from certguardian.models_db import User, UserRole


class UserRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: int) -> Optional[User]:
        return self._session.get(User, id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self._session.query(User).filter_by(username=username).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self._session.query(User).filter(func.lower(User.email) == email.lower()).first()

    def get_by_login(self, login: str) -> Optional[User]:
        """Username or e-mail, whichever matches."""
        return self._session.query(User).filter(
            or_(User.username == login, func.lower(User.email) == login.lower())
        ).first()

    def get_all(self) -> List[User]:
        return self._session.query(User).order_by(User.name).all()

    def get_admins(self) -> List[User]:
        return self._session.query(User).filter(User.role == UserRole.ADMIN).all()

    def add(self, user: User) -> User:
        self._session.add(user)
        return user

    def delete(self, user: User) -> None:
        self._session.delete(user)
