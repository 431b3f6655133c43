from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional, List

from flask_login import UserMixin
from sqlalchemy import (
    JSON, Boolean, Date, Enum as SAEnum, ForeignKey, Integer, String, Text, TIMESTAMP, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from certguardian.domain.value_objects.certificate_status import (
    CertificateStatus,
    certificate_status,
    days_until_expiration,
)


# 1. Declaração Base
class Base(DeclarativeBase):
    pass


# 2. Enumerações
class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class CertificateType(str, Enum):
    A1 = "A1"  # Arquivo .pfx instalado no computador
    A3 = "A3"  # Token ou cartão


class ActivityAction(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    VIEW = "view"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VIEW_PASSWORD = "view_password"


class ActivityEntity(str, Enum):
    USER = "user"
    COMPANY = "company"
    CERTIFICATE = "certificate"
    SYSTEM = "system"


def _enum_column(enum_cls, name):
    # Persist the lowercase values, not the member names
    return SAEnum(enum_cls, name=name, values_callable=lambda e: [m.value for m in e], validate_strings=True)


JSONType = JSON().with_variant(JSONB, "postgresql")


def utcnow() -> datetime:
    """Naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# 3. Tabelas
class User(UserMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(80), unique=True, index=True, nullable=False)
    password: Mapped[str] = mapped_column(String, nullable=False)  # hash werkzeug
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(_enum_column(UserRole, "user_role"), nullable=False, default=UserRole.USER)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)

    # Relacionamentos
    permissions: Mapped[List["UserPermission"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    identifier: Mapped[str] = mapped_column(String(14), unique=True, nullable=False)  # CPF/CNPJ, só dígitos
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)

    certificates: Mapped[List["Certificate"]] = relationship(
        back_populates="company", cascade="all, delete-orphan", passive_deletes=True
    )
    permissions: Mapped[List["UserPermission"]] = relationship(
        back_populates="company", cascade="all, delete-orphan", passive_deletes=True
    )


class Certificate(Base):
    __tablename__ = "certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    entity: Mapped[str] = mapped_column(String(255), nullable=False)  # Titular
    identifier: Mapped[str] = mapped_column(String(14), nullable=False)
    type: Mapped[CertificateType] = mapped_column(_enum_column(CertificateType, "certificate_type"), nullable=False)
    issued_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiration_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    password: Mapped[Optional[str]] = mapped_column(Text)  # Fernet token, nunca texto puro
    file_path: Mapped[Optional[str]] = mapped_column(String)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow)

    company: Mapped["Company"] = relationship(back_populates="certificates")
    systems: Mapped[List["CertificateSystem"]] = relationship(
        back_populates="certificate", cascade="all, delete-orphan", passive_deletes=True
    )

    def days_until_expiration(self, today: Optional[date] = None) -> int:
        return days_until_expiration(self.expiration_date, today)

    def status(self, today: Optional[date] = None) -> CertificateStatus:
        return certificate_status(self.expiration_date, today)


class CertificateSystem(Base):
    __tablename__ = "certificate_systems"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    certificate_id: Mapped[int] = mapped_column(
        ForeignKey("certificates.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(String)
    description: Mapped[Optional[str]] = mapped_column(Text)

    certificate: Mapped["Certificate"] = relationship(back_populates="systems")


class UserPermission(Base):
    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "company_id", name="uq_user_permissions_user_company"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    can_view: Mapped[bool] = mapped_column("view", Boolean, nullable=False, default=True)
    can_edit: Mapped[bool] = mapped_column("edit", Boolean, nullable=False, default=False)
    can_delete: Mapped[bool] = mapped_column("delete", Boolean, nullable=False, default=False)
    can_view_password: Mapped[bool] = mapped_column("view_password", Boolean, nullable=False, default=False)

    user: Mapped["User"] = relationship(back_populates="permissions")
    company: Mapped["Company"] = relationship(back_populates="permissions")


class ActivityLog(Base):
    """Trilha de auditoria. Somente inserção."""
    __tablename__ = "activity_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    action: Mapped[ActivityAction] = mapped_column(_enum_column(ActivityAction, "activity_action"), nullable=False)
    entity: Mapped[ActivityEntity] = mapped_column(_enum_column(ActivityEntity, "activity_entity"), nullable=False)
    entity_id: Mapped[Optional[int]] = mapped_column(Integer)
    details: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=utcnow, index=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64))

    user: Mapped[Optional["User"]] = relationship()


class PasswordRevealCode(Base):
    """Código de confirmação de uso único para revelar a senha de um certificado."""
    __tablename__ = "password_reveal_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    certificate_id: Mapped[int] = mapped_column(ForeignKey("certificates.id", ondelete="CASCADE"), nullable=False)
    session_nonce: Mapped[str] = mapped_column(String(64), nullable=False)
    code_hash: Mapped[str] = mapped_column(String(128), nullable=False)  # HMAC-SHA256, nunca o código
    expires_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    used_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=False))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=False), default=utcnow)
