"""Request payloads (JSON bodies arrive in camelCase)."""
import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from certguardian.models_db import CertificateType, UserRole

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra='ignore',
    )


def _check_email(value):
    if value is None:
        return value
    value = value.lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Email inválido")
    return value


# Autenticação

class RegisterRequest(ApiModel):
    username: str = Field(min_length=3, max_length=80, description="Login único do usuário.")
    password: str = Field(min_length=8, max_length=128)
    email: str = Field(max_length=255)
    name: str = Field(min_length=1, max_length=255, description="Nome para exibição.")
    role: Optional[UserRole] = Field(default=None, description="Respeitado apenas quando quem cadastra é admin.")

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value):
        return _check_email(value)


class LoginRequest(ApiModel):
    username: str = Field(min_length=1, description="Username ou email.")
    password: str = Field(min_length=1)


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


# Usuários e permissões

class UserUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    role: Optional[UserRole] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value):
        return _check_email(value)


class PermissionUpsert(ApiModel):
    user_id: int
    company_id: int
    view: bool = True
    edit: bool = False
    delete: bool = False
    view_password: bool = False


# Empresas

class CompanyCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    identifier: str = Field(min_length=11, max_length=18, description="CPF ou CNPJ, com ou sem pontuação.")


class CompanyUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    identifier: Optional[str] = Field(default=None, min_length=11, max_length=18)


# Certificados

class CertificateCreate(ApiModel):
    company_id: int
    name: str = Field(min_length=1, max_length=255)
    entity: str = Field(min_length=1, max_length=255, description="Titular do certificado.")
    identifier: str = Field(min_length=11, max_length=18)
    type: CertificateType
    issued_date: date
    expiration_date: date
    password: Optional[str] = Field(default=None, max_length=255)

    @model_validator(mode='after')
    def check_date_order(self):
        if self.issued_date > self.expiration_date:
            raise ValueError("A data de emissão deve ser anterior ou igual à data de validade")
        return self


class CertificateUpdate(ApiModel):
    company_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    entity: Optional[str] = Field(default=None, min_length=1, max_length=255)
    identifier: Optional[str] = Field(default=None, min_length=11, max_length=18)
    type: Optional[CertificateType] = None
    issued_date: Optional[date] = None
    expiration_date: Optional[date] = None
    password: Optional[str] = Field(default=None, max_length=255)


class SystemCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255, description="Sistema que usa o certificado (ex: eSocial).")
    url: Optional[str] = Field(default=None, max_length=2048)
    description: Optional[str] = None
