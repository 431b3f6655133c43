"""
JSON representations of the ORM models.

Password columns (user hash, encrypted certificate password) are never
part of any representation.
"""
from datetime import date
from typing import Optional

from certguardian.domain.value_objects import format_identifier
from certguardian.formatting import format_date, format_datetime, iso_date, iso_datetime
from certguardian.models_db import (
    ActivityLog, Certificate, CertificateSystem, Company, User, UserPermission,
)


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "createdAt": iso_datetime(user.created_at),
    }


def company_to_dict(company: Company) -> dict:
    return {
        "id": company.id,
        "name": company.name,
        "identifier": company.identifier,
        "identifierFormatted": format_identifier(company.identifier),
        "createdAt": iso_datetime(company.created_at),
    }


def certificate_to_dict(certificate: Certificate, today: Optional[date] = None) -> dict:
    status = certificate.status(today)
    data = {
        "id": certificate.id,
        "companyId": certificate.company_id,
        "name": certificate.name,
        "entity": certificate.entity,
        "identifier": certificate.identifier,
        "identifierFormatted": format_identifier(certificate.identifier),
        "type": certificate.type.value,
        "issuedDate": iso_date(certificate.issued_date),
        "expirationDate": iso_date(certificate.expiration_date),
        "expirationDateFormatted": format_date(certificate.expiration_date),
        "daysUntilExpiration": certificate.days_until_expiration(today),
        "status": status.value,
        "statusLabel": status.label_pt,
        "hasPassword": bool(certificate.password),
        "hasFile": bool(certificate.file_path),
        "createdAt": iso_datetime(certificate.created_at),
    }
    if certificate.company is not None:
        data["companyName"] = certificate.company.name
    return data


def system_to_dict(system: CertificateSystem) -> dict:
    return {
        "id": system.id,
        "certificateId": system.certificate_id,
        "name": system.name,
        "url": system.url,
        "description": system.description,
    }


def permission_to_dict(permission: UserPermission) -> dict:
    data = {
        "id": permission.id,
        "userId": permission.user_id,
        "companyId": permission.company_id,
        "view": permission.can_view,
        "edit": permission.can_edit,
        "delete": permission.can_delete,
        "viewPassword": permission.can_view_password,
    }
    if permission.company is not None:
        data["companyName"] = permission.company.name
    return data


def activity_log_to_dict(log: ActivityLog) -> dict:
    return {
        "id": log.id,
        "userId": log.user_id,
        "userName": log.user.name if log.user else None,
        "action": log.action.value,
        "entity": log.entity.value,
        "entityId": log.entity_id,
        "details": log.details,
        "timestamp": iso_datetime(log.timestamp),
        "timestampFormatted": format_datetime(log.timestamp),
        "ipAddress": log.ip_address,
    }
