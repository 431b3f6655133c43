# Domain Layer - Pure business logic, no dependencies on infrastructure

# Exceptions
from .exceptions import (
    DomainError,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    InvalidCredentialsError,
    InvalidAuthCodeError,
    PermissionDeniedError,
    ConflictError,
    BusinessRuleViolationError,
    UserNotFoundError,
    CompanyNotFoundError,
    CertificateNotFoundError,
    CertificateSystemNotFoundError,
    PermissionNotFoundError,
    CertificateFileNotFoundError,
)

# Value Objects
from .value_objects import (
    CertificateStatus,
    certificate_status,
    days_until_expiration,
    TaxIdentifier,
)

__all__ = [
    # Exceptions
    'DomainError',
    'ValidationError',
    'NotFoundError',
    'AuthenticationError',
    'InvalidCredentialsError',
    'InvalidAuthCodeError',
    'PermissionDeniedError',
    'ConflictError',
    'BusinessRuleViolationError',
    'UserNotFoundError',
    'CompanyNotFoundError',
    'CertificateNotFoundError',
    'CertificateSystemNotFoundError',
    'PermissionNotFoundError',
    'CertificateFileNotFoundError',
    # Value Objects
    'CertificateStatus',
    'certificate_status',
    'days_until_expiration',
    'TaxIdentifier',
]
