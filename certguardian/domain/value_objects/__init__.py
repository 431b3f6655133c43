# Value Objects - Immutable domain primitives
from .certificate_status import (
    CertificateStatus,
    certificate_status,
    days_until_expiration,
    is_expiring_soon,
)
from .tax_identifier import TaxIdentifier, format_identifier, normalize_identifier

__all__ = [
    'CertificateStatus',
    'certificate_status',
    'days_until_expiration',
    'is_expiring_soon',
    'TaxIdentifier',
    'format_identifier',
    'normalize_identifier',
]
