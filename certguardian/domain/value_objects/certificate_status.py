"""
Certificate Status Value Object - Expiration status derived from dates.

Status is never stored; it is computed from the expiration date and the
reference day every time a certificate is serialized or filtered.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

# Thresholds in whole days until expiration
CRITICAL_DAYS = 3
EXPIRING_DAYS = 30


class CertificateStatus(str, Enum):
    """Expiration status of a certificate."""
    VALID = "valid"
    EXPIRING = "expiring"
    CRITICAL = "critical"
    EXPIRED = "expired"

    @classmethod
    def from_days(cls, days: int) -> 'CertificateStatus':
        """Determine status from the number of days left."""
        if days < 0:
            return cls.EXPIRED
        elif days <= CRITICAL_DAYS:
            return cls.CRITICAL
        elif days <= EXPIRING_DAYS:
            return cls.EXPIRING
        else:
            return cls.VALID

    @property
    def label_pt(self) -> str:
        """Get Portuguese label."""
        labels = {
            CertificateStatus.VALID: "Válido",
            CertificateStatus.EXPIRING: "A vencer",
            CertificateStatus.CRITICAL: "Crítico",
            CertificateStatus.EXPIRED: "Expirado",
        }
        return labels[self]


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def days_until_expiration(expiration_date: Union[date, datetime], today: Optional[date] = None) -> int:
    """Whole days from `today` to `expiration_date`; negative once expired."""
    today = _as_date(today or date.today())
    return (_as_date(expiration_date) - today).days


def certificate_status(expiration_date: Union[date, datetime], today: Optional[date] = None) -> CertificateStatus:
    return CertificateStatus.from_days(days_until_expiration(expiration_date, today))


def is_expiring_soon(expiration_date: Union[date, datetime], today: Optional[date] = None,
                     within_days: int = EXPIRING_DAYS) -> bool:
    """True for certificates still valid that expire in `within_days` days or fewer."""
    days = days_until_expiration(expiration_date, today)
    return 0 <= days <= within_days
