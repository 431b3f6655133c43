"""Service for building dashboard data."""
from datetime import date
from typing import Callable, List

from certguardian.application.access_policy import AccessPolicy
from certguardian.domain.exceptions import ValidationError
from certguardian.domain.value_objects import CertificateStatus, is_expiring_soon
from certguardian.domain.value_objects.certificate_status import EXPIRING_DAYS
from certguardian.models_db import Certificate, CertificateType

MAX_HORIZON_DAYS = 365


class DashboardService:
    """Counts and upcoming expirations, scoped to the companies the user can view."""

    def __init__(self, uow, today: Callable[[], date] = date.today):
        self._uow = uow
        self._policy = AccessPolicy(uow)
        self._today = today

    def get_stats(self, user) -> dict:
        company_ids = self._policy.viewable_company_ids(user)
        certificates = self._uow.certificates.find(company_ids=company_ids)
        today = self._today()

        by_status = {status.value: 0 for status in CertificateStatus}
        expiring = 0
        for cert in certificates:
            by_status[cert.status(today).value] += 1
            if is_expiring_soon(cert.expiration_date, today):
                expiring += 1

        return {
            'totalCertificates': len(certificates),
            'expiringCertificates': expiring,
            'a1Certificates': sum(1 for c in certificates if c.type == CertificateType.A1),
            'a3Certificates': sum(1 for c in certificates if c.type == CertificateType.A3),
            'byStatus': by_status,
            'totalCompanies': self._uow.companies.count(company_ids),
        }

    def get_expiring(self, user, days: int = EXPIRING_DAYS) -> List[Certificate]:
        if days < 0 or days > MAX_HORIZON_DAYS:
            raise ValidationError(f"O parâmetro days deve estar entre 0 e {MAX_HORIZON_DAYS}", "days")
        company_ids = self._policy.viewable_company_ids(user)
        return self._uow.certificates.get_expiring_within(days, self._today(), company_ids)

    def today(self) -> date:
        return self._today()
