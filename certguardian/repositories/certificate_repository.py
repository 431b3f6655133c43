"""Repository for Certificate entities."""
from datetime import date, timedelta
from typing import Optional, List, Iterable

from sqlalchemy.orm import joinedload

from certguardian.models_db import Certificate, CertificateType


class CertificateRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: int) -> Optional[Certificate]:
        return self._session.get(Certificate, id)

    def find(
        self,
        company_ids: Optional[Iterable[int]] = None,
        expiring_before: Optional[date] = None,
        expiring_after: Optional[date] = None,
        type: Optional[CertificateType] = None,
    ) -> List[Certificate]:
        """
        Certificates ordered by expiration date.

        company_ids=None means every company; an empty collection yields nothing.
        Date bounds are inclusive.
        """
        query = self._session.query(Certificate).options(joinedload(Certificate.company))

        if company_ids is not None:
            company_ids = list(company_ids)
            if not company_ids:
                return []
            query = query.filter(Certificate.company_id.in_(company_ids))
        if expiring_after is not None:
            query = query.filter(Certificate.expiration_date >= expiring_after)
        if expiring_before is not None:
            query = query.filter(Certificate.expiration_date <= expiring_before)
        if type is not None:
            query = query.filter(Certificate.type == type)

        return query.order_by(Certificate.expiration_date.asc(), Certificate.id.asc()).all()

    def get_expiring_within(self, days: int, today: date, company_ids: Optional[Iterable[int]] = None) -> List[Certificate]:
        """Certificates with 0 <= days until expiration <= `days`."""
        return self.find(
            company_ids=company_ids,
            expiring_after=today,
            expiring_before=today + timedelta(days=days),
        )

    def add(self, certificate: Certificate) -> Certificate:
        self._session.add(certificate)
        return certificate

    def delete(self, certificate: Certificate) -> None:
        self._session.delete(certificate)
