"""Repository for CertificateSystem entities."""
from typing import Optional, List

from certguardian.models_db import CertificateSystem


class CertificateSystemRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: int) -> Optional[CertificateSystem]:
        return self._session.get(CertificateSystem, id)

    def get_by_certificate(self, certificate_id: int) -> List[CertificateSystem]:
        return self._session.query(CertificateSystem).filter_by(
            certificate_id=certificate_id
        ).order_by(CertificateSystem.name).all()

    def add(self, system: CertificateSystem) -> CertificateSystem:
        self._session.add(system)
        return system

    def delete(self, system: CertificateSystem) -> None:
        self._session.delete(system)
