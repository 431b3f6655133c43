"""Repository for Company entities."""
from typing import Optional, List, Iterable

from certguardian.models_db import Company


class CompanyRepository:
    def __init__(self, session):
        self._session = session

    def get_by_id(self, id: int) -> Optional[Company]:
        return self._session.get(Company, id)

    def get_by_identifier(self, identifier: str) -> Optional[Company]:
        return self._session.query(Company).filter_by(identifier=identifier).first()

    def get_all(self) -> List[Company]:
        return self._session.query(Company).order_by(Company.name).all()

    def get_by_ids(self, ids: Iterable[int]) -> List[Company]:
        ids = list(ids)
        if not ids:
            return []
        return self._session.query(Company).filter(Company.id.in_(ids)).order_by(Company.name).all()

    def count(self, ids: Optional[Iterable[int]] = None) -> int:
        query = self._session.query(Company)
        if ids is not None:
            query = query.filter(Company.id.in_(list(ids)))
        return query.count()

    def add(self, company: Company) -> Company:
        self._session.add(company)
        return company

    def delete(self, company: Company) -> None:
        self._session.delete(company)
