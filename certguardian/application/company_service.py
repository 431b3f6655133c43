"""Service for company CRUD."""
import logging
from typing import List, Optional

from certguardian.application.access_policy import AccessPolicy, Capability
from certguardian.application.activity_service import ActivityService, Actor
from certguardian.domain.exceptions import CompanyNotFoundError, ConflictError
from certguardian.domain.value_objects import normalize_identifier
from certguardian.models_db import ActivityAction, ActivityEntity, Company
from certguardian.schemas import CompanyCreate, CompanyUpdate

logger = logging.getLogger(__name__)


class CompanyService:
    """Admins manage companies; other users only see the ones they were granted."""

    def __init__(self, uow, storage_service=None, activity: Optional[ActivityService] = None):
        self._uow = uow
        self._storage = storage_service
        self._activity = activity or ActivityService(uow)
        self._policy = AccessPolicy(uow)

    def list_for(self, user) -> List[Company]:
        company_ids = self._policy.viewable_company_ids(user)
        if company_ids is None:
            return self._uow.companies.get_all()
        return self._uow.companies.get_by_ids(company_ids)

    def get(self, company_id: int, user) -> Company:
        company = self._uow.companies.get_by_id(company_id)
        if not company:
            raise CompanyNotFoundError(company_id)
        self._policy.require(user, company.id, Capability.VIEW)
        return company

    def create(self, data: CompanyCreate, actor: Actor) -> Company:
        identifier = normalize_identifier(data.identifier)
        if self._uow.companies.get_by_identifier(identifier):
            raise ConflictError(f"Já existe uma empresa com o CPF/CNPJ {data.identifier}.", "identifier")

        company = Company(name=data.name, identifier=identifier)
        self._uow.companies.add(company)
        self._uow.flush()

        self._activity.record(
            actor, ActivityAction.CREATE, ActivityEntity.COMPANY, company.id,
            {"name": company.name, "identifier": identifier},
        )
        self._uow.commit()
        logger.info(f"Empresa criada: {company.name} ({company.id})")
        return company

    def update(self, company_id: int, data: CompanyUpdate, actor: Actor) -> Company:
        company = self._uow.companies.get_by_id(company_id)
        if not company:
            raise CompanyNotFoundError(company_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if 'identifier' in changes:
            changes['identifier'] = normalize_identifier(changes['identifier'])
            existing = self._uow.companies.get_by_identifier(changes['identifier'])
            if existing and existing.id != company.id:
                raise ConflictError(f"Já existe uma empresa com o CPF/CNPJ {data.identifier}.", "identifier")

        for field, value in changes.items():
            setattr(company, field, value)

        self._activity.record(actor, ActivityAction.UPDATE, ActivityEntity.COMPANY, company.id, changes)
        self._uow.commit()
        return company

    def delete(self, company_id: int, actor: Actor) -> None:
        """Delete the company; certificates, systems and permissions go with it."""
        company = self._uow.companies.get_by_id(company_id)
        if not company:
            raise CompanyNotFoundError(company_id)

        file_paths = [cert.file_path for cert in company.certificates if cert.file_path]
        name = company.name

        self._uow.companies.delete(company)
        self._activity.record(actor, ActivityAction.DELETE, ActivityEntity.COMPANY, company_id, {"name": name})
        self._uow.commit()

        # Files only go once the rows are gone
        if self._storage:
            for path in file_paths:
                self._storage.delete(path)

        logger.info(f"Empresa {name} ({company_id}) excluída com {len(file_paths)} arquivo(s)")
