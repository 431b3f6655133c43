"""Service for certificates, the systems that use them and their A1 files."""
import csv
import io
import logging
import os
from datetime import date
from typing import Callable, List, Optional, Tuple

from werkzeug.utils import secure_filename

from certguardian.application.access_policy import AccessPolicy, Capability
from certguardian.application.activity_service import ActivityService, Actor
from certguardian.domain.exceptions import (
    BusinessRuleViolationError,
    CertificateFileNotFoundError,
    CertificateNotFoundError,
    CertificateSystemNotFoundError,
    CompanyNotFoundError,
    ValidationError,
)
from certguardian.domain.value_objects import CertificateStatus, format_identifier, normalize_identifier
from certguardian.domain.value_objects.certificate_status import EXPIRING_DAYS
from certguardian.formatting import format_date
from certguardian.infrastructure.security import CertificateFileValidator, SecretBox
from certguardian.models_db import (
    ActivityAction, ActivityEntity, Certificate, CertificateSystem, CertificateType,
)
from certguardian.schemas import CertificateCreate, CertificateUpdate, SystemCreate
from certguardian.services.storage_service import StorageError

logger = logging.getLogger(__name__)

CSV_HEADER = [
    'ID', 'Nome', 'Empresa', 'Titular', 'CPF/CNPJ', 'Tipo',
    'Emissão', 'Validade', 'Dias restantes', 'Status', 'Sistemas',
]


def parse_status(value: Optional[str]) -> Optional[CertificateStatus]:
    if not value:
        return None
    try:
        return CertificateStatus(value)
    except ValueError:
        allowed = ', '.join(s.value for s in CertificateStatus)
        raise ValidationError(f"Status inválido: {value}. Use um de: {allowed}", "status") from None


class CertificateService:
    def __init__(
        self,
        uow,
        secret_box: SecretBox,
        storage_service=None,
        file_validator: Optional[CertificateFileValidator] = None,
        activity: Optional[ActivityService] = None,
        today: Callable[[], date] = date.today,
    ):
        self._uow = uow
        self._box = secret_box
        self._storage = storage_service
        self._validator = file_validator or CertificateFileValidator()
        self._activity = activity or ActivityService(uow)
        self._policy = AccessPolicy(uow)
        self._today = today

    # Leitura

    def list_visible(
        self,
        user,
        company_id: Optional[int] = None,
        expiring_only: bool = False,
        status: Optional[CertificateStatus] = None,
    ) -> List[Certificate]:
        """
        Certificates the user may see, ordered by expiration date.

        Without a company filter non-admins are scoped to the companies they
        can view. expiring_only keeps 0 <= days <= 30; status is matched on
        the derived value.
        """
        if company_id is not None:
            # Permission before existence, so unknown ids look like forbidden ones
            self._policy.require(user, company_id, Capability.VIEW)
            if not self._uow.companies.get_by_id(company_id):
                raise CompanyNotFoundError(company_id)
            company_ids = [company_id]
        else:
            company_ids = self._policy.viewable_company_ids(user)

        today = self._today()
        if expiring_only:
            certificates = self._uow.certificates.get_expiring_within(EXPIRING_DAYS, today, company_ids)
        else:
            certificates = self._uow.certificates.find(company_ids=company_ids)

        if status is not None:
            certificates = [c for c in certificates if c.status(today) == status]
        return certificates

    def get(self, certificate_id: int, actor: Actor) -> Certificate:
        certificate = self._load(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.VIEW)

        self._activity.record(actor, ActivityAction.VIEW, ActivityEntity.CERTIFICATE, certificate.id)
        self._uow.commit()
        return certificate

    def today(self) -> date:
        return self._today()

    # Escrita

    def create(self, data: CertificateCreate, actor: Actor) -> Certificate:
        self._policy.require(actor.user, data.company_id, Capability.EDIT)
        if not self._uow.companies.get_by_id(data.company_id):
            raise CompanyNotFoundError(data.company_id)

        certificate = Certificate(
            company_id=data.company_id,
            name=data.name,
            entity=data.entity,
            identifier=normalize_identifier(data.identifier),
            type=data.type,
            issued_date=data.issued_date,
            expiration_date=data.expiration_date,
            password=self._box.encrypt(data.password),
        )
        self._uow.certificates.add(certificate)
        self._uow.flush()

        self._activity.record(
            actor, ActivityAction.CREATE, ActivityEntity.CERTIFICATE, certificate.id,
            {"name": certificate.name, "companyId": certificate.company_id, "type": certificate.type.value},
        )
        self._uow.commit()
        logger.info(f"Certificado criado: {certificate.name} ({certificate.id})")
        return certificate

    def update(self, certificate_id: int, data: CertificateUpdate, actor: Actor) -> Certificate:
        certificate = self._load(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.EDIT)

        changes = data.model_dump(exclude_unset=True)
        password_set = 'password' in changes
        new_password = changes.pop('password', None)
        changes = {key: value for key, value in changes.items() if value is not None}

        if 'company_id' in changes and changes['company_id'] != certificate.company_id:
            self._policy.require(actor.user, changes['company_id'], Capability.EDIT)
            if not self._uow.companies.get_by_id(changes['company_id']):
                raise CompanyNotFoundError(changes['company_id'])

        if 'identifier' in changes:
            changes['identifier'] = normalize_identifier(changes['identifier'])

        issued = changes.get('issued_date', certificate.issued_date)
        expires = changes.get('expiration_date', certificate.expiration_date)
        if issued > expires:
            raise ValidationError("A data de emissão deve ser anterior ou igual à data de validade", "issued_date")

        for field, value in changes.items():
            setattr(certificate, field, value)
        if password_set:
            certificate.password = self._box.encrypt(new_password)

        # Only A1 certificates keep a file
        dropped_file = None
        if certificate.type == CertificateType.A3 and certificate.file_path:
            dropped_file = certificate.file_path
            certificate.file_path = None

        details = {key: (value.isoformat() if isinstance(value, date) else getattr(value, 'value', value))
                   for key, value in changes.items()}
        if password_set:
            details['password'] = 'alterada'
        if dropped_file:
            details['file'] = 'removido'
        self._activity.record(actor, ActivityAction.UPDATE, ActivityEntity.CERTIFICATE, certificate.id, details)
        self._uow.commit()

        if dropped_file and self._storage:
            self._storage.delete(dropped_file)
        return certificate

    def delete(self, certificate_id: int, actor: Actor) -> None:
        certificate = self._load(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.DELETE)

        file_path = certificate.file_path
        name = certificate.name
        self._uow.certificates.delete(certificate)
        self._activity.record(actor, ActivityAction.DELETE, ActivityEntity.CERTIFICATE, certificate_id, {"name": name})
        self._uow.commit()

        if file_path and self._storage:
            self._storage.delete(file_path)

    # Sistemas

    def list_systems(self, certificate_id: int, user) -> List[CertificateSystem]:
        certificate = self._load(certificate_id)
        self._policy.require(user, certificate.company_id, Capability.VIEW)
        return self._uow.systems.get_by_certificate(certificate.id)

    def add_system(self, certificate_id: int, data: SystemCreate, actor: Actor) -> CertificateSystem:
        certificate = self._load(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.EDIT)

        system = CertificateSystem(
            certificate_id=certificate.id, name=data.name, url=data.url, description=data.description,
        )
        self._uow.systems.add(system)
        self._uow.flush()

        self._activity.record(
            actor, ActivityAction.CREATE, ActivityEntity.SYSTEM, system.id,
            {"name": system.name, "certificateId": certificate.id},
        )
        self._uow.commit()
        return system

    def delete_system(self, certificate_id: int, system_id: int, actor: Actor) -> None:
        certificate = self._load(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.EDIT)

        system = self._uow.systems.get_by_id(system_id)
        if system is None or system.certificate_id != certificate.id:
            raise CertificateSystemNotFoundError(system_id)

        name = system.name
        self._uow.systems.delete(system)
        self._activity.record(
            actor, ActivityAction.DELETE, ActivityEntity.SYSTEM, system_id,
            {"name": name, "certificateId": certificate.id},
        )
        self._uow.commit()

    # Arquivo A1

    def upload_file(self, certificate_id: int, content: bytes, filename: str, actor: Actor) -> Certificate:
        certificate = self._load(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.EDIT)

        if certificate.type != CertificateType.A1:
            raise BusinessRuleViolationError("a3_has_no_file", "Apenas certificados A1 possuem arquivo")

        result = self._validator.validate(content, filename)
        if not result.is_valid:
            raise ValidationError(result.error_message, "file")

        old_path = certificate.file_path
        new_path = self._storage.save_certificate_file(
            content, certificate.company_id, certificate.id, filename,
        )
        certificate.file_path = new_path
        self._activity.record(
            actor, ActivityAction.UPDATE, ActivityEntity.CERTIFICATE, certificate.id,
            {"file": secure_filename(filename), "size": len(content)},
        )
        try:
            self._uow.commit()
        except Exception:
            # Row was not updated; drop the orphan file
            self._storage.delete(new_path)
            raise

        if old_path and old_path != new_path:
            self._storage.delete(old_path)
        return certificate

    def get_file(self, certificate_id: int, actor: Actor) -> Tuple[bytes, str]:
        """Returns (content, download name)."""
        certificate = self._load(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.VIEW)

        if not certificate.file_path or self._storage is None:
            raise CertificateFileNotFoundError(certificate.id)
        try:
            content = self._storage.read(certificate.file_path)
        except StorageError as e:
            logger.error(f"Arquivo do certificado {certificate.id} ausente no armazenamento: {e}")
            raise CertificateFileNotFoundError(certificate.id) from e

        ext = os.path.splitext(certificate.file_path)[1] or '.pfx'
        download_name = f"{secure_filename(certificate.name) or 'certificado'}{ext}"

        self._activity.record(actor, ActivityAction.VIEW, ActivityEntity.CERTIFICATE, certificate.id, {"file": True})
        self._uow.commit()
        return content, download_name

    # Exportação

    def export_csv(self, user, **filters) -> str:
        certificates = self.list_visible(user, **filters)
        today = self._today()

        output = io.StringIO()
        writer = csv.writer(output, delimiter=';')
        writer.writerow(CSV_HEADER)
        for cert in certificates:
            status = cert.status(today)
            writer.writerow([
                cert.id,
                cert.name,
                cert.company.name if cert.company else '',
                cert.entity,
                format_identifier(cert.identifier),
                cert.type.value,
                format_date(cert.issued_date),
                format_date(cert.expiration_date),
                cert.days_until_expiration(today),
                status.label_pt,
                ', '.join(system.name for system in cert.systems),
            ])
        return output.getvalue()

    def _load(self, certificate_id: int) -> Certificate:
        certificate = self._uow.certificates.get_by_id(certificate_id)
        if not certificate:
            raise CertificateNotFoundError(certificate_id)
        return certificate
