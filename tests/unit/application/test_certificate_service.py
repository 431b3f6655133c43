"""Tests for CertificateService."""
import csv
import io
import os
from datetime import timedelta

import pytest

from certguardian.application.activity_service import Actor
from certguardian.application.certificate_service import CSV_HEADER, CertificateService, parse_status
from certguardian.domain.exceptions import (
    BusinessRuleViolationError,
    CertificateFileNotFoundError,
    CertificateNotFoundError,
    CertificateSystemNotFoundError,
    CompanyNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from certguardian.domain.value_objects import CertificateStatus
from certguardian.models_db import ActivityAction, CertificateType, UserRole
from certguardian.repositories import UnitOfWork
from certguardian.schemas import CertificateCreate, CertificateUpdate, SystemCreate
from certguardian.services.storage_service import StorageService


@pytest.fixture
def env(db_session, user_factory, company_factory, permission_factory, secret_box, tmp_path, today):
    admin = user_factory.create(db_session, role=UserRole.ADMIN)
    editor = user_factory.create(db_session)
    viewer = user_factory.create(db_session)
    company = company_factory.create(db_session, name='ACME Ltda')
    other = company_factory.create(db_session, name='Outra SA')
    permission_factory.create(db_session, editor, company, edit=True)
    permission_factory.create(db_session, viewer, company)

    uow = UnitOfWork(db_session)
    storage = StorageService(str(tmp_path))
    service = CertificateService(uow, secret_box=secret_box, storage_service=storage, today=lambda: today)
    return {
        'uow': uow,
        'service': service,
        'storage': storage,
        'admin': admin,
        'editor': editor,
        'viewer': viewer,
        'company': company,
        'other': other,
    }


def _create_payload(company, today, **overrides):
    data = {
        'company_id': company.id,
        'name': 'e-CNPJ Matriz',
        'entity': company.name,
        'identifier': '11.222.333/0001-81',
        'type': 'A1',
        'issued_date': today - timedelta(days=300),
        'expiration_date': today + timedelta(days=65),
        'password': 'Cert@2025',
    }
    data.update(overrides)
    return CertificateCreate(**data)


class TestCreateAndRead:

    def test_create_encrypts_password(self, env, secret_box, today):
        cert = env['service'].create(_create_payload(env['company'], today), Actor(env['editor']))

        assert cert.identifier == '11222333000181'
        assert cert.password != 'Cert@2025'
        assert secret_box.decrypt(cert.password) == 'Cert@2025'
        log = env['uow'].activity_logs.get_recent()[0]
        assert log.action == ActivityAction.CREATE
        assert 'Cert@2025' not in str(log.details)

    def test_create_without_password(self, env, today):
        cert = env['service'].create(_create_payload(env['company'], today, password=None), Actor(env['admin']))
        assert cert.password is None

    def test_create_requires_edit(self, env, today):
        with pytest.raises(PermissionDeniedError):
            env['service'].create(_create_payload(env['company'], today), Actor(env['viewer']))

    def test_create_unknown_company(self, env, today):
        payload = _create_payload(env['company'], today, company_id=999999)
        with pytest.raises(CompanyNotFoundError):
            env['service'].create(payload, Actor(env['admin']))

    def test_create_unknown_company_denied_for_non_admin(self, env, today):
        payload = _create_payload(env['company'], today, company_id=999999)
        with pytest.raises(PermissionDeniedError):
            env['service'].create(payload, Actor(env['editor']))

    def test_get_logs_view(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        env['service'].get(cert.id, Actor(env['viewer']))

        log = env['uow'].activity_logs.get_recent()[0]
        assert (log.action, log.entity_id, log.user_id) == (ActivityAction.VIEW, cert.id, env['viewer'].id)

    def test_get_missing(self, env):
        with pytest.raises(CertificateNotFoundError):
            env['service'].get(999999, Actor(env['admin']))

    def test_get_other_company_denied(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['other'])
        with pytest.raises(PermissionDeniedError):
            env['service'].get(cert.id, Actor(env['viewer']))


class TestListVisible:

    @pytest.fixture
    def certs(self, env, certificate_factory, db_session):
        return {
            'expired': certificate_factory.create(db_session, company=env['company'], days=-2),
            'critical': certificate_factory.create(db_session, company=env['company'], days=1),
            'expiring': certificate_factory.create(db_session, company=env['company'], days=20),
            'valid': certificate_factory.create(db_session, company=env['company'], days=120),
            'hidden': certificate_factory.create(db_session, company=env['other'], days=10),
        }

    def test_admin_sees_everything(self, env, certs):
        assert len(env['service'].list_visible(env['admin'])) == 5

    def test_viewer_scoped_to_permitted_companies(self, env, certs):
        ids = {c.id for c in env['service'].list_visible(env['viewer'])}
        assert certs['hidden'].id not in ids
        assert len(ids) == 4

    def test_user_without_permissions_sees_nothing(self, env, certs, user_factory, db_session):
        stranger = user_factory.create(db_session)
        assert env['service'].list_visible(stranger) == []

    def test_company_filter_requires_view(self, env, certs):
        with pytest.raises(PermissionDeniedError):
            env['service'].list_visible(env['viewer'], company_id=env['other'].id)

    def test_company_filter_unknown(self, env):
        with pytest.raises(CompanyNotFoundError):
            env['service'].list_visible(env['admin'], company_id=999999)

    def test_unknown_company_denied_before_lookup(self, env):
        """Non-admins get the same denial for unknown and foreign companies."""
        with pytest.raises(PermissionDeniedError):
            env['service'].list_visible(env['viewer'], company_id=999999)

    def test_expiring_only(self, env, certs):
        ids = [c.id for c in env['service'].list_visible(env['viewer'], expiring_only=True)]
        assert ids == [certs['critical'].id, certs['expiring'].id]

    def test_status_filter(self, env, certs):
        result = env['service'].list_visible(env['admin'], status=CertificateStatus.EXPIRED)
        assert [c.id for c in result] == [certs['expired'].id]

    def test_parse_status(self):
        assert parse_status('critical') == CertificateStatus.CRITICAL
        assert parse_status(None) is None
        assert parse_status('') is None
        with pytest.raises(ValidationError):
            parse_status('vencido')


class TestUpdateAndDelete:

    def test_update_password_is_audited_without_value(self, env, certificate_factory, db_session, secret_box):
        cert = certificate_factory.create(db_session, company=env['company'], password='antiga123')
        data = CertificateUpdate.model_validate({'password': 'nova456', 'name': 'Renomeado'})

        updated = env['service'].update(cert.id, data, Actor(env['editor']))

        assert secret_box.decrypt(updated.password) == 'nova456'
        assert updated.name == 'Renomeado'
        log = env['uow'].activity_logs.get_recent()[0]
        assert log.details == {'name': 'Renomeado', 'password': 'alterada'}

    def test_explicit_null_clears_password(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'], password='antiga123')
        updated = env['service'].update(cert.id, CertificateUpdate.model_validate({'password': None}),
                                        Actor(env['editor']))
        assert updated.password is None

    def test_omitted_password_kept(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'], password='antiga123')
        original = cert.password
        updated = env['service'].update(cert.id, CertificateUpdate.model_validate({'entity': 'Novo Titular'}),
                                        Actor(env['editor']))
        assert updated.password == original

    def test_dates_checked_against_stored_values(self, env, certificate_factory, db_session, today):
        cert = certificate_factory.create(db_session, company=env['company'])
        data = CertificateUpdate(expiration_date=cert.issued_date - timedelta(days=1))
        with pytest.raises(ValidationError) as exc:
            env['service'].update(cert.id, data, Actor(env['admin']))
        assert exc.value.code == 'VALIDATION_ERROR_ISSUED_DATE'

    def test_move_requires_edit_on_target(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        with pytest.raises(PermissionDeniedError):
            env['service'].update(cert.id, CertificateUpdate(company_id=env['other'].id), Actor(env['editor']))

        moved = env['service'].update(cert.id, CertificateUpdate(company_id=env['other'].id), Actor(env['admin']))
        assert moved.company_id == env['other'].id

    def test_update_requires_edit(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        with pytest.raises(PermissionDeniedError):
            env['service'].update(cert.id, CertificateUpdate(name='X'), Actor(env['viewer']))

    def test_delete_requires_delete_flag(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        with pytest.raises(PermissionDeniedError):
            env['service'].delete(cert.id, Actor(env['editor']))

        env['service'].delete(cert.id, Actor(env['admin']))
        assert env['uow'].certificates.get_by_id(cert.id) is None


class TestSystems:

    def test_add_list_delete(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        service = env['service']

        system = service.add_system(cert.id, SystemCreate(name='eSocial', url='https://esocial.gov.br'),
                                    Actor(env['editor']))
        service.add_system(cert.id, SystemCreate(name='NF-e'), Actor(env['editor']))

        assert [s.name for s in service.list_systems(cert.id, env['viewer'])] == ['NF-e', 'eSocial']

        service.delete_system(cert.id, system.id, Actor(env['editor']))
        assert [s.name for s in service.list_systems(cert.id, env['viewer'])] == ['NF-e']

    def test_viewer_cannot_add(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        with pytest.raises(PermissionDeniedError):
            env['service'].add_system(cert.id, SystemCreate(name='eSocial'), Actor(env['viewer']))

    def test_delete_system_of_other_certificate(self, env, certificate_factory, system_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        other_cert = certificate_factory.create(db_session, company=env['company'])
        system = system_factory.create(db_session, other_cert)

        with pytest.raises(CertificateSystemNotFoundError):
            env['service'].delete_system(cert.id, system.id, Actor(env['admin']))


class TestFiles:

    def test_upload_and_download(self, env, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session, company=env['company'], name='Matriz SP')
        updated = env['service'].upload_file(cert.id, pfx_content, 'matriz.pfx', Actor(env['editor']))

        assert updated.file_path is not None
        content, download_name = env['service'].get_file(cert.id, Actor(env['viewer']))
        assert content == pfx_content
        assert download_name == 'Matriz_SP.pfx'

        log = env['uow'].activity_logs.get_recent()[0]
        assert log.details == {'file': True}

    def test_replacing_file_removes_previous(self, env, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session, company=env['company'])
        first = env['service'].upload_file(cert.id, pfx_content, 'a.pfx', Actor(env['admin'])).file_path
        second = env['service'].upload_file(cert.id, pfx_content, 'b.p12', Actor(env['admin'])).file_path

        assert first != second
        assert not os.path.exists(os.path.join(env['storage'].root_folder, first))
        assert os.path.exists(os.path.join(env['storage'].root_folder, second))

    def test_a3_has_no_file(self, env, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session, company=env['company'], type=CertificateType.A3)
        with pytest.raises(BusinessRuleViolationError) as exc:
            env['service'].upload_file(cert.id, pfx_content, 'token.pfx', Actor(env['admin']))
        assert exc.value.code == 'BUSINESS_RULE_A3_HAS_NO_FILE'

    def test_switching_to_a3_drops_file(self, env, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session, company=env['company'])
        stored = env['service'].upload_file(cert.id, pfx_content, 'a.pfx', Actor(env['admin'])).file_path

        updated = env['service'].update(cert.id, CertificateUpdate(type=CertificateType.A3), Actor(env['admin']))

        assert updated.type == CertificateType.A3
        assert updated.file_path is None
        assert not os.path.exists(os.path.join(env['storage'].root_folder, stored))
        assert env['uow'].activity_logs.get_recent()[0].details['file'] == 'removido'
        with pytest.raises(CertificateFileNotFoundError):
            env['service'].get_file(cert.id, Actor(env['admin']))

    def test_invalid_content(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        with pytest.raises(ValidationError) as exc:
            env['service'].upload_file(cert.id, b'isto nao e um pfx', 'falso.pfx', Actor(env['admin']))
        assert exc.value.code == 'VALIDATION_ERROR_FILE'

    def test_viewer_cannot_upload(self, env, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session, company=env['company'])
        with pytest.raises(PermissionDeniedError):
            env['service'].upload_file(cert.id, pfx_content, 'a.pfx', Actor(env['viewer']))

    def test_download_without_file(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'])
        with pytest.raises(CertificateFileNotFoundError):
            env['service'].get_file(cert.id, Actor(env['admin']))

    def test_download_file_missing_on_disk(self, env, certificate_factory, db_session):
        cert = certificate_factory.create(db_session, company=env['company'], file_path='certificates/1/sumiu.pfx')
        with pytest.raises(CertificateFileNotFoundError):
            env['service'].get_file(cert.id, Actor(env['admin']))


class TestExport:

    def test_csv_rows(self, env, certificate_factory, system_factory, db_session, today):
        cert = certificate_factory.create(
            db_session, company=env['company'], name='e-CNPJ Matriz', days=20,
            identifier='11222333000181',
        )
        system_factory.create(db_session, cert, name='eSocial')
        certificate_factory.create(db_session, company=env['other'], days=50)

        content = env['service'].export_csv(env['viewer'])
        rows = list(csv.reader(io.StringIO(content), delimiter=';'))

        assert rows[0] == CSV_HEADER
        assert len(rows) == 2
        row = rows[1]
        assert row[1] == 'e-CNPJ Matriz'
        assert row[2] == 'ACME Ltda'
        assert row[4] == '11.222.333/0001-81'
        assert row[7] == (today + timedelta(days=20)).strftime('%d/%m/%Y')
        assert row[8] == '20'
        assert row[9] == 'A vencer'
        assert row[10] == 'eSocial'

    def test_csv_honours_filters(self, env, certificate_factory, db_session):
        certificate_factory.create(db_session, company=env['company'], days=-1)
        certificate_factory.create(db_session, company=env['company'], days=100)

        content = env['service'].export_csv(env['admin'], status=CertificateStatus.EXPIRED)
        rows = list(csv.reader(io.StringIO(content), delimiter=';'))
        assert len(rows) == 2
        assert rows[1][9] == 'Expirado'
