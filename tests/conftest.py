"""
Shared fixtures.

Every test gets a fresh in-memory SQLite database (create_app disposes the
previous engine), a pinned calendar day and a mock e-mail provider whose
outbox can be inspected.

Tests must not hold an app context while using the test client: requests
would reuse it and flask `g` (current user, unit of work) would leak
between requests.
"""

import itertools
from datetime import date, datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from certguardian import database
from certguardian.app import create_app
from certguardian.infrastructure.security import SecretBox
from certguardian.models_db import (
    Certificate, CertificateSystem, CertificateType, Company, User, UserPermission, UserRole,
)
from certguardian.services.email_service import EmailService

TODAY = date(2025, 6, 15)
NOW = datetime(2025, 6, 15, 12, 0, 0)

DEFAULT_PASSWORD = 'senha1234'
TEST_ENCRYPTION_KEY = 'MDEyMzQ1Njc4OWFiY2RlZjAxMjM0NTY3ODlhYmNkZWY='
CRON_SECRET = 'cron-test-secret'

_sequence = itertools.count(1)


class FrozenClock:
    """Callable clock for NOW_PROVIDER; tests move it forward explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int):
        self.now = self.now + timedelta(seconds=seconds)


def make_cnpj(n: int) -> str:
    """Valid CNPJ digits built from a sequence number."""
    base = f"{10000000 + n:08d}0001"
    weights = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    for _ in range(2):
        total = sum(int(d) * w for d, w in zip(base, weights))
        rest = total % 11
        base += str(0 if rest < 2 else 11 - rest)
        weights = [6] + weights
    return base


def create_test_pfx_content(body_size: int = 256) -> bytes:
    """Bytes shaped like a PKCS#12 PFX: SEQUENCE, long-form length, INTEGER 3."""
    body = b'\x02\x01\x03' + b'\x30' * (body_size - 3)
    return b'\x30\x82' + len(body).to_bytes(2, 'big') + body


def login(client, username, password=DEFAULT_PASSWORD):
    return client.post('/api/login', json={'username': username, 'password': password})


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class UserFactory:
    @staticmethod
    def create(session, **kwargs):
        n = next(_sequence)
        password = kwargs.pop('password', DEFAULT_PASSWORD)
        defaults = {
            'username': f'usuario{n}',
            'email': f'usuario{n}@example.com',
            'name': f'Usuário {n}',
            'role': UserRole.USER,
            # Cheap hash; these are throwaway credentials
            'password': generate_password_hash(password, method='pbkdf2:sha256:1000'),
        }
        defaults.update(kwargs)
        user = User(**defaults)
        session.add(user)
        session.commit()
        return user


class CompanyFactory:
    @staticmethod
    def create(session, **kwargs):
        n = next(_sequence)
        defaults = {
            'name': f'Empresa {n} Ltda',
            'identifier': make_cnpj(n),
        }
        defaults.update(kwargs)
        company = Company(**defaults)
        session.add(company)
        session.commit()
        return company


class CertificateFactory:
    @staticmethod
    def create(session, company=None, days=90, password=None, **kwargs):
        """`days` sets the expiration relative to TODAY; `password` is stored encrypted."""
        if company is None:
            company = CompanyFactory.create(session)
        n = next(_sequence)
        defaults = {
            'company_id': company.id,
            'name': f'Certificado {n}',
            'entity': company.name,
            'identifier': company.identifier,
            'type': CertificateType.A1,
            'issued_date': TODAY - timedelta(days=365),
            'expiration_date': TODAY + timedelta(days=days),
            'password': SecretBox(TEST_ENCRYPTION_KEY.encode()).encrypt(password),
        }
        defaults.update(kwargs)
        certificate = Certificate(**defaults)
        session.add(certificate)
        session.commit()
        return certificate


class SystemFactory:
    @staticmethod
    def create(session, certificate, **kwargs):
        defaults = {
            'certificate_id': certificate.id,
            'name': 'eSocial',
            'url': 'https://login.esocial.gov.br',
        }
        defaults.update(kwargs)
        system = CertificateSystem(**defaults)
        session.add(system)
        session.commit()
        return system


class PermissionFactory:
    @staticmethod
    def create(session, user, company, view=True, edit=False, delete=False, view_password=False):
        permission = UserPermission(
            user_id=user.id,
            company_id=company.id,
            can_view=view,
            can_edit=edit,
            can_delete=delete,
            can_view_password=view_password,
        )
        session.add(permission)
        session.commit()
        return permission


# ---------------------------------------------------------------------------
# App / database
# ---------------------------------------------------------------------------

def build_app(tmp_path, clock=None, email_service=None, **overrides):
    settings = {
        'TESTING': True,
        'DATABASE_URL': 'sqlite://',
        'AUTO_CREATE_TABLES': True,
        'SECRET_KEY': 'test-secret-key',
        'ENCRYPTION_KEY': TEST_ENCRYPTION_KEY,
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'SESSION_COOKIE_SECURE': False,
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'CRON_SECRET': CRON_SECRET,
        'EXPIRY_ALERT_DAYS': [30, 15, 7, 1],
        'EMAIL_SERVICE': email_service or EmailService(provider='mock'),
        'TODAY_PROVIDER': lambda: TODAY,
        'NOW_PROVIDER': clock or FrozenClock(NOW),
        'LOG_LEVEL': 'WARNING',
    }
    settings.update(overrides)
    return create_app(settings)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def email_service():
    return EmailService(provider='mock')


@pytest.fixture
def app(tmp_path, clock, email_service):
    app = build_app(tmp_path, clock, email_service)
    yield app
    database.db_session.remove()
    database.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    """The scoped session registry; requests in this thread share it."""
    return database.db_session


@pytest.fixture
def secret_box():
    return SecretBox(TEST_ENCRYPTION_KEY.encode())


@pytest.fixture
def user_factory():
    return UserFactory


@pytest.fixture
def company_factory():
    return CompanyFactory


@pytest.fixture
def certificate_factory():
    return CertificateFactory


@pytest.fixture
def system_factory():
    return SystemFactory


@pytest.fixture
def permission_factory():
    return PermissionFactory


@pytest.fixture
def admin_user(db_session):
    return UserFactory.create(
        db_session, username='admin', email='admin@example.com', name='Administrador', role=UserRole.ADMIN,
    )


@pytest.fixture
def regular_user(db_session):
    return UserFactory.create(db_session, username='maria', email='maria@example.com', name='Maria Souza')


@pytest.fixture
def admin_client(app, admin_user):
    client = app.test_client()
    response = login(client, admin_user.username)
    assert response.status_code == 200
    return client


@pytest.fixture
def user_client(app, regular_user):
    client = app.test_client()
    response = login(client, regular_user.username)
    assert response.status_code == 200
    return client


@pytest.fixture
def login_as(app):
    """Returns a function giving a fresh client logged in as the user."""
    def _login(user, password=DEFAULT_PASSWORD):
        client = app.test_client()
        response = login(client, user.username, password)
        assert response.status_code == 200
        return client
    return _login


@pytest.fixture
def pfx_content():
    return create_test_pfx_content()


@pytest.fixture
def cron_headers():
    return {'X-Cron-Secret': CRON_SECRET}
