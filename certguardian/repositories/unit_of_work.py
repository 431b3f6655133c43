"""
Unit of Work pattern for managing database transactions.

Provides a single entry point for all repositories within a request,
so a mutation and the activity log row describing it commit together.
"""
from .user_repository import UserRepository
from .company_repository import CompanyRepository
from .certificate_repository import CertificateRepository
from .certificate_system_repository import CertificateSystemRepository
from .permission_repository import PermissionRepository
from .activity_log_repository import ActivityLogRepository
from .reveal_code_repository import RevealCodeRepository


class UnitOfWork:
    """
    Aggregates all repositories and manages the database session lifecycle.

    Usage:
        uow = UnitOfWork(session)
        cert = uow.certificates.get_by_id(1)
        uow.activity_logs.add(log)
        uow.commit()
    """

    def __init__(self, session):
        self.session = session
        self.users = UserRepository(session)
        self.companies = CompanyRepository(session)
        self.certificates = CertificateRepository(session)
        self.systems = CertificateSystemRepository(session)
        self.permissions = PermissionRepository(session)
        self.activity_logs = ActivityLogRepository(session)
        self.reveal_codes = RevealCodeRepository(session)

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    def flush(self):
        self.session.flush()

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            self.rollback()
        self.close()
        return False
