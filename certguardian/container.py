"""
Simple Dependency Injection container using Flask's g object.

No external DI framework needed - just factory functions that create
services with their dependencies, cached per-request in Flask g.
"""
from flask import current_app, g, request, session
from flask_login import current_user

from certguardian.database import get_db
from certguardian.repositories.unit_of_work import UnitOfWork


def get_uow() -> UnitOfWork:
    """Get or create UnitOfWork for the current request."""
    if 'uow' not in g:
        db = next(get_db())
        g.uow = UnitOfWork(db)
    return g.uow


def get_actor():
    """Current user plus client IP, for authorization and the activity log."""
    from certguardian.application.activity_service import Actor

    user = current_user if current_user.is_authenticated else None
    # login_manager hands back a proxy; services need the ORM object
    if user is not None:
        user = user._get_current_object() if hasattr(user, '_get_current_object') else user
    return Actor(user=user, ip_address=request.remote_addr)


def get_reveal_nonce() -> str:
    """Random value tying confirmation codes to this browser session."""
    import secrets

    if 'reveal_nonce' not in session:
        session['reveal_nonce'] = secrets.token_hex(16)
    return session['reveal_nonce']


def get_auth_service():
    from certguardian.application.auth_service import AuthService
    return AuthService(get_uow())


def get_user_service():
    from certguardian.application.user_service import UserService
    return UserService(get_uow())


def get_activity_service():
    from certguardian.application.activity_service import ActivityService
    return ActivityService(get_uow())


def get_company_service():
    from certguardian.application.company_service import CompanyService
    return CompanyService(get_uow(), storage_service=current_app.extensions['certguardian.storage'])


def get_certificate_service():
    """Get CertificateService with encryption, storage and file validator."""
    from certguardian.application.certificate_service import CertificateService
    from certguardian.infrastructure.security import CertificateFileValidator

    return CertificateService(
        get_uow(),
        secret_box=current_app.extensions['certguardian.secret_box'],
        storage_service=current_app.extensions['certguardian.storage'],
        file_validator=CertificateFileValidator(current_app.config['MAX_CERTIFICATE_FILE_SIZE']),
        today=current_app.extensions['certguardian.today'],
    )


def get_password_reveal_service():
    from certguardian.application.password_reveal_service import PasswordRevealService

    cfg = current_app.config
    return PasswordRevealService(
        get_uow(),
        secret_box=current_app.extensions['certguardian.secret_box'],
        email_service=current_app.extensions['certguardian.email'],
        code_secret=cfg['SECRET_KEY'],
        ttl_seconds=cfg['AUTH_CODE_TTL_SECONDS'],
        max_attempts=cfg['AUTH_CODE_MAX_ATTEMPTS'],
        now=current_app.extensions['certguardian.now'],
    )


def get_dashboard_service():
    from certguardian.application.dashboard_service import DashboardService
    return DashboardService(get_uow(), today=current_app.extensions['certguardian.today'])


def get_expiration_alert_service():
    from certguardian.application.expiration_alert_service import ExpirationAlertService
    return ExpirationAlertService(
        get_uow(),
        email_service=current_app.extensions['certguardian.email'],
        thresholds=current_app.config['EXPIRY_ALERT_DAYS'],
        today=current_app.extensions['certguardian.today'],
    )


def teardown_uow(exception=None):
    """
    Teardown handler for Flask app context.

    Register with: app.teardown_appcontext(teardown_uow)
    """
    uow = g.pop('uow', None)
    if uow:
        if exception:
            uow.rollback()
        uow.close()
