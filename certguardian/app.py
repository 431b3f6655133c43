import logging
from datetime import date, timedelta

from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect, generate_csrf
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from certguardian import database
from certguardian.config import config
from certguardian.domain.exceptions import DomainError
from certguardian.infrastructure.security import DecryptionError, SecretBox, init_limiter
from certguardian.logging_config import configure_logging
from certguardian.models_db import utcnow
from certguardian.services.email_service import EmailService
from certguardian.services.storage_service import StorageService

logger = logging.getLogger(__name__)

csrf = CSRFProtect()

# Multipart framing on top of the certificate itself
_UPLOAD_OVERHEAD = 1024 * 1024


def _validation_errors(exc: PydanticValidationError) -> list:
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]


def register_error_handlers(app: Flask):
    @app.errorhandler(DomainError)
    def handle_domain_error(e):
        logger.info(f"{type(e).__name__}: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(PydanticValidationError)
    def handle_payload_error(e):
        return jsonify({
            "message": "Dados inválidos",
            "code": "VALIDATION_ERROR",
            "errors": _validation_errors(e),
        }), 400

    @app.errorhandler(DecryptionError)
    def handle_decryption_error(e):
        logger.error(f"Falha ao descriptografar senha: {e}")
        return jsonify({"message": str(e), "code": "DECRYPTION_FAILED"}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        code = (e.name or "error").upper().replace(" ", "_")
        return jsonify({"message": e.description, "code": code}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        logger.exception(f"💥 ERRO 500: {e}")
        return jsonify({"message": "Erro interno no servidor", "code": "INTERNAL_ERROR"}), 500


def create_app(overrides=None) -> Flask:
    """
    Application factory.

    `overrides` replaces any configuration key, e.g. DATABASE_URL in tests.
    TODAY_PROVIDER / NOW_PROVIDER (callables) pin the clock.
    """
    app = Flask(__name__)
    app.config.update(config.as_dict())
    if overrides:
        app.config.update(overrides)

    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(hours=app.config['SESSION_LIFETIME_HOURS'])
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    app.config['REMEMBER_COOKIE_HTTPONLY'] = True
    app.config['MAX_CONTENT_LENGTH'] = app.config['MAX_CERTIFICATE_FILE_SIZE'] + _UPLOAD_OVERHEAD

    configure_logging(app.config['LOG_LEVEL'])

    # Trust only one proxy (load balancer) for client IP and scheme
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    csrf.init_app(app)
    init_limiter(app)

    from certguardian.auth import auth_bp, login_manager
    login_manager.init_app(app)

    database.init_db(app.config['DATABASE_URL'], create_tables=app.config.get('AUTO_CREATE_TABLES', False))

    # Serviços compartilhados
    app.extensions['certguardian.secret_box'] = SecretBox.from_config(app.config)
    app.extensions['certguardian.storage'] = StorageService.from_config(app.config)
    app.extensions['certguardian.email'] = app.config.get('EMAIL_SERVICE') or EmailService.from_config(app.config)
    app.extensions['certguardian.today'] = app.config.get('TODAY_PROVIDER') or date.today
    app.extensions['certguardian.now'] = app.config.get('NOW_PROVIDER') or utcnow
    logger.info(f"✅ Serviço de Email Inicializado ({app.extensions['certguardian.email'].provider.upper()})")

    from certguardian.certificate_routes import certificate_bp
    from certguardian.company_routes import company_bp
    from certguardian.cron_routes import cron_bp
    from certguardian.dashboard_routes import dashboard_bp
    from certguardian.user_routes import user_bp

    for blueprint in (auth_bp, user_bp, company_bp, certificate_bp, dashboard_bp, cron_bp):
        app.register_blueprint(blueprint, url_prefix='/api')
    # Scheduler calls carry a shared secret, not a browser session
    csrf.exempt(cron_bp)

    @app.route('/api/csrf-token', methods=['GET'])
    def csrf_token():
        return jsonify({'csrfToken': generate_csrf()})

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    register_error_handlers(app)

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        if database.db_session is not None:
            database.db_session.remove()

    # Teardowns run in reverse order: the UoW is released before the session registry
    from certguardian.container import teardown_uow
    app.teardown_appcontext(teardown_uow)

    from certguardian.cli import register_commands
    register_commands(app)

    logger.info("✅ Blueprints Registrados: auth, users, companies, certificates, dashboard, cron")
    return app
