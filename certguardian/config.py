import os

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _as_int_list(value):
    return [int(part) for part in value.split(',') if part.strip()]


class Config:
    # Security
    SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_key_change_in_production")
    # Fernet key used for certificate passwords at rest
    ENCRYPTION_KEY = os.getenv("ENCRYPTION_KEY")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///certguardian.db")
    # create_all on startup; production runs `flask init-db` instead
    AUTO_CREATE_TABLES = _as_bool(os.getenv("AUTO_CREATE_TABLES"))

    # Sessions
    SESSION_LIFETIME_HOURS = int(os.getenv("SESSION_LIFETIME_HOURS", "24"))
    SESSION_COOKIE_SECURE = _as_bool(os.getenv("SESSION_COOKIE_SECURE"))
    WTF_CSRF_ENABLED = _as_bool(os.getenv("WTF_CSRF_ENABLED"), default=True)

    # Password reveal confirmation code
    AUTH_CODE_TTL_SECONDS = int(os.getenv("AUTH_CODE_TTL_SECONDS", "300"))
    AUTH_CODE_MAX_ATTEMPTS = int(os.getenv("AUTH_CODE_MAX_ATTEMPTS", "5"))

    # Certificate files (A1)
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    MAX_CERTIFICATE_FILE_SIZE = int(os.getenv("MAX_CERTIFICATE_FILE_SIZE", str(10 * 1024 * 1024)))

    # Expiration alerts
    EXPIRY_ALERT_DAYS = _as_int_list(os.getenv("EXPIRY_ALERT_DAYS", "30,15,7,1"))
    CRON_SECRET = os.getenv("CRON_SECRET")

    # Email (AWS SES or mock)
    EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "ses" if os.getenv("AWS_ACCESS_KEY_ID") else "mock")
    EMAIL_SENDER = os.getenv("AWS_SES_SENDER", "noreply@certificadoguardian.com.br")
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")

    # Rate limiting
    RATELIMIT_ENABLED = _as_bool(os.getenv("RATELIMIT_ENABLED"), default=True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    def as_dict(self):
        return {key: getattr(self, key) for key in dir(self) if key.isupper()}


config = Config()
