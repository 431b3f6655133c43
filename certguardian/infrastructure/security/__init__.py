# Security module - certificate file validation, rate limiting, encryption at rest
from .file_validator import CertificateFileValidator, ValidationResult
from .rate_limiter import limiter, init_limiter, login_limit, upload_limit, auth_code_limit
from .secret_box import SecretBox, DecryptionError, derive_key

__all__ = [
    'CertificateFileValidator',
    'ValidationResult',
    'limiter',
    'init_limiter',
    'login_limit',
    'upload_limit',
    'auth_code_limit',
    'SecretBox',
    'DecryptionError',
    'derive_key',
]
