"""
Domain exceptions - Business-level errors.

Services raise these; the API error handlers translate them into JSON
responses with the matching HTTP status.
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message, "code": self.code}


class ValidationError(DomainError):
    """Raised when validation fails."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)


class NotFoundError(DomainError):
    """Raised when an entity is not found."""

    status_code = 404

    def __init__(self, entity_type: str, identifier=None, code: str = None):
        self.entity_type = entity_type
        self.identifier = identifier
        message = f"{entity_type} não encontrado"
        if identifier is not None:
            message = f"{entity_type} '{identifier}' não encontrado"
        super().__init__(message, code or "NOT_FOUND")


class AuthenticationError(DomainError):
    """Raised when the caller could not be authenticated."""

    status_code = 401

    def __init__(self, message: str = "Autenticação necessária", code: str = "UNAUTHENTICATED"):
        super().__init__(message, code)


class InvalidCredentialsError(AuthenticationError):
    def __init__(self):
        super().__init__("Credenciais inválidas", "INVALID_CREDENTIALS")


class InvalidAuthCodeError(AuthenticationError):
    """Raised when a password-reveal confirmation code is wrong, used or expired."""

    def __init__(self, message: str = "Código de verificação inválido"):
        super().__init__(message, "INVALID_AUTH_CODE")


class PermissionDeniedError(DomainError):
    """Raised when user doesn't have permission."""

    status_code = 403

    def __init__(self, message: str = "Acesso não autorizado"):
        super().__init__(message, "PERMISSION_DENIED")


class ConflictError(DomainError):
    """Raised when a unique value is already taken."""

    status_code = 409

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"DUPLICATE_{field.upper()}" if field else "CONFLICT"
        super().__init__(message, code)


class BusinessRuleViolationError(DomainError):
    """Raised when a business rule is violated."""

    def __init__(self, rule: str, message: str):
        self.rule = rule
        super().__init__(message, f"BUSINESS_RULE_{rule.upper()}")


# Specific domain errors

class UserNotFoundError(NotFoundError):
    def __init__(self, user_id=None):
        super().__init__("Usuário", user_id, "USER_NOT_FOUND")


class CompanyNotFoundError(NotFoundError):
    def __init__(self, company_id=None):
        super().__init__("Empresa", company_id, "COMPANY_NOT_FOUND")


class CertificateNotFoundError(NotFoundError):
    def __init__(self, certificate_id=None):
        super().__init__("Certificado", certificate_id, "CERTIFICATE_NOT_FOUND")


class CertificateSystemNotFoundError(NotFoundError):
    def __init__(self, system_id=None):
        super().__init__("Sistema", system_id, "SYSTEM_NOT_FOUND")


class PermissionNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Permissão", code="PERMISSION_NOT_FOUND")


class CertificateFileNotFoundError(NotFoundError):
    def __init__(self, certificate_id=None):
        super().__init__("Arquivo do certificado", certificate_id, "CERTIFICATE_FILE_NOT_FOUND")
