"""Unit tests for domain exceptions and their HTTP mapping."""

from certguardian.domain.exceptions import (
    BusinessRuleViolationError,
    CertificateNotFoundError,
    ConflictError,
    DomainError,
    InvalidAuthCodeError,
    InvalidCredentialsError,
    NotFoundError,
    PermissionDeniedError,
    PermissionNotFoundError,
    ValidationError,
)


class TestDomainExceptions:

    def test_base_defaults(self):
        err = DomainError("Algo deu errado")
        assert err.status_code == 400
        assert err.to_dict() == {"message": "Algo deu errado", "code": "DOMAIN_ERROR"}

    def test_validation_error_code_includes_field(self):
        err = ValidationError("Data inválida", "issued_date")
        assert err.code == "VALIDATION_ERROR_ISSUED_DATE"
        assert err.status_code == 400

    def test_validation_error_without_field(self):
        assert ValidationError("Parâmetros obrigatórios").code == "VALIDATION_ERROR"

    def test_not_found_message(self):
        err = CertificateNotFoundError(42)
        assert err.status_code == 404
        assert err.code == "CERTIFICATE_NOT_FOUND"
        assert "42" in err.message
        assert isinstance(err, NotFoundError)

    def test_not_found_without_identifier(self):
        err = PermissionNotFoundError()
        assert err.message == "Permissão não encontrado"
        assert err.code == "PERMISSION_NOT_FOUND"

    def test_authentication_errors_are_401(self):
        assert InvalidCredentialsError().status_code == 401
        assert InvalidCredentialsError().code == "INVALID_CREDENTIALS"
        assert InvalidAuthCodeError().code == "INVALID_AUTH_CODE"

    def test_permission_denied_is_403(self):
        err = PermissionDeniedError()
        assert err.status_code == 403
        assert err.code == "PERMISSION_DENIED"

    def test_conflict_is_409(self):
        err = ConflictError("Email já está em uso", "email")
        assert err.status_code == 409
        assert err.code == "DUPLICATE_EMAIL"

    def test_business_rule(self):
        err = BusinessRuleViolationError("self_delete", "Você não pode excluir o próprio usuário")
        assert err.status_code == 400
        assert err.code == "BUSINESS_RULE_SELF_DELETE"
        assert err.rule == "self_delete"
