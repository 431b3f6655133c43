"""
Service for revealing certificate passwords behind a one-time code.

Flow:
    1. issue_code: a 6-digit code is generated, stored as an HMAC bound to
       (user, certificate, browser session) and e-mailed to the user.
    2. reveal: the code is checked (single use, bounded attempts, TTL); on
       success the stored password is decrypted and the access is audited.
"""
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from certguardian.application.access_policy import AccessPolicy, Capability
from certguardian.application.activity_service import ActivityService, Actor
from certguardian.domain.exceptions import (
    BusinessRuleViolationError, CertificateNotFoundError, InvalidAuthCodeError,
)
from certguardian.infrastructure.security import SecretBox
from certguardian.models_db import ActivityAction, ActivityEntity, PasswordRevealCode, utcnow

logger = logging.getLogger(__name__)

CODE_DIGITS = 6


def generate_code() -> str:
    return f"{secrets.randbelow(10 ** CODE_DIGITS):0{CODE_DIGITS}d}"


def mask_email(email: str) -> str:
    local, _, domain = email.partition('@')
    if len(local) <= 2:
        return f"{local[:1]}***@{domain}"
    return f"{local[0]}***{local[-1]}@{domain}"


@dataclass
class IssuedCode:
    certificate_id: int
    expires_at: datetime
    sent_to: str
    ttl_seconds: int


class PasswordRevealService:
    def __init__(
        self,
        uow,
        secret_box: SecretBox,
        email_service,
        code_secret: str,
        ttl_seconds: int = 300,
        max_attempts: int = 5,
        activity: Optional[ActivityService] = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self._uow = uow
        self._box = secret_box
        self._email = email_service
        self._code_secret = code_secret.encode('utf-8')
        self._ttl = ttl_seconds
        self._max_attempts = max_attempts
        self._activity = activity or ActivityService(uow)
        self._policy = AccessPolicy(uow)
        self._now = now

    def issue_code(self, certificate_id: int, actor: Actor, session_nonce: str) -> IssuedCode:
        certificate = self._load_for_reveal(certificate_id, actor)
        user = actor.user
        now = self._now()

        # A new code supersedes any code still pending for this pair
        self._uow.reveal_codes.invalidate_pending(user.id, certificate.id, now)

        code = generate_code()
        expires_at = now + timedelta(seconds=self._ttl)
        self._uow.reveal_codes.add(PasswordRevealCode(
            user_id=user.id,
            certificate_id=certificate.id,
            session_nonce=session_nonce,
            code_hash=self._digest(user.id, certificate.id, session_nonce, code),
            expires_at=expires_at,
            attempts=0,
        ))
        self._uow.commit()

        sent = self._email.send_verification_code(
            user.email, user.name, code, certificate.name, max(1, self._ttl // 60),
        )
        if not sent:
            logger.error(f"Falha ao enviar código de verificação ao usuário {user.id}")
            raise BusinessRuleViolationError(
                "code_delivery", "Não foi possível enviar o código de verificação. Tente novamente."
            )

        logger.info(f"Código de verificação emitido: user={user.id} certificado={certificate.id}")
        return IssuedCode(
            certificate_id=certificate.id,
            expires_at=expires_at,
            sent_to=mask_email(user.email),
            ttl_seconds=self._ttl,
        )

    def reveal(self, certificate_id: int, code: Optional[str], actor: Actor, session_nonce: Optional[str]) -> str:
        certificate = self._load_for_reveal(certificate_id, actor)
        user = actor.user
        now = self._now()

        pending = None
        if session_nonce:
            pending = self._uow.reveal_codes.get_active(user.id, certificate.id, session_nonce)
        if pending is None:
            raise InvalidAuthCodeError("Código de verificação inválido. Solicite um novo código.")

        if pending.expires_at <= now:
            pending.used_at = now
            self._uow.commit()
            raise InvalidAuthCodeError("Código de verificação expirado. Solicite um novo código.")

        expected = pending.code_hash
        supplied = self._digest(user.id, certificate.id, session_nonce, (code or '').strip())
        if not hmac.compare_digest(expected, supplied):
            pending.attempts += 1
            if pending.attempts >= self._max_attempts:
                pending.used_at = now
                logger.warning(f"Código bloqueado após {pending.attempts} tentativas: user={user.id}")
            self._uow.commit()
            raise InvalidAuthCodeError()

        pending.used_at = now
        password = self._box.decrypt(certificate.password)
        self._activity.record(actor, ActivityAction.VIEW_PASSWORD, ActivityEntity.CERTIFICATE, certificate.id)
        self._uow.commit()
        return password

    def _load_for_reveal(self, certificate_id: int, actor: Actor):
        certificate = self._uow.certificates.get_by_id(certificate_id)
        if not certificate:
            raise CertificateNotFoundError(certificate_id)
        self._policy.require(actor.user, certificate.company_id, Capability.VIEW_PASSWORD)
        if not certificate.password:
            raise BusinessRuleViolationError("no_password", "Este certificado não possui senha cadastrada")
        return certificate

    def _digest(self, user_id: int, certificate_id: int, session_nonce: str, code: str) -> str:
        message = f"{user_id}:{certificate_id}:{session_nonce}:{code}".encode('utf-8')
        return hmac.new(self._code_secret, message, hashlib.sha256).hexdigest()
