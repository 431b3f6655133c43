"""Repository for password-reveal confirmation codes."""
from typing import Optional

from certguardian.models_db import PasswordRevealCode


class RevealCodeRepository:
    def __init__(self, session):
        self._session = session

    def get_active(self, user_id: int, certificate_id: int, session_nonce: str) -> Optional[PasswordRevealCode]:
        """Latest unused code issued to this session for the certificate."""
        return self._session.query(PasswordRevealCode).filter(
            PasswordRevealCode.user_id == user_id,
            PasswordRevealCode.certificate_id == certificate_id,
            PasswordRevealCode.session_nonce == session_nonce,
            PasswordRevealCode.used_at.is_(None),
        ).order_by(PasswordRevealCode.id.desc()).first()

    def invalidate_pending(self, user_id: int, certificate_id: int, now) -> int:
        """Mark every unused code for the pair as used; a new code supersedes them."""
        return self._session.query(PasswordRevealCode).filter(
            PasswordRevealCode.user_id == user_id,
            PasswordRevealCode.certificate_id == certificate_id,
            PasswordRevealCode.used_at.is_(None),
        ).update({PasswordRevealCode.used_at: now}, synchronize_session=False)

    def add(self, code: PasswordRevealCode) -> PasswordRevealCode:
        self._session.add(code)
        return code
