"""Service that e-mails administrators about certificates close to expiring."""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, List

logger = logging.getLogger(__name__)


@dataclass
class AlertRun:
    """Summary of one notification pass."""
    certificates: int = 0
    recipients: int = 0
    sent: int = 0
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'certificates': self.certificates,
            'recipients': self.recipients,
            'sent': self.sent,
            'failed': self.failed,
        }


class ExpirationAlertService:
    """
    Picks certificates whose remaining days hit one of the thresholds
    (or that expire today) and sends one digest per administrator.

    Meant to run once a day; running it twice on the same day sends the
    same digest twice.
    """

    def __init__(self, uow, email_service, thresholds: Iterable[int] = (30, 15, 7, 1),
                 today: Callable[[], date] = date.today):
        self._uow = uow
        self._email = email_service
        self._thresholds = sorted({int(t) for t in thresholds if int(t) >= 0}, reverse=True)
        self._today = today

    def due_certificates(self):
        today = self._today()
        horizon = self._thresholds[0] if self._thresholds else 0
        due = []
        for cert in self._uow.certificates.get_expiring_within(horizon, today):
            days = cert.days_until_expiration(today)
            if days == 0 or days in self._thresholds:
                due.append(cert)
        return due

    def run(self) -> AlertRun:
        result = AlertRun()
        today = self._today()
        certificates = self.due_certificates()
        result.certificates = len(certificates)

        if not certificates:
            logger.info("Nenhum certificado atingiu os limites de alerta hoje")
            return result

        payload = [
            {
                'name': cert.name,
                'companyName': cert.company.name if cert.company else '',
                'expirationDate': cert.expiration_date,
                'daysUntilExpiration': cert.days_until_expiration(today),
            }
            for cert in certificates
        ]

        admins = self._uow.users.get_admins()
        result.recipients = len(admins)
        for admin in admins:
            if self._email.send_expiration_alert(admin.email, admin.name, payload):
                result.sent += 1
            else:
                result.failed.append(admin.email)

        logger.info(
            f"Alertas de vencimento: {result.certificates} certificado(s), "
            f"{result.sent}/{result.recipients} email(s) enviados"
        )
        return result
