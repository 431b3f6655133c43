import logging
from typing import Iterable, List

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from markupsafe import escape

from certguardian.formatting import format_date

logger = logging.getLogger(__name__)


class EmailService:
    """Outbound e-mail through AWS SES, or a mock provider that only logs."""

    def __init__(self, provider='mock', sender='noreply@certificadoguardian.com.br', region='us-east-1'):
        self.provider = provider
        self.sender = sender
        self.ses_client = None
        self.outbox: List[dict] = []  # Mock provider keeps what it "sent"

        if provider == 'ses':
            try:
                self.ses_client = boto3.client('ses', region_name=region)
                logger.info("AWS SES Client initialized.")
            except BotoCoreError as e:
                logger.error(f"Failed to initialize AWS SES: {e}. Falling back to Mock.")
                self.provider = 'mock'

    @classmethod
    def from_config(cls, cfg) -> 'EmailService':
        return cls(
            provider=cfg.get('EMAIL_PROVIDER', 'mock'),
            sender=cfg.get('EMAIL_SENDER', 'noreply@certificadoguardian.com.br'),
            region=cfg.get('AWS_REGION', 'us-east-1'),
        )

    def send_verification_code(self, to_email, name, code, certificate_name, ttl_minutes):
        subject = "CertificadoGuardian - Código de verificação"

        html_body = f"""
        <html>
        <body style="font-family: sans-serif; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #eee; border-radius: 10px;">
                <h2 style="color: #2563eb;">Visualização de senha</h2>
                <p>Olá, <strong>{escape(name)}</strong>.</p>
                <p>Use o código abaixo para visualizar a senha do certificado <strong>{escape(certificate_name)}</strong>.</p>
                <div style="background: #f3f4f6; padding: 15px; border-radius: 5px; margin: 20px 0;">
                    <p style="margin: 0; font-size: 1.5rem; font-weight: bold; letter-spacing: 4px;">{escape(code)}</p>
                </div>
                <p>O código expira em {ttl_minutes} minutos e só pode ser usado uma vez.</p>
                <p style="font-size: 0.8rem; color: #999;">Se você não fez esta solicitação, avise o administrador.</p>
            </div>
        </body>
        </html>
        """

        text_body = (
            f"Olá {name},\n\n"
            f"Código para visualizar a senha do certificado {certificate_name}: {code}\n"
            f"Expira em {ttl_minutes} minutos.\n"
        )

        return self._send_email(to_email, subject, html_body, text_body)

    def send_expiration_alert(self, to_email, name, certificates: Iterable[dict]):
        """certificates: dicts with name, companyName, expirationDate (date) and daysUntilExpiration."""
        certificates = list(certificates)
        subject = f"CertificadoGuardian - {len(certificates)} certificado(s) próximos do vencimento"

        rows = []
        lines = []
        for cert in certificates:
            days = cert['daysUntilExpiration']
            when = "vence hoje" if days == 0 else f"vence em {days} dia(s)"
            expires = format_date(cert['expirationDate'])
            rows.append(
                f"<tr><td>{escape(cert['name'])}</td><td>{escape(cert['companyName'])}</td>"
                f"<td>{expires}</td><td>{when}</td></tr>"
            )
            lines.append(f"- {cert['name']} ({cert['companyName']}): {expires}, {when}")

        html_body = f"""
        <html>
        <body style="font-family: sans-serif; color: #333;">
            <h2 style="color: #dc2626;">Certificados próximos do vencimento</h2>
            <p>Olá, <strong>{escape(name)}</strong>.</p>
            <table cellpadding="6" style="border-collapse: collapse;">
                <tr><th>Certificado</th><th>Empresa</th><th>Validade</th><th>Situação</th></tr>
                {''.join(rows)}
            </table>
        </body>
        </html>
        """

        text_body = f"Olá {name},\n\nCertificados próximos do vencimento:\n" + "\n".join(lines) + "\n"

        return self._send_email(to_email, subject, html_body, text_body)

    def _send_email(self, to_email, subject, html_body, text_body):
        if self.provider == 'ses' and self.ses_client:
            try:
                response = self.ses_client.send_email(
                    Source=self.sender,
                    Destination={'ToAddresses': [to_email]},
                    Message={
                        'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                        'Body': {
                            'Html': {'Data': html_body, 'Charset': 'UTF-8'},
                            'Text': {'Data': text_body, 'Charset': 'UTF-8'}
                        }
                    }
                )
                logger.info(f"Email sent to {to_email} via SES. MsgId: {response['MessageId']}")
                return True
            except ClientError as e:
                logger.error(f"SES Error: {e.response['Error']['Message']}")
                return False

        # Mock Provider
        self.outbox.append({'to': to_email, 'subject': subject, 'text': text_body, 'html': html_body})
        logger.info(f"Mock email sent to {to_email}: {subject}")
        return True
