"""Tests for EmailService."""
from datetime import date
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from certguardian.services.email_service import EmailService


class TestMockProvider:

    def test_verification_code_goes_to_outbox(self):
        svc = EmailService(provider='mock')
        assert svc.send_verification_code('ana@example.com', 'Ana', '042917', 'e-CNPJ Matriz', 5) is True

        sent = svc.outbox[-1]
        assert sent['to'] == 'ana@example.com'
        assert '042917' in sent['text']
        assert 'e-CNPJ Matriz' in sent['text']
        assert 'Código de verificação' in sent['subject']

    def test_expiration_alert_lists_certificates(self):
        svc = EmailService(provider='mock')
        svc.send_expiration_alert('admin@example.com', 'Admin', [
            {'name': 'e-CNPJ Matriz', 'companyName': 'ACME', 'expirationDate': date(2025, 7, 15),
             'daysUntilExpiration': 30},
            {'name': 'e-CPF Sócio', 'companyName': 'ACME', 'expirationDate': date(2025, 6, 15),
             'daysUntilExpiration': 0},
        ])

        sent = svc.outbox[-1]
        assert '2 certificado(s)' in sent['subject']
        assert '15/07/2025' in sent['text']
        assert 'vence em 30 dia(s)' in sent['text']
        assert 'vence hoje' in sent['text']

    def test_verification_code_escapes_html(self):
        svc = EmailService(provider='mock')
        svc.send_verification_code('ana@example.com', '<b>Ana</b>', '042917', '<img src=x onerror=alert(1)>', 5)

        sent = svc.outbox[-1]
        assert '&lt;img src=x onerror=alert(1)&gt;' in sent['html']
        assert '&lt;b&gt;Ana&lt;/b&gt;' in sent['html']
        assert '<img' not in sent['html']
        assert '<img src=x onerror=alert(1)>' in sent['text']

    def test_expiration_alert_escapes_html(self):
        svc = EmailService(provider='mock')
        svc.send_expiration_alert('admin@example.com', 'Admin', [
            {'name': '<script>alert(1)</script>', 'companyName': 'Silva & Filhos <Ltda>',
             'expirationDate': date(2025, 7, 15), 'daysUntilExpiration': 30},
        ])

        html = svc.outbox[-1]['html']
        assert '&lt;script&gt;alert(1)&lt;/script&gt;' in html
        assert 'Silva &amp; Filhos &lt;Ltda&gt;' in html
        assert '<script>' not in html

    def test_from_config(self):
        svc = EmailService.from_config({'EMAIL_PROVIDER': 'mock', 'EMAIL_SENDER': 'alertas@example.com'})
        assert svc.provider == 'mock'
        assert svc.sender == 'alertas@example.com'


class TestSesProvider:

    @patch('certguardian.services.email_service.boto3')
    def test_sends_through_ses(self, mock_boto3):
        client = MagicMock()
        client.send_email.return_value = {'MessageId': 'abc-123'}
        mock_boto3.client.return_value = client

        svc = EmailService(provider='ses', sender='noreply@example.com', region='sa-east-1')
        assert svc.send_verification_code('ana@example.com', 'Ana', '123456', 'Cert', 5) is True

        mock_boto3.client.assert_called_once_with('ses', region_name='sa-east-1')
        kwargs = client.send_email.call_args.kwargs
        assert kwargs['Source'] == 'noreply@example.com'
        assert kwargs['Destination'] == {'ToAddresses': ['ana@example.com']}
        assert svc.outbox == []

    @patch('certguardian.services.email_service.boto3')
    def test_ses_html_body_is_escaped(self, mock_boto3):
        client = MagicMock()
        client.send_email.return_value = {'MessageId': 'abc-123'}
        mock_boto3.client.return_value = client

        svc = EmailService(provider='ses')
        svc.send_verification_code('ana@example.com', 'Ana', '123456', '<img src=x>', 5)

        body = client.send_email.call_args.kwargs['Message']['Body']
        assert '&lt;img src=x&gt;' in body['Html']['Data']
        assert '<img' not in body['Html']['Data']

    @patch('certguardian.services.email_service.boto3')
    def test_ses_error_returns_false(self, mock_boto3):
        client = MagicMock()
        client.send_email.side_effect = ClientError(
            {'Error': {'Code': 'MessageRejected', 'Message': 'Email address is not verified.'}}, 'SendEmail'
        )
        mock_boto3.client.return_value = client

        svc = EmailService(provider='ses')
        assert svc.send_verification_code('ana@example.com', 'Ana', '123456', 'Cert', 5) is False
