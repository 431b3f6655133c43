"""Tests for A1 file upload and download."""
import io

from certguardian.models_db import CertificateType


def _upload(client, certificate_id, content, filename='certificado.pfx'):
    return client.post(
        f'/api/certificates/{certificate_id}/file',
        data={'file': (io.BytesIO(content), filename)},
        content_type='multipart/form-data',
    )


class TestCertificateFileRoutes:

    def test_upload_then_download(self, admin_client, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session, name='Matriz')

        response = _upload(admin_client, cert.id, pfx_content)
        assert response.status_code == 200
        assert response.get_json()['hasFile'] is True

        download = admin_client.get(f'/api/certificates/{cert.id}/file')
        assert download.status_code == 200
        assert download.mimetype == 'application/x-pkcs12'
        assert download.data == pfx_content
        assert 'Matriz.pfx' in download.headers['Content-Disposition']

    def test_replacing_file_serves_latest(self, admin_client, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session)
        newer = pfx_content[:-4] + b'novo'

        assert _upload(admin_client, cert.id, pfx_content).status_code == 200
        assert _upload(admin_client, cert.id, newer, 'novo.p12').status_code == 200

        assert admin_client.get(f'/api/certificates/{cert.id}/file').data == newer

    def test_a3_has_no_file(self, admin_client, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session, type=CertificateType.A3)
        response = _upload(admin_client, cert.id, pfx_content)
        assert response.status_code == 400
        assert response.get_json()['code'] == 'BUSINESS_RULE_A3_HAS_NO_FILE'

    def test_changing_to_a3_drops_stored_file(self, admin_client, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session)
        assert _upload(admin_client, cert.id, pfx_content).status_code == 200

        response = admin_client.patch(f'/api/certificates/{cert.id}', json={'type': 'A3'})
        assert response.status_code == 200
        assert response.get_json()['type'] == 'A3'
        assert response.get_json()['hasFile'] is False

        download = admin_client.get(f'/api/certificates/{cert.id}/file')
        assert download.status_code == 404
        assert download.get_json()['code'] == 'CERTIFICATE_FILE_NOT_FOUND'

    def test_rejects_non_pkcs12_content(self, admin_client, certificate_factory, db_session):
        cert = certificate_factory.create(db_session)
        response = _upload(admin_client, cert.id, b'%PDF-1.4 nada de certificado')
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR_FILE'

    def test_rejects_wrong_extension(self, admin_client, certificate_factory, db_session, pfx_content):
        cert = certificate_factory.create(db_session)
        response = _upload(admin_client, cert.id, pfx_content, 'certificado.exe')
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR_FILE'

    def test_missing_file_part(self, admin_client, certificate_factory, db_session):
        cert = certificate_factory.create(db_session)
        response = admin_client.post(
            f'/api/certificates/{cert.id}/file', data={}, content_type='multipart/form-data',
        )
        assert response.status_code == 400
        assert response.get_json()['code'] == 'VALIDATION_ERROR_FILE'

    def test_download_without_file(self, admin_client, certificate_factory, db_session):
        cert = certificate_factory.create(db_session)
        response = admin_client.get(f'/api/certificates/{cert.id}/file')
        assert response.status_code == 404
        assert response.get_json()['code'] == 'CERTIFICATE_FILE_NOT_FOUND'

    def test_view_only_user_cannot_upload(self, user_client, regular_user, certificate_factory, company_factory,
                                          permission_factory, db_session, pfx_content):
        company = company_factory.create(db_session)
        cert = certificate_factory.create(db_session, company=company)
        permission_factory.create(db_session, regular_user, company)
        assert _upload(user_client, cert.id, pfx_content).status_code == 403
