import io
import logging

from flask import Blueprint, jsonify, make_response, request, send_file
from flask_login import current_user, login_required

from certguardian.auth import json_body
from certguardian.container import (
    get_actor, get_certificate_service, get_password_reveal_service, get_reveal_nonce,
)
from certguardian.application.certificate_service import parse_status
from certguardian.domain.exceptions import ValidationError
from certguardian.infrastructure.security import auth_code_limit, upload_limit
from certguardian.schemas import CertificateCreate, CertificateUpdate, SystemCreate
from certguardian.serializers import certificate_to_dict, system_to_dict

logger = logging.getLogger(__name__)

certificate_bp = Blueprint('certificates', __name__)


def parse_list_filters(args) -> dict:
    """companyId, expiringOnly and status query parameters."""
    company_id = args.get('companyId')
    if company_id not in (None, ''):
        try:
            company_id = int(company_id)
        except ValueError:
            raise ValidationError("companyId inválido", "companyId") from None
    else:
        company_id = None

    return {
        'company_id': company_id,
        'expiring_only': args.get('expiringOnly', '').lower() in ('true', '1', 'yes'),
        'status': parse_status(args.get('status')),
    }


@certificate_bp.route('/certificates', methods=['GET'])
@login_required
def list_certificates():
    service = get_certificate_service()
    certificates = service.list_visible(current_user, **parse_list_filters(request.args))
    today = service.today()
    return jsonify([certificate_to_dict(c, today) for c in certificates])


@certificate_bp.route('/certificates/export', methods=['GET'])
@login_required
def export_certificates():
    service = get_certificate_service()
    content = service.export_csv(current_user, **parse_list_filters(request.args))
    filename = f"certificados_{service.today().strftime('%Y%m%d')}.csv"

    # BOM so spreadsheet apps pick UTF-8
    response = make_response('\ufeff' + content)
    response.headers['Content-Disposition'] = f'attachment; filename={filename}'
    response.headers['Content-Type'] = 'text/csv; charset=utf-8'
    return response


@certificate_bp.route('/certificates/<int:certificate_id>', methods=['GET'])
@login_required
def get_certificate(certificate_id):
    service = get_certificate_service()
    certificate = service.get(certificate_id, get_actor())
    return jsonify(certificate_to_dict(certificate, service.today()))


@certificate_bp.route('/certificates', methods=['POST'])
@login_required
def create_certificate():
    data = CertificateCreate.model_validate(json_body())
    service = get_certificate_service()
    certificate = service.create(data, get_actor())
    return jsonify(certificate_to_dict(certificate, service.today())), 201


@certificate_bp.route('/certificates/<int:certificate_id>', methods=['PATCH'])
@login_required
def update_certificate(certificate_id):
    data = CertificateUpdate.model_validate(json_body())
    service = get_certificate_service()
    certificate = service.update(certificate_id, data, get_actor())
    return jsonify(certificate_to_dict(certificate, service.today()))


@certificate_bp.route('/certificates/<int:certificate_id>', methods=['DELETE'])
@login_required
def delete_certificate(certificate_id):
    get_certificate_service().delete(certificate_id, get_actor())
    return '', 204


# Senha (confirmação por código)

@certificate_bp.route('/certificates/<int:certificate_id>/password/code', methods=['POST'])
@login_required
@auth_code_limit()
def request_password_code(certificate_id):
    issued = get_password_reveal_service().issue_code(certificate_id, get_actor(), get_reveal_nonce())
    return jsonify({
        'message': f'Código enviado para {issued.sent_to}',
        'sentTo': issued.sent_to,
        'expiresIn': issued.ttl_seconds,
    }), 202


@certificate_bp.route('/certificates/<int:certificate_id>/password', methods=['GET'])
@login_required
def reveal_password(certificate_id):
    auth_code = request.args.get('authCode')
    password = get_password_reveal_service().reveal(certificate_id, auth_code, get_actor(), get_reveal_nonce())

    response = jsonify({'password': password})
    response.headers['Cache-Control'] = 'no-store'
    return response


# Sistemas

@certificate_bp.route('/certificates/<int:certificate_id>/systems', methods=['GET'])
@login_required
def list_systems(certificate_id):
    systems = get_certificate_service().list_systems(certificate_id, current_user)
    return jsonify([system_to_dict(s) for s in systems])


@certificate_bp.route('/certificates/<int:certificate_id>/systems', methods=['POST'])
@login_required
def add_system(certificate_id):
    data = SystemCreate.model_validate(json_body())
    system = get_certificate_service().add_system(certificate_id, data, get_actor())
    return jsonify(system_to_dict(system)), 201


@certificate_bp.route('/certificates/<int:certificate_id>/systems/<int:system_id>', methods=['DELETE'])
@login_required
def delete_system(certificate_id, system_id):
    get_certificate_service().delete_system(certificate_id, system_id, get_actor())
    return '', 204


# Arquivo A1

@certificate_bp.route('/certificates/<int:certificate_id>/file', methods=['POST'])
@login_required
@upload_limit()
def upload_certificate_file(certificate_id):
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        raise ValidationError("Nenhum arquivo enviado", "file")

    content = upload.read()
    service = get_certificate_service()
    certificate = service.upload_file(certificate_id, content, upload.filename, get_actor())
    return jsonify(certificate_to_dict(certificate, service.today())), 200


@certificate_bp.route('/certificates/<int:certificate_id>/file', methods=['GET'])
@login_required
def download_certificate_file(certificate_id):
    content, download_name = get_certificate_service().get_file(certificate_id, get_actor())
    return send_file(
        io.BytesIO(content),
        mimetype='application/x-pkcs12',
        as_attachment=True,
        download_name=download_name,
    )
