"""Admin endpoints for users and their per-company permissions."""
import logging

from flask import Blueprint, jsonify, request
from flask_login import login_required

from certguardian.auth import admin_required, json_body
from certguardian.container import get_actor, get_user_service
from certguardian.domain.exceptions import ValidationError
from certguardian.schemas import PermissionUpsert, UserUpdate
from certguardian.serializers import permission_to_dict, user_to_dict

logger = logging.getLogger(__name__)

user_bp = Blueprint('users', __name__)


@user_bp.route('/users', methods=['GET'])
@login_required
@admin_required
def list_users():
    return jsonify([user_to_dict(u) for u in get_user_service().list_users()])


@user_bp.route('/users/<int:user_id>', methods=['GET'])
@login_required
@admin_required
def get_user(user_id):
    return jsonify(user_to_dict(get_user_service().get_user(user_id)))


@user_bp.route('/users/<int:user_id>', methods=['PATCH'])
@login_required
@admin_required
def update_user(user_id):
    data = UserUpdate.model_validate(json_body())
    user = get_user_service().update_user(user_id, data, get_actor())
    return jsonify(user_to_dict(user))


@user_bp.route('/users/<int:user_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_user(user_id):
    get_user_service().delete_user(user_id, get_actor())
    return '', 204


@user_bp.route('/users/<int:user_id>/permissions', methods=['GET'])
@login_required
@admin_required
def list_permissions(user_id):
    permissions = get_user_service().list_permissions(user_id)
    return jsonify([permission_to_dict(p) for p in permissions])


@user_bp.route('/permissions', methods=['POST'])
@login_required
@admin_required
def upsert_permission():
    data = PermissionUpsert.model_validate(json_body())
    permission = get_user_service().upsert_permission(data, get_actor())
    return jsonify(permission_to_dict(permission)), 201


@user_bp.route('/permissions', methods=['DELETE'])
@login_required
@admin_required
def delete_permission():
    user_id = request.args.get('userId', type=int)
    company_id = request.args.get('companyId', type=int)
    if user_id is None or company_id is None:
        raise ValidationError("Parâmetros userId e companyId são obrigatórios")

    get_user_service().delete_permission(user_id, company_id, get_actor())
    return '', 204
