from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from certguardian.auth import admin_required, json_body
from certguardian.container import get_actor, get_company_service
from certguardian.schemas import CompanyCreate, CompanyUpdate
from certguardian.serializers import company_to_dict

company_bp = Blueprint('companies', __name__)


@company_bp.route('/companies', methods=['GET'])
@login_required
def list_companies():
    companies = get_company_service().list_for(current_user)
    return jsonify([company_to_dict(c) for c in companies])


@company_bp.route('/companies/<int:company_id>', methods=['GET'])
@login_required
def get_company(company_id):
    return jsonify(company_to_dict(get_company_service().get(company_id, current_user)))


@company_bp.route('/companies', methods=['POST'])
@login_required
@admin_required
def create_company():
    data = CompanyCreate.model_validate(json_body())
    company = get_company_service().create(data, get_actor())
    return jsonify(company_to_dict(company)), 201


@company_bp.route('/companies/<int:company_id>', methods=['PATCH'])
@login_required
@admin_required
def update_company(company_id):
    data = CompanyUpdate.model_validate(json_body())
    company = get_company_service().update(company_id, data, get_actor())
    return jsonify(company_to_dict(company))


@company_bp.route('/companies/<int:company_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_company(company_id):
    get_company_service().delete(company_id, get_actor())
    return '', 204
