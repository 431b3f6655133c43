from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from certguardian.auth import admin_required
from certguardian.container import get_activity_service, get_dashboard_service
from certguardian.domain.exceptions import ValidationError
from certguardian.models_db import ActivityAction, ActivityEntity
from certguardian.serializers import activity_log_to_dict, certificate_to_dict

dashboard_bp = Blueprint('dashboard', __name__)


def _enum_arg(enum_cls, name):
    value = request.args.get(name)
    if not value:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Valor inválido para {name}: {value}", name) from None


@dashboard_bp.route('/dashboard/stats', methods=['GET'])
@login_required
def stats():
    return jsonify(get_dashboard_service().get_stats(current_user))


@dashboard_bp.route('/dashboard/expiring', methods=['GET'])
@login_required
def expiring():
    service = get_dashboard_service()
    days = request.args.get('days', default=30, type=int)
    certificates = service.get_expiring(current_user, days)
    today = service.today()
    return jsonify([certificate_to_dict(c, today) for c in certificates])


@dashboard_bp.route('/logs', methods=['GET'])
@login_required
@admin_required
def activity_logs():
    logs = get_activity_service().list_recent(
        limit=request.args.get('limit', default=100, type=int),
        user_id=request.args.get('userId', type=int),
        entity=_enum_arg(ActivityEntity, 'entity'),
        action=_enum_arg(ActivityAction, 'action'),
    )
    return jsonify([activity_log_to_dict(log) for log in logs])
