import logging
from functools import wraps

from flask import Blueprint, jsonify, request, session
from flask_login import LoginManager, current_user, login_required, login_user, logout_user

from certguardian.container import get_actor, get_auth_service, get_uow
from certguardian.infrastructure.security import login_limit
from certguardian.schemas import ChangePasswordRequest, LoginRequest, RegisterRequest
from certguardian.serializers import user_to_dict

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)
login_manager = LoginManager()
login_manager.session_protection = 'basic'


@login_manager.user_loader
def load_user(user_id):
    try:
        return get_uow().users.get_by_id(int(user_id))
    except ValueError:
        logger.warning(f"⚠️ [load_user] ID de sessão inválido: {user_id!r}")
        return None


@login_manager.unauthorized_handler
def unauthorized():
    # JSON API: never redirect to a login page
    return jsonify({'message': 'Não autenticado', 'code': 'UNAUTHENTICATED'}), 401


def admin_required(f):
    """Restrict a route to administrators. Use below @login_required."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if not current_user.is_admin:
            return jsonify({'message': 'Acesso restrito a administradores', 'code': 'PERMISSION_DENIED'}), 403
        return f(*args, **kwargs)
    return decorated_function


def json_body() -> dict:
    return request.get_json(silent=True) or {}


@auth_bp.route('/register', methods=['POST'])
def register():
    data = RegisterRequest.model_validate(json_body())
    actor = get_actor()
    user = get_auth_service().register(data, actor)

    # An admin creating an account stays logged in as themself
    if actor.user is None:
        session.clear()
        login_user(user)
        session.permanent = True

    return jsonify(user_to_dict(user)), 201


@auth_bp.route('/login', methods=['POST'])
@login_limit()
def login():
    data = LoginRequest.model_validate(json_body())
    user = get_auth_service().authenticate(data.username, data.password, request.remote_addr)

    session.clear()
    login_user(user)
    session.permanent = True
    logger.info(f"Login: {user.username}")
    return jsonify(user_to_dict(user)), 200


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    get_auth_service().record_logout(get_actor())
    logout_user()
    session.clear()
    return '', 200


@auth_bp.route('/user', methods=['GET'])
@login_required
def current():
    return jsonify(user_to_dict(current_user))


@auth_bp.route('/user/password', methods=['POST'])
@login_required
def change_password():
    data = ChangePasswordRequest.model_validate(json_body())
    get_auth_service().change_password(current_user.id, data, get_actor())
    return jsonify({'message': 'Senha atualizada com sucesso!'}), 200
