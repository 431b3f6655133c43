import hmac
import logging

from flask import Blueprint, current_app, jsonify, request

from certguardian.container import get_expiration_alert_service

logger = logging.getLogger(__name__)

cron_bp = Blueprint('cron', __name__)


def _check_cron_auth():
    """Shared-secret check for scheduler calls (header X-Cron-Secret)."""
    valid_secret = current_app.config.get('CRON_SECRET')
    secret = request.headers.get('X-Cron-Secret', '')
    # No configured secret means the endpoint is closed
    return bool(valid_secret) and hmac.compare_digest(secret, valid_secret)


@cron_bp.route('/cron/expiration-alerts', methods=['POST'])
def cron_expiration_alerts():
    """
    Daily job (e.g. Cloud Scheduler): e-mails admins about certificates whose
    remaining days hit a configured threshold.
    """
    if not _check_cron_auth():
        logger.warning(f"Chamada de cron não autorizada de {request.remote_addr}")
        return jsonify({'message': 'Não autorizado', 'code': 'UNAUTHENTICATED'}), 401

    result = get_expiration_alert_service().run()
    return jsonify({'status': 'ok', **result.to_dict()}), 200
