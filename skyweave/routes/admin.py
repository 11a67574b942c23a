import hmac
from functools import wraps
from flask import Blueprint, jsonify, request, current_app
from skyweave.extensions import tasks
from skyweave.services.request_store import RequestStore

admin_bp = Blueprint('admin', __name__)


def _extract_admin_token():
    auth_header = request.headers.get('Authorization', '')
    if auth_header.lower().startswith('bearer '):
        return auth_header.split(' ', 1)[1].strip()
    return (request.headers.get('X-Admin-Key') or '').strip()


def require_admin_key(func):
    """Require ADMIN_API_KEY for all admin endpoints."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        configured_key = current_app.config.get('ADMIN_API_KEY')
        if not configured_key:
            return jsonify({'error': 'Admin API is disabled: ADMIN_API_KEY is not configured'}), 503

        presented_key = _extract_admin_token()
        if not presented_key or not hmac.compare_digest(presented_key, configured_key):
            return jsonify({'error': 'Unauthorized'}), 401

        return func(*args, **kwargs)

    return wrapper


@admin_bp.route('/tasks')
@require_admin_key
def list_tasks():
    """Background pipeline tasks currently running in this process."""
    running = tasks.in_flight()
    return jsonify({'in_flight': running, 'count': len(running)})


@admin_bp.route('/requests/stale')
@require_admin_key
def stale_requests():
    """Non-terminal requests that have not moved for a while."""
    minutes = request.args.get('minutes', current_app.config.get('STALE_REQUEST_MINUTES', 30), type=int)
    stale = RequestStore().list_stale(minutes)
    return jsonify({
        'minutes': minutes,
        'requests': [
            {
                'id': r.id,
                'status': r.status,
                'job_id': r.job_id,
                'updated_at': r.updated_at.isoformat() if r.updated_at else None,
            }
            for r in stale
        ],
    })
