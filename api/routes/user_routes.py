from flask import Blueprint, request, jsonify
from core.dependency_container import get_service
from service.user_service import UserService, UNSET

user_bp = Blueprint('users', __name__)

def get_user_service() -> UserService:
    """Factory function returning the shared UserService."""
    return get_service('user_service')

@user_bp.route('', methods=['GET'])
def list_users():
    """
    List users with usage, remaining quota, days left and share link.

    Query parameters:
        diag=raw   only id, username, expiry, quota and enabled
        refresh=1  schedule an aggregation cycle soon
    """
    user_service = get_user_service()
    if request.args.get('diag') == 'raw':
        return jsonify(user_service.list_users_raw()), 200
    refresh = request.args.get('refresh') == '1'
    return jsonify(user_service.list_users(refresh=refresh)), 200

@user_bp.route('', methods=['POST'])
def create_user():
    """
    Create a new user. The UUID is generated server-side.

    Request body:
    {
        "username": "string",
        "display_name": "string" (optional),
        "expiry": "YYYY-MM-DD HH:MM:SS" (optional),
        "quota": number (optional, GiB, -1 for unlimited)
    }
    """
    data = request.get_json(silent=True)

    if not data or not data.get('username'):
        return jsonify({
            'error': 'Missing required field',
            'message': 'Username is required'
        }), 400

    user_service = get_user_service()
    result = user_service.create_user(
        data['username'],
        display_name=data.get('display_name') or data.get('displayName') or '',
        expiry=data.get('expiry'),
        quota=data.get('quota', -1)
    )
    return jsonify(result), 201

@user_bp.route('/sync', methods=['POST'])
def sync_users():
    """Push enabled users into the Xray inbound."""
    changed = get_user_service().sync_clients()
    return jsonify({'changed': changed}), 200

@user_bp.route('/<username>', methods=['PUT'])
def update_user(username: str):
    data = request.get_json(silent=True) or {}
    display_name = data.get('display_name', data.get('displayName'))

    user_service = get_user_service()
    result = user_service.update_user(
        username,
        new_username=data.get('username'),
        display_name=display_name,
        expiry=data['expiry'] if 'expiry' in data else UNSET,
        quota=data.get('quota')
    )
    return jsonify(result), 200

@user_bp.route('/<username>', methods=['DELETE'])
def remove_user(username: str):
    result = get_user_service().delete_user(username)
    return jsonify(result), 200

@user_bp.route('/<username>/reset-quota', methods=['POST'])
def reset_quota(username: str):
    """Zero the user's accumulated usage and reset the Xray counters."""
    result = get_user_service().reset_quota(username)
    return jsonify(result), 200

@user_bp.route('/<username>/enable', methods=['POST'])
def enable_user(username: str):
    result = get_user_service().set_enabled(username, True)
    return jsonify(result), 200

@user_bp.route('/<username>/disable', methods=['POST'])
def disable_user(username: str):
    result = get_user_service().set_enabled(username, False)
    return jsonify(result), 200

@user_bp.route('/<username>/usage-debug', methods=['GET'])
def usage_debug(username: str):
    result = get_user_service().usage_debug(username)
    return jsonify(result), 200
