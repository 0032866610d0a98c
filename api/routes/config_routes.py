from flask import Blueprint, request, jsonify
from core.dependency_container import get_service
from service.xray_service import XrayService

config_bp = Blueprint('config', __name__)

def get_xray_service() -> XrayService:
    """Factory function returning the shared XrayService."""
    return get_service('xray_service')

@config_bp.route('', methods=['GET'])
def get_config():
    return jsonify(get_xray_service().get_config()), 200

@config_bp.route('', methods=['POST', 'PUT'])
def save_config():
    """Overwrite the Xray config with the request body and reload Xray."""
    data = request.get_json(silent=True)
    return jsonify(get_xray_service().save_config(data)), 200

@config_bp.route('/validate', methods=['POST'])
def validate_config():
    data = request.get_json(silent=True)
    return jsonify(get_xray_service().validate_config(data)), 200
