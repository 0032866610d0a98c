from flask import Blueprint, jsonify
from core.dependency_container import get_service
from service.system_service import SystemService

system_bp = Blueprint('system', __name__)

def get_system_service() -> SystemService:
    """Factory function returning the shared SystemService."""
    return get_service('system_service')

@system_bp.route('/status', methods=['GET'])
def get_status():
    """Running state of the Xray and Psiphon processes."""
    return jsonify(get_system_service().get_status()), 200

@system_bp.route('/restart/<service>', methods=['POST'])
def restart_service(service: str):
    return jsonify(get_system_service().restart(service)), 200
