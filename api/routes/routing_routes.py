from flask import Blueprint, request, jsonify
from core.dependency_container import get_service
from service.xray_service import XrayService

routing_bp = Blueprint('routing', __name__)

def get_xray_service() -> XrayService:
    """Factory function returning the shared XrayService."""
    return get_service('xray_service')

@routing_bp.route('/routing-rules', methods=['GET'])
def get_routing_rules():
    return jsonify(get_xray_service().get_routing_rules()), 200

@routing_bp.route('/routing-rules', methods=['POST', 'PUT'])
def set_routing_rules():
    """Replace the routing rule list and restart Xray."""
    data = request.get_json(silent=True)
    rules = data.get('rules') if isinstance(data, dict) else data
    return jsonify(get_xray_service().set_routing_rules(rules)), 200

@routing_bp.route('/routing/psiphon-domains', methods=['GET'])
def get_psiphon_domains():
    """Domains currently routed through the Psiphon outbound."""
    return jsonify(get_xray_service().get_psiphon_domains()), 200
