from flask import Blueprint, request, jsonify
from core.dependency_container import get_service
from service.domain_service import DomainService

domain_bp = Blueprint('domains', __name__)

def get_domain_service() -> DomainService:
    """Factory function returning the shared DomainService."""
    return get_service('domain_service')

@domain_bp.route('', methods=['GET'])
def list_domains():
    return jsonify(get_domain_service().list_domains()), 200

@domain_bp.route('', methods=['POST'])
def add_domain():
    """
    Add a domain entry.

    Request body:
    {
        "domain": "example.com" or "*.example.com",
        "wildcard": bool (optional)
    }
    """
    data = request.get_json(silent=True) or {}
    result = get_domain_service().add_domain(data.get('domain'), data.get('wildcard', False))
    return jsonify(result), 201

@domain_bp.route('/<domain>', methods=['DELETE'])
def remove_domain(domain: str):
    return jsonify(get_domain_service().remove_domain(domain)), 200

@domain_bp.route('/<domain>/toggle', methods=['POST'])
def toggle_domain(domain: str):
    return jsonify(get_domain_service().toggle_domain(domain)), 200
