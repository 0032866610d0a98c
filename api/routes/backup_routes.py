import os
from flask import Blueprint, request, jsonify, send_from_directory
from core.backup_service import BackupService
from core.dependency_container import get_service

backup_bp = Blueprint('backup', __name__)

def get_backup_service() -> BackupService:
    """Factory function returning the shared BackupService."""
    return get_service('backup_service')

@backup_bp.route('/backup', methods=['POST'])
def create_backup():
    """Write users, domains and the Xray config into one backup file."""
    path = get_backup_service().create_backup()
    return jsonify({'path': path}), 200

@backup_bp.route('/restore', methods=['POST'])
def restore_backup():
    """
    Restore a previously created backup.

    Request body:
    {
        "backup_file": "vpn-backup-....json" or an absolute path
    }
    """
    data = request.get_json(silent=True) or {}
    backup_file = data.get('backup_file') or data.get('backupFile')
    if not backup_file:
        return jsonify({
            'error': 'Missing required field',
            'message': 'backup_file is required'
        }), 400

    get_backup_service().restore(backup_file)
    return jsonify({'restored': True}), 200

@backup_bp.route('/backup/upload', methods=['POST'])
def upload_backup():
    """Store the raw JSON request body as a backup file."""
    data = request.get_json(silent=True)
    path = get_backup_service().store_upload(data)
    return jsonify({'uploaded': path}), 200

@backup_bp.route('/backup/download/<filename>', methods=['GET'])
def download_backup(filename: str):
    backup_service = get_backup_service()
    return send_from_directory(os.path.abspath(backup_service.backup_dir), filename, as_attachment=True)
