import os
import logging
from datetime import datetime
from typing import Any
from core.exceptions import BackupError, RestoreError, StoreError
from core.service_manager import ServiceManager
from data.json_store import JsonStore

logger = logging.getLogger(__name__)

BACKUP_SECTIONS = ("users", "domains", "config")

class BackupService:
    """
    Snapshots the panel state (users, domains and the Xray config) into a
    single JSON document and restores it again.
    """

    def __init__(self, users_store: JsonStore, domains_store: JsonStore, config_store: JsonStore,
                 backup_dir: str, service_manager: ServiceManager, xray_service_name: str) -> None:
        self.stores = {
            "users": users_store,
            "domains": domains_store,
            "config": config_store,
        }
        self.backup_dir = backup_dir
        self.service_manager = service_manager
        self.xray_service_name = xray_service_name

    def create_backup(self) -> str:
        """Write the current state to BACKUP_DIR and return the file path."""
        logger.info("📦 Creating backup...")
        try:
            backup = {name: store.read() for name, store in self.stores.items()}
        except StoreError as e:
            raise BackupError(f"Backup creation failed: {e}")
        backup_path = self._target("vpn-backup")
        try:
            JsonStore(backup_path).write(backup)
        except StoreError as e:
            raise BackupError(f"Backup creation failed: {e}")
        logger.info("✅ Backup created: %s", backup_path)
        return backup_path

    def restore(self, backup_file: str) -> None:
        """
        Restore users, domains and config from a backup file.
        Relative names are resolved against BACKUP_DIR. Xray is reloaded afterwards.
        """
        if not backup_file or not isinstance(backup_file, str):
            raise RestoreError("backup_file is required")
        path = self.resolve(backup_file)
        logger.info("🔄 Restoring from backup %s", path)
        if not os.path.exists(path):
            raise RestoreError(f"Backup file not found: {path}")
        try:
            backup = JsonStore(path).read()
        except StoreError as e:
            raise RestoreError(f"Backup file is unreadable: {e}")

        self._check_backup(backup)
        try:
            for name in BACKUP_SECTIONS:
                self.stores[name].write(backup[name])
        except StoreError as e:
            raise RestoreError(f"Restore failed: {e}")

        if not self.service_manager.reload_service(self.xray_service_name):
            logger.warning("Xray reload after restore failed")
        logger.info("✅ Restore completed successfully")

    def store_upload(self, payload: Any) -> str:
        """Keep an uploaded backup document in BACKUP_DIR for a later restore."""
        if payload is None:
            raise BackupError("Upload body must be JSON")
        upload_path = self._target("vpn-uploaded")
        try:
            JsonStore(upload_path).write(payload)
        except StoreError as e:
            raise BackupError(f"Upload failed: {e}")
        return upload_path

    def resolve(self, backup_file: str) -> str:
        if os.path.isabs(backup_file):
            return backup_file
        return os.path.join(self.backup_dir, backup_file)

    def _target(self, prefix: str) -> str:
        stamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        return os.path.join(self.backup_dir, f"{prefix}-{stamp}.json")

    @staticmethod
    def _check_backup(backup: Any) -> None:
        if not isinstance(backup, dict):
            raise RestoreError("Backup must be a JSON object")
        missing = [name for name in BACKUP_SECTIONS if name not in backup]
        if missing:
            raise RestoreError(f"Backup is missing sections: {', '.join(missing)}")
        if not isinstance(backup["users"], list) or not isinstance(backup["domains"], list):
            raise RestoreError("Backup users and domains must be lists")
        if not isinstance(backup["config"], dict):
            raise RestoreError("Backup config must be a JSON object")
