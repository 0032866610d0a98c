import json
import os
import sys
from unittest.mock import Mock

import pytest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))

from core.backup_service import BackupService
from core.exceptions import BackupError, RestoreError
from data.json_store import JsonStore


@pytest.fixture
def stores(tmp_path):
    users = JsonStore(str(tmp_path / "users.json"), default=[])
    domains = JsonStore(str(tmp_path / "domains.json"), default=[])
    config = JsonStore(str(tmp_path / "config.json"))
    users.write([{"id": 1, "username": "alice"}])
    domains.write([{"domain": "example.com", "enabled": True, "wildcard": False}])
    config.write({"inbounds": []})
    return users, domains, config


@pytest.fixture
def service_manager():
    manager = Mock()
    manager.reload_service.return_value = True
    return manager


@pytest.fixture
def backup_service(stores, tmp_path, service_manager):
    users, domains, config = stores
    return BackupService(users, domains, config, str(tmp_path / "backups"), service_manager, "xray")


def test_create_backup_snapshots_all_sections(backup_service, tmp_path):
    path = backup_service.create_backup()

    assert os.path.dirname(path) == str(tmp_path / "backups")
    assert os.path.basename(path).startswith("vpn-backup-")
    with open(path) as f:
        backup = json.load(f)
    assert backup["users"] == [{"id": 1, "username": "alice"}]
    assert backup["domains"][0]["domain"] == "example.com"
    assert backup["config"] == {"inbounds": []}


def test_restore_by_relative_name(backup_service, stores, service_manager):
    path = backup_service.create_backup()
    users, domains, config = stores
    users.write([])
    config.write({"changed": True})

    backup_service.restore(os.path.basename(path))

    assert users.read() == [{"id": 1, "username": "alice"}]
    assert config.read() == {"inbounds": []}
    service_manager.reload_service.assert_called_once_with("xray")


def test_restore_missing_file(backup_service):
    with pytest.raises(RestoreError):
        backup_service.restore("does-not-exist.json")


def test_restore_rejects_incomplete_backup(backup_service, stores, tmp_path):
    partial = tmp_path / "partial.json"
    partial.write_text(json.dumps({"users": []}))
    users, _, _ = stores

    with pytest.raises(RestoreError):
        backup_service.restore(str(partial))
    assert users.read() == [{"id": 1, "username": "alice"}]


def test_store_upload(backup_service):
    path = backup_service.store_upload({"users": [], "domains": [], "config": {}})
    assert os.path.basename(path).startswith("vpn-uploaded-")

    with pytest.raises(BackupError):
        backup_service.store_upload(None)


def test_backup_fails_when_config_missing(tmp_path, service_manager):
    service = BackupService(
        JsonStore(str(tmp_path / "users.json"), default=[]),
        JsonStore(str(tmp_path / "domains.json"), default=[]),
        JsonStore(str(tmp_path / "missing-config.json")),
        str(tmp_path / "backups"),
        service_manager,
        "xray"
    )
    with pytest.raises(BackupError):
        service.create_backup()
