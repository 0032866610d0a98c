import os
import sys
from unittest.mock import Mock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from api.app import create_app
from config.app_config import AppConfig, AggregatorConfig, PathsConfig
from core.dependency_container import cleanup_container, get_service
from core.exceptions import ConfigurationError


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        paths=PathsConfig(
            users_file=str(tmp_path / "users.json"),
            domains_file=str(tmp_path / "domains.json"),
            usage_file=str(tmp_path / "usage-store.json"),
            xray_config_file=str(tmp_path / "config.json"),
            backup_dir=str(tmp_path / "backups")
        )
    )


@pytest.fixture
def client(config):
    app = create_app(config, start_background=False)
    # Keep refresh requests from starting real timers
    get_service('usage_aggregator').scheduler = Mock()
    yield app.test_client()
    cleanup_container()


def test_health_reports_aggregator_counters(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "healthy"
    assert body["usage_aggregation"]["cycles_executed"] == 0


def test_user_list_is_not_cached(client, config):
    with open(config.paths.users_file, "w") as f:
        f.write('[{"id": 1, "username": "alice", "uuid": "u-1", "quota": 2}]')

    response = client.get("/api/users")

    assert response.status_code == 200
    assert response.headers["Cache-Control"].startswith("no-store")
    users = response.get_json()
    assert users[0]["username"] == "alice"
    assert users[0]["usage_bytes"] == 0
    assert users[0]["remaining_gb"] == 2


def test_domain_flow_through_container(client, config):
    assert client.post("/api/domains", json={"domain": "example.com"}).status_code == 201
    assert client.post("/api/domains", json={"domain": "*.example.com", "wildcard": True}).status_code == 409
    assert client.get("/api/domains").get_json() == [{"domain": "example.com", "enabled": True, "wildcard": False}]
    assert client.post("/api/domains/missing.com/toggle").status_code == 404


def test_unknown_endpoint_is_json_404(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Not found"


def test_policy_change_is_wired_to_client_sync(client):
    aggregator = get_service('usage_aggregator')
    assert aggregator.on_policy_change == get_service('user_service').sync_clients


def test_config_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("USERS_FILE", str(tmp_path / "data" / "users.json"))
    monkeypatch.setenv("USAGE_POLL_INTERVAL", "2.5")
    monkeypatch.setenv("XRAY_API_PORT", "10086")

    config = AppConfig.from_env()

    assert config.paths.usage_file == str(tmp_path / "data" / "usage-store.json")
    assert config.aggregator.interval == 2.5
    assert config.xray.api_server == "127.0.0.1:10086"


def test_config_rejects_bad_numbers(monkeypatch):
    monkeypatch.setenv("USAGE_QUERY_CONCURRENCY", "many")
    with pytest.raises(ConfigurationError):
        AppConfig.from_env()


def test_config_validate_rejects_non_positive_interval(tmp_path):
    config = AppConfig(aggregator=AggregatorConfig(interval=0))
    with pytest.raises(ConfigurationError):
        config.validate()
