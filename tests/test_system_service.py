import os
import subprocess
import sys
from unittest.mock import Mock, patch

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config.app_config import XrayConfig
from core.exceptions import ServiceError, UnknownServiceError
from core.service_manager import ServiceManager
from service.system_service import SystemService


@pytest.fixture
def settings():
    return XrayConfig(
        binary="/usr/local/bin/xray",
        service_name="xray",
        psiphon_binary="/usr/local/bin/psiphon",
        psiphon_service_name="psiphon-tunnel"
    )


def fake_process(cmdline):
    proc = Mock()
    proc.info = {"pid": 1, "name": "proc", "cmdline": cmdline}
    return proc


def test_process_status_scans_command_lines(settings):
    processes = [fake_process(["/usr/local/bin/xray", "run", "-c", "/etc/xray/config.json"]), fake_process(None)]
    with patch("core.service_manager.psutil.process_iter", return_value=processes):
        status = SystemService(ServiceManager(), settings).get_status()

    assert status == {"xray": "running", "psiphon": "stopped"}


def test_restart_maps_service_to_unit(settings):
    manager = Mock()
    result = SystemService(manager, settings).restart("psiphon")

    assert result == {"restarted": "psiphon"}
    manager.restart_service.assert_called_once_with("psiphon-tunnel")


def test_restart_unknown_service(settings):
    with pytest.raises(UnknownServiceError):
        SystemService(Mock(), settings).restart("nginx")


def test_restart_failure_raises_service_error():
    failed = subprocess.CompletedProcess(["systemctl"], 1, stdout="", stderr="unit not found")
    with patch("core.service_manager.subprocess.run", return_value=failed):
        with pytest.raises(ServiceError):
            ServiceManager().restart_service("xray")


def test_reload_timeout_returns_false():
    with patch("core.service_manager.subprocess.run", side_effect=subprocess.TimeoutExpired("systemctl", 30)):
        assert ServiceManager().reload_service("xray") is False


def test_health_includes_aggregator_counters(settings):
    aggregator = Mock()
    aggregator.stats.return_value = {"cycles_executed": 3}

    health = SystemService(Mock(), settings, aggregator).get_health()

    assert health["status"] == "healthy"
    assert health["usage_aggregation"] == {"cycles_executed": 3}
    assert health["uptime_sec"] >= 0
