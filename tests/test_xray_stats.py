import json
import os
import subprocess
import sys
from unittest.mock import patch, Mock

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config.app_config import XrayConfig
from core.exceptions import StatsQueryError
from core.xray_stats import XrayStatsClient


def completed(stdout="", returncode=0, stderr=""):
    return Mock(stdout=stdout, stderr=stderr, returncode=returncode)


def stat_output(*pairs):
    return json.dumps({"stat": [{"name": name, "value": value} for name, value in pairs]})


@pytest.fixture
def client():
    return XrayStatsClient(XrayConfig(binary="/usr/local/bin/xray", api_host="127.0.0.1", api_port=10085))


class TestQuery:
    def test_sums_traffic_counters_for_key(self, client):
        output = stat_output(
            ("user>>>alice>>>traffic>>>uplink", 100),
            ("user>>>alice>>>traffic>>>downlink", "250"),
            ("user>>>alice2>>>traffic>>>uplink", 999),
        )
        with patch("core.xray_stats.subprocess.run", return_value=completed(output)) as run:
            assert client.query("alice") == 350

        command = run.call_args[0][0]
        assert command == [
            "/usr/local/bin/xray", "api", "statsquery",
            "--server=127.0.0.1:10085", "--pattern=user>>>alice",
        ]

    def test_empty_output_is_zero(self, client):
        with patch("core.xray_stats.subprocess.run", return_value=completed("{}")):
            assert client.query("nobody") == 0

    def test_timeout_raises(self, client):
        with patch("core.xray_stats.subprocess.run", side_effect=subprocess.TimeoutExpired("xray", 0.5)):
            with pytest.raises(StatsQueryError):
                client.query("alice")

    def test_non_zero_exit_raises(self, client):
        with patch("core.xray_stats.subprocess.run", return_value=completed(returncode=1, stderr="connection refused")):
            with pytest.raises(StatsQueryError) as exc:
                client.query("alice")
        assert "connection refused" in str(exc.value)

    def test_unparsable_output_raises(self, client):
        with patch("core.xray_stats.subprocess.run", return_value=completed("stat: garbage")):
            with pytest.raises(StatsQueryError):
                client.query("alice")

    def test_query_many_counts_each_stat_once(self, client):
        shared = stat_output(("user>>>alice>>>traffic>>>uplink", 10), ("user>>>alice>>>traffic>>>downlink", 5))
        with patch("core.xray_stats.subprocess.run", side_effect=[
            completed(shared),
            completed(shared),
            completed(returncode=1),
        ]):
            assert client.query_many(["alice", "alice", "Alice Phone", "uuid-1"]) == 15


class TestReset:
    def test_resets_known_and_discovered_counters(self, client):
        listing = stat_output(("user>>>alice>>>traffic>>>uplink", 1), ("user>>>alice>>>online", 1))
        with patch("core.xray_stats.subprocess.run", side_effect=[
            completed(listing),
            completed(), completed(), completed(), completed(),
        ]) as run:
            report = client.reset(["alice", None, ""])

        assert report.keys == ["alice"]
        assert report.attempted == 4
        assert report.failed == 0
        reset_patterns = [call[0][0][-1] for call in run.call_args_list[1:]]
        assert "--pattern=user>>>alice>>>online" in reset_patterns

    def test_failures_are_counted_but_report_success(self, client):
        with patch("core.xray_stats.subprocess.run", side_effect=[
            completed(returncode=1),
            completed(returncode=1),
            completed(),
            OSError("no binary"),
        ]):
            report = client.reset(["bob"])

        assert report.attempted == 3
        assert report.failed == 2
        assert report.success is True
