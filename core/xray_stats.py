"""
Adapter for the Xray StatsService through the `xray api` command line.
"""

import json
import subprocess
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set
from config.app_config import XrayConfig
from config.constants import XrayStatNames
from core.exceptions import StatsQueryError
from core.logging_config import LoggerMixin

def _unique(keys: Iterable[Optional[str]]) -> List[str]:
    seen: List[str] = []
    for key in keys:
        if key and key not in seen:
            seen.append(key)
    return seen

def _stat_value(value) -> Optional[int]:
    # Xray prints int64 counters either as JSON numbers or strings depending on version
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None

@dataclass
class ResetReport:
    """Outcome of a best-effort counter reset."""
    keys: List[str] = field(default_factory=list)
    attempted: int = 0
    failed: int = 0

    @property
    def success(self) -> bool:
        # Resets are best-effort; callers always see success
        return True

class XrayStatsClient(LoggerMixin):
    """Queries and resets per-user traffic counters."""

    def __init__(self, config: XrayConfig, timeout: float = 0.5):
        self.config = config
        self.timeout = timeout

    def query(self, key: str) -> int:
        """Return uplink+downlink bytes recorded for key, 0 when Xray has no counters yet."""
        stats = self._statsquery(XrayStatNames.user_pattern(key))
        prefix = XrayStatNames.traffic_prefix(key)
        total = 0
        for stat in stats:
            name = stat.get("name")
            value = _stat_value(stat.get("value"))
            if isinstance(name, str) and name.startswith(prefix) and value is not None:
                total += value
        return total

    def query_many(self, keys: Iterable[Optional[str]]) -> int:
        """Sum counters across several candidate keys, counting each stat name once."""
        seen: Set[str] = set()
        total = 0
        for key in _unique(keys):
            try:
                stats = self._statsquery(XrayStatNames.user_pattern(key))
            except StatsQueryError as e:
                self.logger.warning("Stats query failed", key=key, error=e.reason)
                continue
            for stat in stats:
                name = stat.get("name")
                value = _stat_value(stat.get("value"))
                if not isinstance(name, str) or not name.startswith(XrayStatNames.USER_PREFIX):
                    continue
                if value is not None and name not in seen:
                    seen.add(name)
                    total += value
        return total

    def reset(self, keys: Iterable[Optional[str]]) -> ResetReport:
        """Clear every counter variant for the given keys. Individual failures are counted, not raised."""
        report = ResetReport(keys=_unique(keys))
        for key in report.keys:
            patterns = [
                XrayStatNames.user_pattern(key),
                XrayStatNames.uplink(key),
                XrayStatNames.downlink(key),
            ]
            try:
                for stat in self._statsquery(XrayStatNames.user_pattern(key)):
                    name = stat.get("name")
                    if isinstance(name, str) and name not in patterns:
                        patterns.append(name)
            except StatsQueryError as e:
                self.logger.warning("Could not list stat names before reset", key=key, error=e.reason)

            for pattern in patterns:
                report.attempted += 1
                if not self._statsreset(pattern):
                    report.failed += 1

        if report.failed:
            self.logger.warning(
                "Counter reset partially failed",
                keys=report.keys,
                attempted=report.attempted,
                failed=report.failed
            )
        return report

    def _command(self, action: str, pattern: str) -> List[str]:
        return [
            self.config.binary, "api", action,
            f"--server={self.config.api_server}",
            f"--pattern={pattern}",
        ]

    def _statsquery(self, pattern: str) -> List[dict]:
        try:
            result = subprocess.run(
                self._command("statsquery", pattern),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            raise StatsQueryError(pattern, f"timed out after {self.timeout}s")
        except OSError as e:
            raise StatsQueryError(pattern, str(e))

        if result.returncode != 0:
            raise StatsQueryError(pattern, (result.stderr or "").strip() or f"exit code {result.returncode}")

        output = (result.stdout or "").strip()
        if "stat" not in output:
            return []
        try:
            payload = json.loads(output)
        except json.JSONDecodeError as e:
            raise StatsQueryError(pattern, f"unparsable output: {e}")
        stats = payload.get("stat") if isinstance(payload, dict) else None
        return [s for s in stats if isinstance(s, dict)] if isinstance(stats, list) else []

    def _statsreset(self, pattern: str) -> bool:
        try:
            result = subprocess.run(
                self._command("statsreset", pattern),
                capture_output=True,
                text=True,
                timeout=max(self.timeout, 2.0)
            )
        except (subprocess.TimeoutExpired, OSError) as e:
            self.logger.debug("Stats reset failed", pattern=pattern, error=str(e))
            return False
        return result.returncode == 0
