"""
Xray constants shared by the stats adapter, config sync and usage policy.
These follow Xray's own naming and should NOT be changed.
"""

BYTES_PER_GB = 1024 ** 3
SECONDS_PER_DAY = 86400

UNLIMITED_QUOTA = -1
NO_EXPIRY_DAYS = -1

class XrayStatNames:
    """Stat name layout used by the Xray StatsService for per-user counters."""

    USER_PREFIX = "user>>>"

    @staticmethod
    def user_pattern(key: str) -> str:
        return f"user>>>{key}"

    @staticmethod
    def traffic_prefix(key: str) -> str:
        return f"user>>>{key}>>>traffic>>>"

    @staticmethod
    def uplink(key: str) -> str:
        return f"user>>>{key}>>>traffic>>>uplink"

    @staticmethod
    def downlink(key: str) -> str:
        return f"user>>>{key}>>>traffic>>>downlink"

VLESS_PROTOCOL = "vless"
VLESS_CLIENT_LEVEL = 0

SHARE_LINK_ALPN = "h3,h2,http/1.1"
