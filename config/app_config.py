"""
Centralized application configuration management.
Provides type-safe configuration with environment variable support.
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv
from core.exceptions import ConfigurationError

DEFAULT_ENV_FILE = "/etc/xray-panel/.env"
DEFAULT_DATA_DIR = "/etc/xray-panel"

@dataclass
class PathsConfig:
    """Locations of the JSON files the panel owns or edits."""
    users_file: str = os.path.join(DEFAULT_DATA_DIR, "users.json")
    domains_file: str = os.path.join(DEFAULT_DATA_DIR, "domains.json")
    usage_file: str = os.path.join(DEFAULT_DATA_DIR, "usage-store.json")
    xray_config_file: str = "/etc/xray/config.json"
    backup_dir: str = os.path.join(DEFAULT_DATA_DIR, "backups")

@dataclass
class XrayConfig:
    """Xray and Psiphon binaries, services and API endpoint."""
    binary: str = "/usr/local/bin/xray"
    api_host: str = "127.0.0.1"
    api_port: int = 10085
    service_name: str = "xray"
    psiphon_binary: str = "/usr/local/bin/psiphon-console-client"
    psiphon_service_name: str = "psiphon"
    psiphon_outbound_tag: str = "psiphon"

    @property
    def api_server(self) -> str:
        return f"{self.api_host}:{self.api_port}"

@dataclass
class AggregatorConfig:
    """Usage aggregation loop settings."""
    interval: float = 5.0
    concurrency: int = 6
    query_timeout: float = 0.5
    startup_delay: float = 0.05
    refresh_delay: float = 0.01

@dataclass
class ShareLinkConfig:
    """Network-facing parameters embedded in vless:// links."""
    public_host: str = "localhost"
    public_port: int = 443
    ws_path: str = "/"

@dataclass
class ServerConfig:
    """Server configuration settings."""
    host: str = "0.0.0.0"
    port: int = 3000
    threads: int = 4

@dataclass
class MonitoringConfig:
    """Monitoring configuration settings."""
    log_level: str = "INFO"

@dataclass
class AppConfig:
    """Main application configuration."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    xray: XrayConfig = field(default_factory=XrayConfig)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    share_link: ShareLinkConfig = field(default_factory=ShareLinkConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'AppConfig':
        """Load configuration from environment variables."""
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file)

        users_file = os.getenv("USERS_FILE", os.path.join(DEFAULT_DATA_DIR, "users.json"))
        data_dir = os.path.dirname(users_file) or "."

        try:
            return cls(
                paths=PathsConfig(
                    users_file=users_file,
                    domains_file=os.getenv("DOMAINS_FILE", os.path.join(data_dir, "domains.json")),
                    usage_file=os.getenv("USAGE_FILE", os.path.join(data_dir, "usage-store.json")),
                    xray_config_file=os.getenv("XRAY_CONFIG_FILE", "/etc/xray/config.json"),
                    backup_dir=os.getenv("BACKUP_DIR", os.path.join(data_dir, "backups"))
                ),
                xray=XrayConfig(
                    binary=os.getenv("XRAY_BIN", "/usr/local/bin/xray"),
                    api_host=os.getenv("XRAY_API_HOST", "127.0.0.1"),
                    api_port=int(os.getenv("XRAY_API_PORT", "10085")),
                    service_name=os.getenv("XRAY_SERVICE", "xray"),
                    psiphon_binary=os.getenv("PSIPHON_BIN", "/usr/local/bin/psiphon-console-client"),
                    psiphon_service_name=os.getenv("PSIPHON_SERVICE", "psiphon"),
                    psiphon_outbound_tag=os.getenv("PSIPHON_OUTBOUND_TAG", "psiphon")
                ),
                aggregator=AggregatorConfig(
                    interval=float(os.getenv("USAGE_POLL_INTERVAL", "5")),
                    concurrency=int(os.getenv("USAGE_QUERY_CONCURRENCY", "6")),
                    query_timeout=float(os.getenv("USAGE_QUERY_TIMEOUT", "0.5")),
                    startup_delay=float(os.getenv("USAGE_STARTUP_DELAY", "0.05")),
                    refresh_delay=float(os.getenv("USAGE_REFRESH_DELAY", "0.01"))
                ),
                share_link=ShareLinkConfig(
                    public_host=os.getenv("PUBLIC_HOST", "localhost"),
                    public_port=int(os.getenv("PUBLIC_PORT", "443")),
                    ws_path=os.getenv("WS_PATH", "/")
                ),
                server=ServerConfig(
                    host=os.getenv("SERVER_HOST", "0.0.0.0"),
                    port=int(os.getenv("API_PORT", os.getenv("PORT", "3000"))),
                    threads=int(os.getenv("SERVER_THREADS", "4"))
                ),
                monitoring=MonitoringConfig(
                    log_level=os.getenv("LOG_LEVEL", "INFO")
                )
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}")

    def validate(self) -> None:
        """Validate configuration settings."""
        if self.aggregator.interval <= 0:
            raise ConfigurationError("USAGE_POLL_INTERVAL must be positive")
        if self.aggregator.concurrency < 1:
            raise ConfigurationError("USAGE_QUERY_CONCURRENCY must be at least 1")
        if self.aggregator.query_timeout <= 0:
            raise ConfigurationError("USAGE_QUERY_TIMEOUT must be positive")
        if not (1 <= self.xray.api_port <= 65535):
            raise ConfigurationError("XRAY_API_PORT must be between 1 and 65535")

        # Ensure data directories exist
        Path(self.paths.users_file).parent.mkdir(parents=True, exist_ok=True)
        Path(self.paths.backup_dir).mkdir(parents=True, exist_ok=True)

# Global configuration instance
_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        env_file = os.getenv("PANEL_ENV_FILE", DEFAULT_ENV_FILE)
        _config = AppConfig.from_env(env_file)
        _config.validate()
    return _config

def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
