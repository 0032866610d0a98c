# Configuration module exports
from .app_config import AppConfig, get_config, set_config
from .constants import BYTES_PER_GB, XrayStatNames

__all__ = [
    'AppConfig',
    'get_config',
    'set_config',
    'BYTES_PER_GB',
    'XrayStatNames'
]
