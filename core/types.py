"""
Type definitions for the Xray panel.
Provides type safety and better IDE support.
"""

from enum import Enum

Username = str
StatKey = str
UsageKey = str

class ManagedService(Enum):
    """System services the panel is allowed to restart."""
    XRAY = "xray"
    PSIPHON = "psiphon"

class Trigger(Enum):
    """Reasons an aggregation cycle was started."""
    STARTUP = "startup"
    INTERVAL = "interval"
    MANUAL = "manual"
    STALE = "stale"
    MUTATION = "mutation"

