from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from config.constants import UNLIMITED_QUOTA
from core.types import Username, StatKey, UsageKey

# Keys the panel manages itself; anything else in a user record is carried through untouched
_USER_FIELDS = (
    "id", "username", "uuid", "displayName", "expiry", "quota",
    "enabled", "statKey", "usageAccumBytes", "lastRawBytes",
)

def _as_quota(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return UNLIMITED_QUOTA
    return value

def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0

@dataclass
class UserRecord:
    """A provisioned account as persisted in users.json."""
    id: Optional[int]
    username: Username
    uuid: str = ""
    display_name: str = ""
    expiry: str = ""
    quota: float = UNLIMITED_QUOTA
    enabled: bool = True
    stat_key: StatKey = ""
    usage_accum_bytes: int = 0
    last_raw_bytes: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def usage_key(self) -> UsageKey:
        """Stable identifier the accumulator store is keyed by."""
        return self.uuid or f"id:{self.id}"

    @property
    def label(self) -> str:
        return self.display_name or self.username

    @property
    def has_quota(self) -> bool:
        return self.quota != UNLIMITED_QUOTA

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserRecord':
        raw_id = data.get("id")
        return cls(
            id=raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else None,
            username=str(data.get("username") or ""),
            uuid=str(data.get("uuid") or ""),
            display_name=str(data.get("displayName") or ""),
            expiry=str(data.get("expiry") or ""),
            quota=_as_quota(data.get("quota")),
            enabled=data.get("enabled") is not False,
            stat_key=str(data.get("statKey") or ""),
            usage_accum_bytes=_as_int(data.get("usageAccumBytes")),
            last_raw_bytes=_as_int(data.get("lastRawBytes")),
            extra={k: v for k, v in data.items() if k not in _USER_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            "id": self.id,
            "username": self.username,
            "uuid": self.uuid,
            "displayName": self.display_name,
            "expiry": self.expiry,
            "quota": self.quota,
            "enabled": self.enabled,
            "statKey": self.stat_key,
            "usageAccumBytes": self.usage_accum_bytes,
            "lastRawBytes": self.last_raw_bytes,
        })
        return data

@dataclass
class UsageEntry:
    """Accumulator state for one stable identifier."""
    accum_bytes: int = 0
    last_raw_bytes: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UsageEntry':
        return cls(
            accum_bytes=_as_int(data.get("accumBytes")),
            last_raw_bytes=_as_int(data.get("lastRawBytes")),
        )

    def to_dict(self) -> Dict[str, int]:
        return {"accumBytes": self.accum_bytes, "lastRawBytes": self.last_raw_bytes}

@dataclass(frozen=True)
class UserSnapshot:
    """Enriched, read-only view of a user produced by one aggregation cycle."""
    id: Optional[int]
    username: Username
    uuid: str
    display_name: str
    expiry: str
    quota: float
    enabled: bool
    usage_bytes: int
    usage_gb: float
    usage_gb_precise: float
    remaining_gb: float
    remaining_gb_precise: float
    days_left: int
    share_link: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "uuid": self.uuid,
            "display_name": self.display_name,
            "expiry": self.expiry,
            "quota": self.quota,
            "enabled": self.enabled,
            "usage_bytes": self.usage_bytes,
            "usage_gb": self.usage_gb,
            "usage_gb_precise": self.usage_gb_precise,
            "remaining_gb": self.remaining_gb,
            "remaining_gb_precise": self.remaining_gb_precise,
            "days_left": self.days_left,
            "share_link": self.share_link,
        }

    def to_raw_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "expiry": self.expiry,
            "quota": self.quota,
            "enabled": self.enabled,
        }

@dataclass
class DomainEntry:
    domain: str
    enabled: bool = True
    wildcard: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DomainEntry':
        return cls(
            domain=str(data.get("domain") or ""),
            enabled=bool(data.get("enabled", True)),
            wildcard=bool(data.get("wildcard", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"domain": self.domain, "enabled": self.enabled, "wildcard": self.wildcard}
