import re
import uuid as uuid_lib
from typing import Any, Dict, List, Optional
from config.app_config import XrayConfig
from core.exceptions import (
    UserAlreadyExistsError,
    UserNotFoundError,
    ValidationError,
    ServiceError
)
from core.logging_config import LoggerMixin, log_function_call, log_performance
from core.service_manager import ServiceManager
from core.types import Trigger, Username
from core.xray_config_manager import XrayConfigManager
from core.xray_stats import XrayStatsClient
from data.models import UserRecord
from data.usage_repository import UsageRepository
from data.user_repository import UserRepository
from service.units import bytes_to_human
from service.usage_aggregator import UsageAggregator

_EXPIRY_MINUTES = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}$")
_EXPIRY_SECONDS = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")

# Marks "field not sent" so an explicit null expiry can clear the date
UNSET = object()

def normalize_expiry(expiry: Any) -> str:
    """Accept 'YYYY-MM-DD HH:MM[:SS]' with optional 'T' separator and trailing Z; anything else means never."""
    if not isinstance(expiry, str):
        return ""
    value = expiry.strip().replace("T", " ", 1)
    if value[-1:] in ("Z", "z"):
        value = value[:-1]
    if _EXPIRY_MINUTES.match(value):
        value += ":00"
    return value if _EXPIRY_SECONDS.match(value) else ""

def validate_quota(quota: Any) -> float:
    if isinstance(quota, bool) or not isinstance(quota, (int, float)):
        raise ValidationError("quota", quota, "Quota must be a number")
    if quota != -1 and quota < 0:
        raise ValidationError("quota", quota, "Quota must be -1 (unlimited) or non-negative")
    return quota

def validate_username(username: Any) -> Username:
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("username", username, "Username is required")
    return username.strip()

class UserService(LoggerMixin):
    def __init__(self, user_repo: UserRepository, usage_repo: UsageRepository,
                 aggregator: UsageAggregator, stats_client: XrayStatsClient,
                 xray_config: XrayConfigManager, service_manager: ServiceManager,
                 xray_settings: Optional[XrayConfig] = None):
        self.user_repo = user_repo
        self.usage_repo = usage_repo
        self.aggregator = aggregator
        self.stats_client = stats_client
        self.xray_config = xray_config
        self.service_manager = service_manager
        self.xray_settings = xray_settings or XrayConfig()

    def list_users(self, refresh: bool = False) -> List[Dict[str, Any]]:
        if refresh:
            self.aggregator.request_refresh(Trigger.MANUAL)
        return [s.to_dict() for s in self.aggregator.get_snapshot()]

    def list_users_raw(self) -> List[Dict[str, Any]]:
        return [s.to_raw_dict() for s in self.aggregator.get_snapshot()]

    @log_function_call
    @log_performance
    def create_user(self, username: Username, display_name: str = "",
                    expiry: Any = None, quota: Any = -1) -> Dict[str, Any]:
        username = validate_username(username)
        quota = validate_quota(quota)
        users = self.user_repo.get_all_users()
        if any(u.username == username for u in users):
            raise UserAlreadyExistsError(username)

        user_uuid = str(uuid_lib.uuid4())
        display_name = display_name or ""
        user = UserRecord(
            id=self.user_repo.next_id(users),
            username=username,
            uuid=user_uuid,
            display_name=display_name,
            expiry=normalize_expiry(expiry),
            quota=quota,
            enabled=True,
            stat_key=display_name or username or user_uuid,
        )
        users.append(user)
        self._commit(users, active_set_changed=True)
        self.logger.info("User created", username=username, user_id=user.id)
        return {"username": username, "user_id": user.id, "uuid": user_uuid}

    @log_function_call
    def update_user(self, username: Username, new_username: Optional[str] = None,
                    display_name: Optional[str] = None, expiry: Any = UNSET,
                    quota: Any = None) -> Dict[str, Any]:
        users = self.user_repo.get_all_users()
        user = self._find(users, username)

        renamed = False
        if isinstance(new_username, str) and new_username.strip():
            new_username = new_username.strip()
            if new_username != username:
                if any(u.username == new_username for u in users):
                    raise UserAlreadyExistsError(new_username)
                user.username = new_username
                renamed = True
        if isinstance(display_name, str):
            user.display_name = display_name
        if expiry is not UNSET:
            normalized = normalize_expiry(expiry)
            if normalized != user.expiry:
                self.logger.info("Expiry changed", username=username, before=user.expiry, after=normalized)
            user.expiry = normalized
        if quota is not None:
            user.quota = validate_quota(quota)

        self._commit(users, active_set_changed=renamed)
        return {"updated": user.username}

    @log_function_call
    def delete_user(self, username: Username) -> Dict[str, Any]:
        users = self.user_repo.get_all_users()
        self._find(users, username)
        remaining = [u for u in users if u.username != username]
        self._commit(remaining, active_set_changed=True)
        return {"removed": username}

    @log_function_call
    def set_enabled(self, username: Username, enabled: bool) -> Dict[str, Any]:
        users = self.user_repo.get_all_users()
        user = self._find(users, username)
        user.enabled = enabled
        self._commit(users, active_set_changed=True)
        return {"username": username, "enabled": enabled}

    @log_function_call
    def reset_quota(self, username: Username) -> Dict[str, Any]:
        users = self.user_repo.get_all_users()
        user = self._find(users, username)

        report = self.stats_client.reset([user.uuid, user.username, user.display_name, user.stat_key])
        self.usage_repo.reset(user.usage_key)
        user.usage_accum_bytes = 0
        user.last_raw_bytes = 0

        self._commit(users, active_set_changed=True)
        return {
            "quota_reset": username,
            "counters_reset": report.success,
            "failed_resets": report.failed
        }

    def usage_debug(self, username: Username) -> Dict[str, Any]:
        users = self.user_repo.get_all_users()
        user = self._find(users, username)
        entry = self.usage_repo.load().get(user.usage_key)
        multi_raw = self.stats_client.query_many([user.stat_key, user.display_name, user.username, user.uuid])
        single_raw = self.stats_client.query_many([user.uuid])
        last_raw = entry.last_raw_bytes if entry else 0
        return {
            "username": user.username,
            "uuid": user.uuid,
            "stat_key": user.stat_key,
            "store": entry.to_dict() if entry else None,
            "store_human": bytes_to_human(entry.accum_bytes) if entry else None,
            "multi_raw": multi_raw,
            "single_raw": single_raw,
            "diff": last_raw - multi_raw
        }

    def sync_clients(self, users: Optional[List[UserRecord]] = None) -> bool:
        """Push enabled users into the Xray inbound and restart Xray when the list changed."""
        if users is None:
            users = self.user_repo.get_all_users()
        changed = self.xray_config.sync_vless_clients(users)
        if changed:
            self._restart_xray()
        return changed

    def _commit(self, users: List[UserRecord], active_set_changed: bool) -> None:
        self.usage_repo.fold_into(users)
        self.user_repo.replace_all(users)
        if active_set_changed:
            self.xray_config.sync_vless_clients(users)
            self._restart_xray()
        self.aggregator.request_refresh(Trigger.MUTATION)

    def _restart_xray(self) -> None:
        try:
            self.service_manager.restart_service(self.xray_settings.service_name)
        except ServiceError as e:
            self.logger.error("Xray restart failed", error=str(e))

    @staticmethod
    def _find(users: List[UserRecord], username: Username) -> UserRecord:
        for user in users:
            if user.username == username:
                return user
        raise UserNotFoundError(username)
