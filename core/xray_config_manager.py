import json
import logging
from typing import Any, Dict, List, Optional
from config.constants import VLESS_PROTOCOL, VLESS_CLIENT_LEVEL
from core.exceptions import StoreError, ValidationError
from data.json_store import JsonStore
from data.models import UserRecord
logger = logging.getLogger(__name__)
def build_desired_clients(users: List[UserRecord]) -> List[Dict[str, Any]]:
    """VLESS clients for every enabled user. The email doubles as the stats key."""
    return [
        {"id": u.uuid, "email": u.stat_key, "level": VLESS_CLIENT_LEVEL}
        for u in users
        if u.enabled
    ]
def _normalized(clients: List[Dict[str, Any]]) -> str:
    rows = [
        {"id": str(c.get("id", "")), "email": c.get("email"), "level": c.get("level")}
        for c in clients
        if isinstance(c, dict)
    ]
    return json.dumps(sorted(rows, key=lambda c: c["id"]), sort_keys=True)
class XrayConfigManager:
    def __init__(self, store: JsonStore):
        self.store = store
    def load(self) -> Dict[str, Any]:
        config = self.store.read()
        if not isinstance(config, dict):
            raise StoreError(f"{self.store.file_path} must contain a JSON object")
        return config
    def save(self, config: Dict[str, Any]) -> None:
        if not isinstance(config, dict):
            raise ValidationError("config", type(config).__name__, "Xray config must be a JSON object")
        self.store.write(config)
    def find_vless_inbound(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for inbound in config.get("inbounds") or []:
            if not isinstance(inbound, dict) or inbound.get("protocol") != VLESS_PROTOCOL:
                continue
            settings = inbound.get("settings")
            if isinstance(settings, dict) and isinstance(settings.get("clients"), list):
                return inbound
        return None
    def sync_vless_clients(self, users: List[UserRecord]) -> bool:
        """Write the enabled users into the first VLESS inbound. Returns True if the file changed."""
        with self.store.lock:
            config = self.load()
            inbound = self.find_vless_inbound(config)
            if inbound is None:
                logger.warning("No VLESS inbound with a clients list found, skipping client sync")
                return False
            desired = build_desired_clients(users)
            if _normalized(inbound["settings"]["clients"]) == _normalized(desired):
                return False
            inbound["settings"]["clients"] = desired
            self.save(config)
        logger.info(f"Synced {len(desired)} VLESS clients into Xray config")
        return True
    def get_routing_rules(self) -> List[Any]:
        config = self.load()
        routing = config.get("routing") or {}
        rules = routing.get("rules") if isinstance(routing, dict) else None
        return rules if isinstance(rules, list) else []
    def set_routing_rules(self, rules: List[Any]) -> None:
        if not isinstance(rules, list):
            raise ValidationError("rules", type(rules).__name__, "rules must be an array")
        with self.store.lock:
            config = self.load()
            routing = config.get("routing")
            routing = dict(routing) if isinstance(routing, dict) else {}
            routing["rules"] = rules
            config["routing"] = routing
            self.save(config)
    def get_outbound_domains(self, outbound_tag: str) -> List[str]:
        """De-duplicated domains of every rule routed to the given outbound."""
        domains: List[str] = []
        for rule in self.get_routing_rules():
            if not isinstance(rule, dict) or rule.get("outboundTag") != outbound_tag:
                continue
            candidates: List[Any] = []
            for key in ("domain", "domains"):
                value = rule.get(key)
                if isinstance(value, list):
                    candidates.extend(value)
                elif isinstance(value, str):
                    candidates.append(value)
            for domain in candidates:
                if isinstance(domain, str) and domain not in domains:
                    domains.append(domain)
        return domains
