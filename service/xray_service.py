from typing import Any, Dict, List
from config.app_config import XrayConfig
from core.exceptions import ServiceError, ValidationError
from core.logging_config import LoggerMixin, log_function_call
from core.service_manager import ServiceManager
from core.xray_config_manager import XrayConfigManager

class XrayService(LoggerMixin):
    """Raw Xray config editing and routing rules."""

    def __init__(self, config_manager: XrayConfigManager, service_manager: ServiceManager,
                 settings: XrayConfig):
        self.config_manager = config_manager
        self.service_manager = service_manager
        self.settings = settings

    def get_config(self) -> Dict[str, Any]:
        return self.config_manager.load()

    @log_function_call
    def save_config(self, config: Any) -> Dict[str, Any]:
        self.validate_config(config)
        self.config_manager.save(config)
        reloaded = self.service_manager.reload_service(self.settings.service_name)
        return {"saved": True, "reloaded": reloaded}

    @staticmethod
    def validate_config(config: Any) -> Dict[str, Any]:
        if not isinstance(config, dict):
            raise ValidationError("config", type(config).__name__, "Xray config must be a JSON object")
        return {"valid": True}

    def get_routing_rules(self) -> List[Any]:
        return self.config_manager.get_routing_rules()

    @log_function_call
    def set_routing_rules(self, rules: Any) -> Dict[str, Any]:
        self.config_manager.set_routing_rules(rules)
        try:
            self.service_manager.restart_service(self.settings.service_name)
        except ServiceError as e:
            self.logger.error("Xray restart after routing change failed", error=str(e))
        return {"updated": True}

    def get_psiphon_domains(self) -> Dict[str, Any]:
        tag = self.settings.psiphon_outbound_tag
        return {"outbound_tag": tag, "domains": self.config_manager.get_outbound_domains(tag)}
