import time
from typing import Any, Dict, Optional
from config.app_config import XrayConfig
from core.exceptions import UnknownServiceError
from core.logging_config import LoggerMixin
from core.service_manager import ServiceManager
from core.types import ManagedService
from service.usage_aggregator import UsageAggregator

class SystemService(LoggerMixin):
    """Process status, restarts and health reporting."""

    def __init__(self, service_manager: ServiceManager, settings: XrayConfig,
                 aggregator: Optional[UsageAggregator] = None):
        self.service_manager = service_manager
        self.settings = settings
        self.aggregator = aggregator
        self.started_at = time.time()

    def get_status(self) -> Dict[str, str]:
        return self.service_manager.get_process_status({
            ManagedService.XRAY.value: self.settings.binary,
            ManagedService.PSIPHON.value: self.settings.psiphon_binary,
        })

    def restart(self, name: str) -> Dict[str, str]:
        try:
            service = ManagedService(name)
        except ValueError:
            raise UnknownServiceError(name)
        unit = self.settings.service_name if service is ManagedService.XRAY else self.settings.psiphon_service_name
        self.service_manager.restart_service(unit)
        self.logger.info("Service restarted on request", service=service.value, unit=unit)
        return {"restarted": service.value}

    def get_health(self) -> Dict[str, Any]:
        health = {
            "status": "healthy",
            "uptime_sec": round(time.time() - self.started_at, 1),
        }
        if self.aggregator is not None:
            health["usage_aggregation"] = self.aggregator.stats()
        return health
