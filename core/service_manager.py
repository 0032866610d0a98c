import logging
import subprocess
from typing import Dict, List
import psutil
from core.exceptions import ServiceError
logger = logging.getLogger(__name__)
class ServiceManager:
    def __init__(self, timeout: int = 30):
        self.timeout = timeout
    def run_systemctl_command(self, action: str, service: str) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                ["systemctl", action, service],
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            raise ServiceError(service, action, f"timed out after {self.timeout}s")
        except OSError as e:
            raise ServiceError(service, action, str(e))
    def restart_service(self, service: str) -> None:
        logger.info(f"Restarting service: {service}")
        result = self.run_systemctl_command("restart", service)
        if result.returncode != 0:
            logger.error(f"Failed to restart service {service}: {result.stderr}")
            raise ServiceError(service, "restart", (result.stderr or "").strip() or f"exit code {result.returncode}")
        logger.info(f"Service {service} restarted successfully")
    def restart_services(self, services: List[str]) -> Dict[str, bool]:
        results = {}
        for service in services:
            try:
                self.restart_service(service)
                results[service] = True
            except ServiceError as e:
                logger.error(str(e))
                results[service] = False
        return results
    def reload_service(self, service: str) -> bool:
        logger.info(f"Reloading service: {service}")
        try:
            result = self.run_systemctl_command("reload", service)
        except ServiceError as e:
            logger.error(str(e))
            return False
        if result.returncode != 0:
            logger.warning(f"Failed to reload service {service}: {result.stderr}")
            return False
        return True
    def is_process_running(self, binary_path: str) -> bool:
        for proc in psutil.process_iter(['pid', 'name', 'cmdline']):
            try:
                cmdline = proc.info.get('cmdline') or []
                if any(binary_path in part for part in cmdline):
                    return True
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return False
    def get_process_status(self, binaries: Dict[str, str]) -> Dict[str, str]:
        return {
            name: "running" if self.is_process_running(path) else "stopped"
            for name, path in binaries.items()
        }
