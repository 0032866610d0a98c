from typing import Dict, Any, Optional, TypeVar, Callable
from config.app_config import AppConfig
from data.json_store import JsonStore
from data.user_repository import UserRepository
from data.usage_repository import UsageRepository
from data.domain_repository import DomainRepository
from core.backup_service import BackupService
from core.service_manager import ServiceManager
from core.share_link import ShareLinkBuilder
from core.xray_config_manager import XrayConfigManager
from core.xray_stats import XrayStatsClient
from service.domain_service import DomainService
from service.system_service import SystemService
from service.usage_aggregator import UsageAggregator
from service.user_service import UserService
from service.xray_service import XrayService
T = TypeVar('T')

class DependencyContainer:
    def __init__(self):
        self._instances: Dict[str, Any] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._config: Optional[AppConfig] = None

    def register_config(self, config: AppConfig) -> None:
        self._config = config
        self._instances['config'] = config
    def register_singleton(self, name: str, factory: Callable[[], T]) -> None:
        self._factories[name] = factory

    def get(self, name: str) -> T:
        if name in self._instances:
            return self._instances[name]
        if name in self._factories:
            instance = self._factories[name]()
            self._instances[name] = instance
            return instance
        raise KeyError(f"Dependency '{name}' not registered")
    def register_core_dependencies(self) -> None:
        self.register_singleton('users_store', self._create_users_store)
        self.register_singleton('usage_store', self._create_usage_store)
        self.register_singleton('domains_store', self._create_domains_store)
        self.register_singleton('xray_config_store', self._create_xray_config_store)
        self.register_singleton('user_repository', self._create_user_repository)
        self.register_singleton('usage_repository', self._create_usage_repository)
        self.register_singleton('domain_repository', self._create_domain_repository)
        self.register_singleton('stats_client', self._create_stats_client)
        self.register_singleton('share_link_builder', self._create_share_link_builder)
        self.register_singleton('service_manager', self._create_service_manager)
        self.register_singleton('xray_config_manager', self._create_xray_config_manager)
        self.register_singleton('backup_service', self._create_backup_service)
    def register_service_dependencies(self) -> None:
        self.register_singleton('usage_aggregator', self._create_usage_aggregator)
        self.register_singleton('user_service', self._create_user_service)
        self.register_singleton('domain_service', self._create_domain_service)
        self.register_singleton('xray_service', self._create_xray_service)
        self.register_singleton('system_service', self._create_system_service)
    def _create_users_store(self) -> JsonStore:
        return JsonStore(self._config.paths.users_file, default=[])
    def _create_usage_store(self) -> JsonStore:
        return JsonStore(self._config.paths.usage_file, default={})
    def _create_domains_store(self) -> JsonStore:
        return JsonStore(self._config.paths.domains_file, default=[])
    def _create_xray_config_store(self) -> JsonStore:
        return JsonStore(self._config.paths.xray_config_file)
    def _create_user_repository(self) -> UserRepository:
        return UserRepository(self.get('users_store'))
    def _create_usage_repository(self) -> UsageRepository:
        return UsageRepository(self.get('usage_store'))
    def _create_domain_repository(self) -> DomainRepository:
        return DomainRepository(self.get('domains_store'))
    def _create_stats_client(self) -> XrayStatsClient:
        return XrayStatsClient(self._config.xray, timeout=self._config.aggregator.query_timeout)
    def _create_share_link_builder(self) -> ShareLinkBuilder:
        return ShareLinkBuilder(self._config.share_link)
    def _create_service_manager(self) -> ServiceManager:
        return ServiceManager()
    def _create_xray_config_manager(self) -> XrayConfigManager:
        return XrayConfigManager(self.get('xray_config_store'))
    def _create_backup_service(self) -> BackupService:
        return BackupService(
            self.get('users_store'),
            self.get('domains_store'),
            self.get('xray_config_store'),
            self._config.paths.backup_dir,
            self.get('service_manager'),
            self._config.xray.service_name
        )
    def _create_usage_aggregator(self) -> UsageAggregator:
        return UsageAggregator(
            self.get('user_repository'),
            self.get('usage_repository'),
            self.get('stats_client'),
            self.get('share_link_builder'),
            config=self._config.aggregator
        )
    def _create_user_service(self) -> UserService:
        aggregator = self.get('usage_aggregator')
        service = UserService(
            self.get('user_repository'),
            self.get('usage_repository'),
            aggregator,
            self.get('stats_client'),
            self.get('xray_config_manager'),
            self.get('service_manager'),
            self._config.xray
        )
        # Policy disables have to reach the Xray client list
        aggregator.on_policy_change = service.sync_clients
        return service
    def _create_domain_service(self) -> DomainService:
        return DomainService(self.get('domain_repository'))
    def _create_xray_service(self) -> XrayService:
        return XrayService(
            self.get('xray_config_manager'),
            self.get('service_manager'),
            self._config.xray
        )
    def _create_system_service(self) -> SystemService:
        return SystemService(
            self.get('service_manager'),
            self._config.xray,
            self.get('usage_aggregator')
        )
    def cleanup(self) -> None:
        aggregator = self._instances.get('usage_aggregator')
        if aggregator:
            aggregator.stop()
        self._instances.clear()
        self._factories.clear()
_container = DependencyContainer()
def get_container() -> DependencyContainer:
    return _container
def initialize_container(config: AppConfig) -> None:
    container = get_container()
    container.register_config(config)
    container.register_core_dependencies()
    container.register_service_dependencies()
def get_service(service_name: str) -> Any:
    return get_container().get(service_name)
def cleanup_container() -> None:
    get_container().cleanup()
