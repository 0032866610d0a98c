# Core module exports
from .types import *
from .exceptions import *

__all__ = [
    'PanelError',
    'UserAlreadyExistsError',
    'UserNotFoundError',
    'DomainNotFoundError',
    'DomainConflictError',
    'StoreError',
    'StatsQueryError',
    'ConfigurationError',
    'ValidationError',
    'ServiceError',
    'BackupError',
    'RestoreError',
    'UnknownServiceError',
    'ManagedService',
    'Trigger'
]
