# Data module exports
from .models import UserRecord, UsageEntry, UserSnapshot, DomainEntry
from .json_store import JsonStore
from .user_repository import UserRepository
from .usage_repository import UsageRepository
from .domain_repository import DomainRepository

__all__ = [
    'UserRecord',
    'UsageEntry',
    'UserSnapshot',
    'DomainEntry',
    'JsonStore',
    'UserRepository',
    'UsageRepository',
    'DomainRepository'
]
