"""
Custom exception classes for the Xray panel.
Provides specific error handling and better debugging.
"""

class PanelError(Exception):
    """Base exception for panel operations."""
    pass

class UserAlreadyExistsError(PanelError):
    """Raised when trying to create or rename to a username that already exists."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User '{username}' already exists")

class UserNotFoundError(PanelError):
    """Raised when trying to access a non-existent user."""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User '{username}' not found")

class DomainNotFoundError(PanelError):
    """Raised when trying to access a non-existent domain entry."""

    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(f"Domain '{domain}' not found")

class DomainConflictError(PanelError):
    """Raised when a domain duplicates or overlaps an existing entry."""

    def __init__(self, domain: str, reason: str):
        self.domain = domain
        self.reason = reason
        super().__init__(f"Domain '{domain}' rejected: {reason}")

class StoreError(PanelError):
    """Raised when a JSON store cannot be read, parsed or written."""
    pass

class ConfigurationError(PanelError):
    """Raised when configuration is invalid or missing."""
    pass

class StatsQueryError(PanelError):
    """Raised when the Xray stats API does not answer a query."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stats query for '{key}' failed: {reason}")

class BackupError(PanelError):
    """Raised when backup operations fail."""
    pass

class RestoreError(PanelError):
    """Raised when restore operations fail."""
    pass

class ServiceError(PanelError):
    """Raised when system service operations fail."""

    def __init__(self, service_name: str, operation: str, reason: str):
        self.service_name = service_name
        self.operation = operation
        self.reason = reason
        super().__init__(f"Service '{service_name}' {operation} failed: {reason}")

class ValidationError(PanelError):
    """Raised when input validation fails."""

    def __init__(self, field: str, value, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Validation failed for {field}='{value}': {reason}")

class UnknownServiceError(PanelError):
    """Raised when a restart is requested for a service the panel does not manage."""

    def __init__(self, service_name: str):
        self.service_name = service_name
        super().__init__(f"Unknown service '{service_name}'")
