import re
from typing import Any, Dict, List
from core.exceptions import DomainConflictError, DomainNotFoundError, ValidationError
from core.logging_config import LoggerMixin, log_function_call
from data.domain_repository import DomainRepository
from data.models import DomainEntry

DOMAIN_PATTERN = re.compile(r"^(\*\.)?([a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}$")

def validate_domain(domain: Any) -> bool:
    return isinstance(domain, str) and bool(DOMAIN_PATTERN.match(domain))

def _base(domain: str) -> str:
    return domain[2:] if domain.startswith("*.") else domain

def find_domain_conflict(domains: List[DomainEntry], new_domain: str, is_wildcard: bool) -> bool:
    """
    True if the new entry overlaps an existing one.

    A wildcard clashes with the exact domain it covers or the same wildcard;
    an exact domain clashes with itself or any wildcard whose base it ends with.
    """
    new_base = _base(new_domain)
    for entry in domains:
        entry_base = _base(entry.domain)
        if is_wildcard:
            if (not entry.wildcard and entry.domain == new_base) or (entry.wildcard and entry_base == new_base):
                return True
        else:
            if (not entry.wildcard and entry.domain == new_domain) or (entry.wildcard and new_domain.endswith(entry_base)):
                return True
    return False

class DomainService(LoggerMixin):
    def __init__(self, domain_repo: DomainRepository):
        self.domain_repo = domain_repo

    def list_domains(self) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in self.domain_repo.get_all_domains()]

    @log_function_call
    def add_domain(self, domain: Any, wildcard: bool = False) -> Dict[str, Any]:
        if not validate_domain(domain):
            raise ValidationError("domain", domain, "Valid domain is required")
        wildcard = bool(wildcard)
        domains = self.domain_repo.get_all_domains()
        if any(d.domain == domain and d.wildcard == wildcard for d in domains):
            raise DomainConflictError(domain, "domain already exists")
        if find_domain_conflict(domains, domain, wildcard):
            raise DomainConflictError(domain, "conflicts with an existing entry")
        domains.append(DomainEntry(domain=domain, enabled=True, wildcard=wildcard))
        self.domain_repo.replace_all(domains)
        return {"added": domain}

    @log_function_call
    def remove_domain(self, domain: str) -> Dict[str, Any]:
        domains = self.domain_repo.get_all_domains()
        self.domain_repo.replace_all([d for d in domains if d.domain != domain])
        return {"removed": domain}

    @log_function_call
    def toggle_domain(self, domain: str) -> Dict[str, Any]:
        domains = self.domain_repo.get_all_domains()
        for entry in domains:
            if entry.domain == domain:
                entry.enabled = not entry.enabled
                self.domain_repo.replace_all(domains)
                return {"toggled": domain, "enabled": entry.enabled}
        raise DomainNotFoundError(domain)
