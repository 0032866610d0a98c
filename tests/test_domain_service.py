import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.exceptions import DomainConflictError, DomainNotFoundError, ValidationError
from data.domain_repository import DomainRepository
from data.json_store import JsonStore
from data.models import DomainEntry
from service.domain_service import DomainService, find_domain_conflict, validate_domain


@pytest.fixture
def domain_service(tmp_path):
    store = JsonStore(str(tmp_path / "domains.json"), default=[])
    return DomainService(DomainRepository(store))


@pytest.mark.parametrize("domain,valid", [
    ("example.com", True),
    ("*.example.com", True),
    ("a-b.c.example.org", True),
    ("localhost", False),
    ("example.c", False),
    ("exa mple.com", False),
    (None, False),
])
def test_validate_domain(domain, valid):
    assert validate_domain(domain) is valid


def test_wildcard_conflicts_with_covered_exact_domain():
    existing = [DomainEntry("example.com")]
    assert find_domain_conflict(existing, "*.example.com", True) is True


def test_exact_conflicts_with_covering_wildcard():
    existing = [DomainEntry("*.example.com", wildcard=True)]
    assert find_domain_conflict(existing, "api.example.com", False) is True
    assert find_domain_conflict(existing, "example.org", False) is False


def test_add_list_toggle_remove(domain_service):
    domain_service.add_domain("example.com")
    domain_service.add_domain("*.other.net", wildcard=True)

    assert domain_service.list_domains() == [
        {"domain": "example.com", "enabled": True, "wildcard": False},
        {"domain": "*.other.net", "enabled": True, "wildcard": True},
    ]

    assert domain_service.toggle_domain("example.com") == {"toggled": "example.com", "enabled": False}
    domain_service.remove_domain("*.other.net")
    assert [d["domain"] for d in domain_service.list_domains()] == ["example.com"]


def test_add_duplicate_raises_conflict(domain_service):
    domain_service.add_domain("example.com")
    with pytest.raises(DomainConflictError):
        domain_service.add_domain("example.com")


def test_add_invalid_raises_validation(domain_service):
    with pytest.raises(ValidationError):
        domain_service.add_domain("not_a_domain")


def test_toggle_unknown_raises_not_found(domain_service):
    with pytest.raises(DomainNotFoundError):
        domain_service.toggle_domain("missing.com")
