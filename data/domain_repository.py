from typing import List
from .json_store import JsonStore
from .models import DomainEntry
from core.exceptions import StoreError

class DomainRepository:
    """Full-list persistence of domain entries in domains.json."""

    def __init__(self, store: JsonStore) -> None:
        self.store = store

    def get_all_domains(self) -> List[DomainEntry]:
        raw = self.store.read()
        if not isinstance(raw, list):
            raise StoreError(f"{self.store.file_path} must contain a JSON list")
        return [DomainEntry.from_dict(item) for item in raw if isinstance(item, dict)]

    def replace_all(self, domains: List[DomainEntry]) -> None:
        self.store.write([d.to_dict() for d in domains])
