from typing import Dict, List
from .json_store import JsonStore
from .models import UsageEntry, UserRecord
from core.types import UsageKey
from core.exceptions import StoreError

class UsageRepository:
    """Accumulator store: usage-store.json mapping stable ids to {accumBytes, lastRawBytes}."""

    def __init__(self, store: JsonStore) -> None:
        self.store = store

    def load(self) -> Dict[UsageKey, UsageEntry]:
        raw = self.store.read()
        if not isinstance(raw, dict):
            raise StoreError(f"{self.store.file_path} must contain a JSON object")
        return {
            key: UsageEntry.from_dict(value)
            for key, value in raw.items()
            if isinstance(value, dict)
        }

    def save(self, entries: Dict[UsageKey, UsageEntry]) -> None:
        self.store.write({key: entry.to_dict() for key, entry in entries.items()})

    def reset(self, key: UsageKey) -> None:
        """Explicit reset-to-zero, the only operation allowed to lower accumBytes."""
        with self.store.lock:
            entries = self.load()
            entries[key] = UsageEntry(0, 0)
            self.save(entries)

    def fold_into(self, users: List[UserRecord]) -> None:
        """Copy current accumulator values into the user records' mirror fields."""
        entries = self.load()
        for user in users:
            entry = entries.get(user.usage_key)
            if entry is not None:
                user.usage_accum_bytes = entry.accum_bytes
                user.last_raw_bytes = entry.last_raw_bytes
