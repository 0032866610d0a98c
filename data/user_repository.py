from typing import List, Optional
from .json_store import JsonStore
from .models import UserRecord
from core.types import Username
from core.exceptions import StoreError

class UserRepository:
    """Full-list persistence of user records in users.json."""

    def __init__(self, store: JsonStore) -> None:
        self.store = store

    def get_all_users(self) -> List[UserRecord]:
        """
        Load every user record. Records missing an id or stat key are
        backfilled once and written back, so both stay fixed from then on.
        """
        raw = self.store.read()
        if not isinstance(raw, list):
            raise StoreError(f"{self.store.file_path} must contain a JSON list")
        users = [UserRecord.from_dict(item) for item in raw if isinstance(item, dict)]

        needs_persist = False
        max_id = max((u.id for u in users if u.id is not None), default=0)
        for user in users:
            if user.id is None:
                max_id += 1
                user.id = max_id
                needs_persist = True
            if not user.stat_key:
                user.stat_key = user.display_name or user.username or user.uuid
                needs_persist = True
        if needs_persist:
            self.replace_all(users)
        return users

    def replace_all(self, users: List[UserRecord]) -> None:
        self.store.write([u.to_dict() for u in users])

    def find_user_by_username(self, username: Username) -> Optional[UserRecord]:
        for user in self.get_all_users():
            if user.username == username:
                return user
        return None

    @staticmethod
    def next_id(users: List[UserRecord]) -> int:
        return max((u.id for u in users if u.id is not None), default=0) + 1
