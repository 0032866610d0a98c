import json
import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from core.exceptions import StoreError
from data.json_store import JsonStore
from data.user_repository import UserRepository
from data.usage_repository import UsageRepository
from data.models import UsageEntry, UserRecord


def test_missing_file_returns_copy_of_default(tmp_path):
    store = JsonStore(str(tmp_path / "users.json"), default=[])
    data = store.read()
    data.append("x")
    assert store.read() == []


def test_missing_file_without_default_raises(tmp_path):
    store = JsonStore(str(tmp_path / "config.json"))
    with pytest.raises(StoreError):
        store.read()


def test_invalid_json_raises_store_error(tmp_path):
    path = tmp_path / "usage.json"
    path.write_text("{broken")
    with pytest.raises(StoreError):
        JsonStore(str(path), default={}).read()


def test_undecodable_bytes_raise_store_error(tmp_path):
    path = tmp_path / "users.json"
    path.write_bytes(b'[{"username": "\xff\xfe"}]')
    with pytest.raises(StoreError):
        JsonStore(str(path), default=[]).read()


def test_write_is_atomic_and_leaves_no_temp_files(tmp_path):
    store = JsonStore(str(tmp_path / "nested" / "domains.json"), default=[])
    store.write([{"domain": "example.com"}])

    assert json.loads((tmp_path / "nested" / "domains.json").read_text()) == [{"domain": "example.com"}]
    assert os.listdir(tmp_path / "nested") == ["domains.json"]


def test_stores_on_same_path_share_lock(tmp_path):
    path = str(tmp_path / "users.json")
    assert JsonStore(path).lock is JsonStore(path).lock


def test_user_repository_backfills_id_and_stat_key(tmp_path):
    store = JsonStore(str(tmp_path / "users.json"), default=[])
    store.write([
        {"id": 4, "username": "old", "uuid": "u-old", "statKey": "old"},
        {"username": "legacy", "uuid": "u-legacy", "displayName": "Legacy Phone", "note": "keep"},
    ])

    users = UserRepository(store).get_all_users()

    assert users[1].id == 5
    assert users[1].stat_key == "Legacy Phone"
    persisted = store.read()[1]
    assert persisted["id"] == 5
    assert persisted["statKey"] == "Legacy Phone"
    assert persisted["note"] == "keep"


def test_user_repository_rejects_non_list(tmp_path):
    store = JsonStore(str(tmp_path / "users.json"), default=[])
    store.write({"users": []})
    with pytest.raises(StoreError):
        UserRepository(store).get_all_users()


def test_usage_repository_reset_and_fold(tmp_path):
    store = JsonStore(str(tmp_path / "usage-store.json"), default={})
    repo = UsageRepository(store)
    repo.save({"u-1": UsageEntry(500, 900), "u-2": UsageEntry(7, 7)})

    repo.reset("u-1")
    users = [UserRecord(id=1, username="a", uuid="u-1"), UserRecord(id=2, username="b", uuid="u-2")]
    repo.fold_into(users)

    assert repo.load()["u-1"] == UsageEntry(0, 0)
    assert (users[0].usage_accum_bytes, users[0].last_raw_bytes) == (0, 0)
    assert (users[1].usage_accum_bytes, users[1].last_raw_bytes) == (7, 7)
