import json
import os
import tempfile
import threading
from typing import Any, Dict

from core.exceptions import StoreError

class JsonStore:
    """Handles all low-level reads and writes of a single JSON file."""

    # One lock per file path, shared by every store instance on that path
    _locks: Dict[str, threading.RLock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, file_path: str, default: Any = None) -> None:
        self.file_path = file_path
        self.default = default
        with JsonStore._locks_guard:
            if file_path not in JsonStore._locks:
                JsonStore._locks[file_path] = threading.RLock()
        self.lock = JsonStore._locks[file_path]

    def exists(self) -> bool:
        return os.path.exists(self.file_path)

    def read(self) -> Any:
        """Read and parse the whole file. Missing files yield a copy of the default."""
        with self.lock:
            if not os.path.exists(self.file_path):
                if self.default is None:
                    raise StoreError(f"Store file not found: {self.file_path}")
                return json.loads(json.dumps(self.default))
            try:
                with open(self.file_path, "r", encoding="utf-8") as f:
                    return json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise StoreError(f"Invalid JSON in {self.file_path}: {e}")
            except OSError as e:
                raise StoreError(f"Failed to read {self.file_path}: {e}")

    def write(self, data: Any) -> None:
        """Replace the whole file atomically."""
        directory = os.path.dirname(self.file_path) or "."
        with self.lock:
            try:
                os.makedirs(directory, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        json.dump(data, f, indent=2, ensure_ascii=False)
                    os.replace(tmp_path, self.file_path)
                except BaseException:
                    if os.path.exists(tmp_path):
                        os.remove(tmp_path)
                    raise
            except (OSError, TypeError, ValueError) as e:
                raise StoreError(f"Failed to write {self.file_path}: {e}")
