import copy
import os
import re
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import StorageError
from .logging import get_logger

log = get_logger("storage")

T = TypeVar("T")

CUSTOMERS_KEY = "customers"
DOCUMENTS_KEY = "documents"


# ----------------------------
# Key-value stores
# ----------------------------
class KeyValueStore:
    """Durable string-keyed storage holding string values (JSON text)."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


def safe_filename(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9._-]+", "_", name)
    name = re.sub(r"_+", "_", name).strip("_")
    return name or "value"


class FileKeyValueStore(KeyValueStore):
    """One ``<key>.json`` file per key under ``directory``."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / (safe_filename(key) + ".json")

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e


# ----------------------------
# Storage-backed state
# ----------------------------
class PersistentState(Generic[T]):
    """One typed value mirrored to a single key of a KeyValueStore.

    Reads once at construction and falls back to ``initial`` when the key is
    missing or unparseable. Every ``set`` rewrites the whole value. Storage
    failures are logged and never raised; a failed write keeps the new value
    in memory.
    """

    def __init__(self, store: KeyValueStore, key: str, type_: Any, initial: T):
        self.store = store
        self.key = key
        self.adapter: TypeAdapter = TypeAdapter(type_)
        self._initial = initial
        self._lock = threading.RLock()
        self._value: T = self.read()

    @property
    def value(self) -> T:
        return self._value

    def read(self) -> T:
        try:
            raw = self.store.get(self.key)
        except StorageError as e:
            log.warning("Reading %r failed, using default: %s", self.key, e)
            return copy.deepcopy(self._initial)
        if raw is None:
            return copy.deepcopy(self._initial)
        try:
            return self.adapter.validate_json(raw)
        except PydanticValidationError as e:
            log.warning("Stored value for %r is corrupt, using default: %s", self.key, e)
            return copy.deepcopy(self._initial)

    def set(self, value: Union[T, Callable[[T], T]]) -> T:
        with self._lock:
            new_value = value(self._value) if callable(value) else value
            self._value = new_value
            self.write(new_value)
            return new_value

    def write(self, value: T) -> bool:
        try:
            raw = self.adapter.dump_json(value, by_alias=True).decode("utf-8")
            self.store.set(self.key, raw)
        except (StorageError, ValueError, TypeError) as e:
            log.warning("Persisting %r failed; value kept in memory only: %s", self.key, e)
            return False
        return True
