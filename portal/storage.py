"""Persistence adapter: whole collections serialized into a per-device key-value store."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Protocol, Sequence, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from portal.errors import PersistenceFailure

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

TABLES = {
    "users": "all_users",
    "current_user": "user",
    "sessions": "sessions",
    "classes": "classes",
    "assignments": "assignments",
    "posts": "posts",
}


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileKeyValueStore:
    """One `<key>.json` file per key under `directory`."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceFailure(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise PersistenceFailure(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceFailure(f"Failed to delete {key}: {e}") from e

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))


class MongoKeyValueStore:
    """Documents shaped `{"_id": key, "value": <json text>}`."""

    def __init__(self, collection: Collection):
        self._collection = collection

    def get(self, key: str) -> Optional[str]:
        try:
            doc = self._collection.find_one({"_id": key})
        except PyMongoError as e:
            raise PersistenceFailure(f"Failed to read {key}: {e}") from e
        return doc["value"] if doc else None

    def set(self, key: str, value: str) -> None:
        try:
            self._collection.replace_one({"_id": key}, {"_id": key, "value": value}, upsert=True)
        except PyMongoError as e:
            raise PersistenceFailure(f"Failed to write {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._collection.delete_one({"_id": key})
        except PyMongoError as e:
            raise PersistenceFailure(f"Failed to delete {key}: {e}") from e

    def keys(self) -> list[str]:
        try:
            return [doc["_id"] for doc in self._collection.find({}, {"_id": 1})]
        except PyMongoError as e:
            raise PersistenceFailure(f"Failed to list keys: {e}") from e


class PersistenceAdapter:
    """Serializes named collections; failures are logged, never propagated."""

    def __init__(self, kv: KeyValueStore, prefix: str = "ppc_"):
        self.kv = kv
        self.prefix = prefix
        self._adapters: dict[type, TypeAdapter] = {}

    def storage_key(self, table: str) -> str:
        return f"{self.prefix}{table}"

    def _list_adapter(self, model: type[ModelT]) -> TypeAdapter:
        if model not in self._adapters:
            self._adapters[model] = TypeAdapter(list[model])
        return self._adapters[model]

    def _read(self, table: str) -> Optional[str]:
        try:
            return self.kv.get(self.storage_key(table))
        except PersistenceFailure as e:
            logger.error(f"Failed to load data from {table}: {e}")
            return None

    def load(
        self,
        table: str,
        model: type[ModelT],
        seed: Callable[[], Iterable[ModelT]] | None = None,
    ) -> list[ModelT]:
        """Read a collection, falling back to `seed()` when absent or unparsable."""
        raw = self._read(table)
        if raw:
            try:
                return self._list_adapter(model).validate_json(raw)
            except (PydanticValidationError, ValueError) as e:
                logger.warning(f"Stored {table} could not be parsed, using seed data: {e}")
        return list(seed()) if seed else []

    def load_one(self, table: str, model: type[ModelT]) -> Optional[ModelT]:
        raw = self._read(table)
        if not raw:
            return None
        try:
            return model.model_validate_json(raw)
        except (PydanticValidationError, ValueError) as e:
            logger.warning(f"Stored {table} could not be parsed: {e}")
            return None

    def _write(self, table: str, payload: str) -> bool:
        try:
            self.kv.set(self.storage_key(table), payload)
        except PersistenceFailure as e:
            # In-memory state stays authoritative for the session.
            logger.error(f"Failed to save {table}: {e}")
            return False
        return True

    def save(self, table: str, items: Sequence[BaseModel]) -> bool:
        payload = json.dumps([item.model_dump(mode="json") for item in items])
        return self._write(table, payload)

    def save_one(self, table: str, item: BaseModel) -> bool:
        return self._write(table, item.model_dump_json())

    def exists(self, table: str) -> bool:
        return self._read(table) is not None

    def delete(self, table: str) -> bool:
        try:
            self.kv.delete(self.storage_key(table))
        except PersistenceFailure as e:
            logger.error(f"Failed to delete {table}: {e}")
            return False
        return True

    def clear_all(self) -> bool:
        results = [self.delete(table) for table in TABLES.values()]
        return all(results)
