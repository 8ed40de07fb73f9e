"""Owned entity collection with write-through persistence."""
from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from portal.errors import NotFound, ValidationError
from portal.models.base import Document, utcnow
from portal.storage import PersistenceAdapter

logger = logging.getLogger(__name__)

DocT = TypeVar("DocT", bound=Document)
Predicate = Callable[[DocT], bool]


def validation_error_from(exc: PydanticValidationError, entity: str) -> ValidationError:
    messages = []
    field = None
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "Invalid value").removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}" if loc else msg)
        if field is None and loc:
            field = loc
    return ValidationError(f"Invalid {entity}: {'; '.join(messages)}", errors=messages, field=field)


def _as_dict(data: BaseModel | dict[str, Any], exclude_unset: bool = False) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=exclude_unset)
    return dict(data)


class EntityStore(Generic[DocT]):
    """Sole owner and mutator of one collection.

    Reads hand out copies, so the only way to change stored state is through
    `create`/`update`/`remove` (and the store-specific mutators built on them).
    Every successful mutation re-serializes the whole collection.
    """

    model: type[DocT]
    entity_name = "Entity"

    def __init__(self, adapter: PersistenceAdapter, seed: Callable[[], Iterable[DocT]] | None = None):
        self._adapter = adapter
        self._items: list[DocT] = adapter.load(self.model.collection, self.model, seed)

    # -- internals -------------------------------------------------------

    def _persist(self) -> bool:
        return self._adapter.save(self.model.collection, self._items)

    def _matches_key(self, item: DocT, key: str) -> bool:
        return item.key == key

    def _index_of(self, key: str) -> int:
        for i, item in enumerate(self._items):
            if self._matches_key(item, key):
                return i
        raise NotFound(self.entity_name, key)

    def _build(self, data: dict[str, Any]) -> DocT:
        try:
            return self.model.model_validate(data)
        except PydanticValidationError as e:
            raise validation_error_from(e, self.entity_name.lower()) from e

    def _check_create(self, entity: DocT) -> None:
        """Store-specific invariants for new entities."""

    def _check_update(self, current: DocT, updated: DocT) -> None:
        """Store-specific invariants for updates."""

    def _replace(self, index: int, entity: DocT) -> DocT:
        self._items[index] = entity
        self._persist()
        return entity.model_copy(deep=True)

    # -- contract --------------------------------------------------------

    def create(self, draft: BaseModel | dict[str, Any]) -> DocT:
        entity = self._build(_as_dict(draft))
        self._check_create(entity)
        self._items.append(entity)
        self._persist()
        logger.debug(f"Created {self.entity_name} {entity.key}")
        return entity.model_copy(deep=True)

    def update(self, key: str, patch: BaseModel | dict[str, Any]) -> DocT:
        index = self._index_of(key)
        current = self._items[index]
        changes = _as_dict(patch, exclude_unset=True)
        merged = {**current.model_dump(), **changes}
        if "updated_at" in self.model.model_fields:
            merged["updated_at"] = utcnow()
        updated = self._build(merged)
        self._check_update(current, updated)
        logger.debug(f"Updated {self.entity_name} {key}: {sorted(changes)}")
        return self._replace(index, updated)

    def remove(self, key: str) -> None:
        index = self._index_of(key)
        removed = self._items.pop(index)
        self._persist()
        logger.info(f"Removed {self.entity_name} {removed.key}")

    def get(self, key: str) -> DocT:
        return self._items[self._index_of(key)].model_copy(deep=True)

    def exists(self, key: str) -> bool:
        return any(self._matches_key(item, key) for item in self._items)

    def find(self, predicate: Predicate) -> Optional[DocT]:
        for item in self._items:
            if predicate(item):
                return item.model_copy(deep=True)
        return None

    def list(self, predicate: Optional[Predicate] = None) -> Iterator[DocT]:
        """Single-pass iterator over a snapshot; call again for fresh results."""
        snapshot = list(self._items)
        for item in snapshot:
            if predicate is None or predicate(item):
                yield item.model_copy(deep=True)

    def count(self, predicate: Optional[Predicate] = None) -> int:
        return sum(1 for item in self._items if predicate is None or predicate(item))

    def __len__(self) -> int:
        return len(self._items)
