"""
Persistence for the topic, note and super-category maps.

Each map is stored wholesale as a flat ``id -> record`` JSON object under a
fixed key. Loading a corrupt map degrades to an empty one, and the
surviving maps are reconciled so no membership points at a lost record.
"""
import json
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .clustering.models import (
    NoteSummary,
    SuperCategory,
    Topic,
    migrate_note_record,
    migrate_super_category_record,
    migrate_topic_record,
)
from .clustering.topic_store import TopicStore
from .errors import StoreCorruptionError
from .logging_config import get_logger

logger = get_logger("storage")

STORAGE_KEYS = {
    "topics": "gist-topics",
    "summaries": "gist-summaries",
    "super_categories": "gist-super-categories",
}

M = TypeVar("M", bound=BaseModel)


class KeyValueStorage(Protocol):
    """Minimal string key-value store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStorage:
    """Dictionary-backed storage, for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileStorage:
    """One ``<key>.json`` file per key inside ``data_dir``."""

    def __init__(self, data_dir: Path = Path("data")):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp = path.parent / f"{path.name}.tmp"
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def decode_map(
    raw: Optional[str],
    model: Type[M],
    migrate: Callable[[Dict[str, Any]], Dict[str, Any]],
) -> Dict[str, M]:
    """Parse a persisted ``id -> record`` map.

    Raises:
        StoreCorruptionError: the text is not a JSON object of valid records.
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise StoreCorruptionError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise StoreCorruptionError(f"Expected a JSON object, got {type(data).__name__}")

    result: Dict[str, M] = {}
    for key, record in data.items():
        if not isinstance(record, dict):
            raise StoreCorruptionError(f"Record {key!r} is not an object")
        try:
            item = model.model_validate(migrate(record))
        except ValidationError as e:
            raise StoreCorruptionError(f"Record {key!r} is invalid: {e}") from e
        result[item.id] = item
    return result


def encode_map(items: Dict[str, BaseModel]) -> str:
    return json.dumps(
        {key: item.model_dump() for key, item in items.items()},
        ensure_ascii=False,
    )


class StoreRepository:
    """Loads and saves a ``TopicStore`` through a ``KeyValueStorage``."""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def _load_map(self, key: str, model: Type[M], migrate) -> Dict[str, M]:
        try:
            return decode_map(self.storage.get(key), model, migrate)
        except StoreCorruptionError as e:
            logger.warning("Discarding corrupt map %s: %s", key, e)
            return {}

    def load(self) -> TopicStore:
        topics = self._load_map(STORAGE_KEYS["topics"], Topic, migrate_topic_record)
        notes = self._load_map(STORAGE_KEYS["summaries"], NoteSummary, migrate_note_record)
        super_categories = self._load_map(
            STORAGE_KEYS["super_categories"], SuperCategory, migrate_super_category_record
        )
        logger.debug(
            "Loaded %d topics, %d notes, %d super categories",
            len(topics), len(notes), len(super_categories),
        )
        store = TopicStore(topics, notes, super_categories)
        repairs = store.reconcile()
        if repairs:
            logger.warning("Reconciled %d inconsistent records after load", repairs)
        return store

    def save(self, store: TopicStore) -> None:
        self.storage.set(STORAGE_KEYS["topics"], encode_map(store.topics))
        self.storage.set(STORAGE_KEYS["summaries"], encode_map(store.notes))
        self.storage.set(STORAGE_KEYS["super_categories"], encode_map(store.super_categories))

    def clear(self) -> None:
        for key in STORAGE_KEYS.values():
            self.storage.remove(key)
