from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from settings import get_settings

logger = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT", bound=BaseModel)


class MockDocumentCollection(Generic[DocumentT]):
    """In-memory stand-in for a hosted document collection keyed by ``id``."""

    def __init__(
        self,
        name: str,
        model: Type[DocumentT],
        persistence_path: Optional[Path] = None,
    ) -> None:
        self.name = name
        self.model = model
        self._items: Dict[str, DocumentT] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put_item(self, item: DocumentT) -> None:
        key = getattr(item, "id")
        with self._lock:
            self._items[key] = item.model_copy(deep=True)
            self._persist()
        logger.debug("Stored document", extra={"collection": self.name, "document_id": key})

    def get_item(self, key: str) -> Optional[DocumentT]:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            return item.model_copy(deep=True)

    def update_item(self, key: str, mutate: Callable[[DocumentT], DocumentT]) -> DocumentT:
        """Apply ``mutate`` to a copy of the stored document and save the result."""
        with self._lock:
            current = self._items.get(key)
            if current is None:
                raise KeyError(f"Document {key!r} not found in collection {self.name!r}.")
            updated = mutate(current.model_copy(deep=True))
            self._items[key] = updated.model_copy(deep=True)
            self._persist()
        logger.debug("Updated document", extra={"collection": self.name, "document_id": key})
        return updated

    def delete_item(self, key: str) -> None:
        with self._lock:
            if self._items.pop(key, None) is None:
                raise KeyError(f"Document {key!r} not found in collection {self.name!r}.")
            self._persist()
        logger.debug("Deleted document", extra={"collection": self.name, "document_id": key})

    def scan(self) -> list[DocumentT]:
        """Return deep copies of all stored documents."""

        with self._lock:
            return [item.model_copy(deep=True) for item in self._items.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            key: item.model_dump(mode="json") for key, item in self._items.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable collection file",
                extra={"collection": self.name, "reason": str(self.persistence_path)},
            )
            data = {}

        for key, payload in data.items():
            self._items[key] = self.model.model_validate(payload)


class MockDocumentStore:
    """Named collections persisted as one JSON file each under ``root_path``."""

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self.root_path = root_path
        self._collections: Dict[str, MockDocumentCollection] = {}
        self._lock = Lock()

    def collection(self, name: str, model: Type[DocumentT]) -> MockDocumentCollection[DocumentT]:
        with self._lock:
            existing = self._collections.get(name)
            if existing is not None:
                if existing.model is not model:
                    raise ValueError(
                        f"Collection {name!r} already holds {existing.model.__name__} documents."
                    )
                return existing
            path = self.root_path / f"{name}.json" if self.root_path else None
            created = MockDocumentCollection(name=name, model=model, persistence_path=path)
            self._collections[name] = created
            return created


@lru_cache
def build_default_store(root_path: Optional[str] = None) -> MockDocumentStore:
    settings = get_settings()
    store_root = settings.store_root_path if root_path is None else root_path
    return MockDocumentStore(root_path=Path(store_root) if store_root else None)
