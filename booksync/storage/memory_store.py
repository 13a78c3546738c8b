"""Thread-safe in-process document store used for tests and dry runs."""

import copy
import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from ..errors import PersistenceError
from .base_store import COLLECTIONS, INDEXES, Collection, DocumentStore, Filter, Sort

logger = logging.getLogger('booksync.storage.memory')


def _matches(document: Dict[str, Any], filter: Filter) -> bool:
    for key, expected in filter.items():
        value = document.get(key)
        if isinstance(expected, dict) and '$in' in expected:
            if value not in expected['$in']:
                return False
        elif value != expected:
            return False
    return True


def _project(document: Dict[str, Any], projection: Optional[Dict[str, int]]) -> Dict[str, Any]:
    if not projection:
        return copy.deepcopy(document)
    included = {key for key, flag in projection.items() if flag}
    projected = {key: copy.deepcopy(value) for key, value in document.items() if key in included}
    projected['_id'] = document['_id']
    return projected


class MemoryCollection(Collection):
    """List-backed collection enforcing the unique indexes of its name."""

    def __init__(self, name: str, lock: threading.RLock):
        self.name = name
        self._lock = lock
        self._documents: List[Dict[str, Any]] = []
        self._unique_keys: List[Tuple[str, ...]] = [
            fields for fields, unique in INDEXES.get(name, []) if unique
        ]

    def find_one(self, filter: Filter, projection: Optional[Dict[str, int]] = None) -> Optional[Dict[str, Any]]:
        with self._lock:
            for document in self._documents:
                if _matches(document, filter):
                    return _project(document, projection)
        return None

    def find(
        self,
        filter: Filter,
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict[str, Any]]:
        with self._lock:
            results = [doc for doc in self._documents if _matches(doc, filter)]

        # Stable sorts applied last key first give a multi-key sort
        for key, direction in reversed(list(sort or [])):
            results.sort(key=lambda doc: (doc.get(key) is not None, doc.get(key)), reverse=direction < 0)

        if skip:
            results = results[skip:]
        if limit:
            results = results[:limit]
        return [_project(doc, projection) for doc in results]

    def insert_one(self, document: Dict[str, Any]) -> Any:
        new_document = copy.deepcopy(document)
        new_document.setdefault('_id', ObjectId())

        with self._lock:
            self._check_unique(new_document)
            self._documents.append(new_document)

        return new_document['_id']

    def update_one(self, filter: Filter, changes: Dict[str, Any]) -> int:
        unsupported = set(changes) - {'$set', '$addToSet'}
        if unsupported:
            raise PersistenceError(f"Unsupported update operators: {sorted(unsupported)}")

        with self._lock:
            for index, document in enumerate(self._documents):
                if not _matches(document, filter):
                    continue

                updated = copy.deepcopy(document)
                updated.update(copy.deepcopy(changes.get('$set', {})))
                for key, value in changes.get('$addToSet', {}).items():
                    values = list(updated.get(key) or [])
                    if value not in values:
                        values.append(copy.deepcopy(value))
                    updated[key] = values

                self._check_unique(updated, ignore_id=document['_id'])
                self._documents[index] = updated
                return 1

        return 0

    def delete_one(self, filter: Filter) -> int:
        with self._lock:
            for index, document in enumerate(self._documents):
                if _matches(document, filter):
                    del self._documents[index]
                    return 1
        return 0

    def count_documents(self, filter: Filter) -> int:
        with self._lock:
            return sum(1 for doc in self._documents if _matches(doc, filter))

    def _check_unique(self, candidate: Dict[str, Any], ignore_id: Any = None) -> None:
        for fields in self._unique_keys:
            key = tuple(candidate.get(field) for field in fields)
            for document in self._documents:
                if document['_id'] == ignore_id:
                    continue
                if tuple(document.get(field) for field in fields) == key:
                    raise PersistenceError(
                        f"Duplicate key in {self.name} for {dict(zip(fields, key))}"
                    )


class MemoryStore(DocumentStore):
    """DocumentStore kept in process memory."""

    def __init__(self):
        self._lock = threading.RLock()
        self._collections: Dict[str, MemoryCollection] = {
            name: MemoryCollection(name, self._lock) for name in COLLECTIONS
        }
        logger.debug("Initialized in-memory document store")

    def collection(self, name: str) -> MemoryCollection:
        with self._lock:
            if name not in self._collections:
                self._collections[name] = MemoryCollection(name, self._lock)
            return self._collections[name]

    def ensure_indexes(self) -> None:
        # Unique indexes are enforced on every write
        pass
