"""Storage package: document store interface, in-memory and MongoDB backends."""

from typing import Any, Dict

from .base_store import (
    BOOKS,
    CHAPTERS,
    COLLECTIONS,
    INDEXES,
    PURCHASES,
    USERS,
    Collection,
    DocumentStore
)
from .memory_store import MemoryStore
from .mongo_store import MongoStore


def create_store(config: Dict[str, Any]) -> DocumentStore:
    """Create the configured document store and ensure its indexes.

    Args:
        config: Configuration dictionary

    Raises:
        ValueError: If storage.backend is unknown
    """
    backend = config.get('storage', {}).get('backend', 'memory')

    if backend == 'memory':
        store = MemoryStore()
    elif backend == 'mongodb':
        store = MongoStore.from_config(config)
    else:
        raise ValueError(f"Invalid storage backend: {backend}. Must be 'memory' or 'mongodb'.")

    store.ensure_indexes()
    return store


__all__ = [
    'BOOKS',
    'CHAPTERS',
    'USERS',
    'PURCHASES',
    'COLLECTIONS',
    'INDEXES',
    'Collection',
    'DocumentStore',
    'MemoryStore',
    'MongoStore',
    'create_store'
]
