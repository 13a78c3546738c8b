"""MongoDB-backed document store."""

import logging
from typing import Any, Dict, List, Optional

import pymongo
from pymongo.collection import Collection as PyMongoCollection
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..errors import PersistenceError
from .base_store import INDEXES, Collection, DocumentStore, Filter, Sort

logger = logging.getLogger('booksync.storage.mongo')


class MongoCollection(Collection):
    """Wraps a pymongo collection and maps driver errors to PersistenceError."""

    def __init__(self, collection: PyMongoCollection):
        self.name = collection.name
        self._collection = collection

    def find_one(self, filter: Filter, projection: Optional[Dict[str, int]] = None) -> Optional[Dict[str, Any]]:
        try:
            return self._collection.find_one(filter, projection)
        except PyMongoError as e:
            raise PersistenceError(f"find_one on {self.name} failed: {e}") from e

    def find(
        self,
        filter: Filter,
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self._collection.find(filter, projection)
            if sort:
                cursor = cursor.sort(list(sort))
            return list(cursor.skip(skip).limit(limit))
        except PyMongoError as e:
            raise PersistenceError(f"find on {self.name} failed: {e}") from e

    def insert_one(self, document: Dict[str, Any]) -> Any:
        try:
            return self._collection.insert_one(dict(document)).inserted_id
        except DuplicateKeyError as e:
            raise PersistenceError(f"Duplicate key in {self.name}: {e.details}") from e
        except PyMongoError as e:
            raise PersistenceError(f"insert_one on {self.name} failed: {e}") from e

    def update_one(self, filter: Filter, changes: Dict[str, Any]) -> int:
        try:
            return self._collection.update_one(filter, changes).matched_count
        except DuplicateKeyError as e:
            raise PersistenceError(f"Duplicate key in {self.name}: {e.details}") from e
        except PyMongoError as e:
            raise PersistenceError(f"update_one on {self.name} failed: {e}") from e

    def delete_one(self, filter: Filter) -> int:
        try:
            return self._collection.delete_one(filter).deleted_count
        except PyMongoError as e:
            raise PersistenceError(f"delete_one on {self.name} failed: {e}") from e

    def count_documents(self, filter: Filter) -> int:
        try:
            return self._collection.count_documents(filter)
        except PyMongoError as e:
            raise PersistenceError(f"count_documents on {self.name} failed: {e}") from e


class MongoStore(DocumentStore):
    """DocumentStore backed by a MongoDB database."""

    def __init__(self, mongo_url: str, database: str = 'booksync', server_selection_timeout_ms: int = 10000):
        """
        Connect to MongoDB.

        Args:
            mongo_url: Connection string
            database: Database name
            server_selection_timeout_ms: How long to wait for a reachable server
        """
        try:
            self.client = pymongo.MongoClient(mongo_url, serverSelectionTimeoutMS=server_selection_timeout_ms)
            self.client.admin.command('ping')
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise PersistenceError(f"Failed to connect to MongoDB: {e}") from e

        self.db = self.client[database]
        self._collections: Dict[str, MongoCollection] = {}
        logger.info(f"Connected to MongoDB database '{database}'")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MongoStore':
        storage = config.get('storage', {}) or {}
        return cls(
            mongo_url=storage.get('mongo_url', 'mongodb://localhost:27017'),
            database=storage.get('database', 'booksync')
        )

    def collection(self, name: str) -> MongoCollection:
        if name not in self._collections:
            self._collections[name] = MongoCollection(self.db[name])
        return self._collections[name]

    def ensure_indexes(self) -> None:
        try:
            for name, indexes in INDEXES.items():
                for fields, unique in indexes:
                    self.db[name].create_index(
                        [(field, pymongo.ASCENDING) for field in fields],
                        unique=unique
                    )
        except PyMongoError as e:
            raise PersistenceError(f"Index creation failed: {e}") from e
        logger.debug("MongoDB indexes ensured")

    def close(self) -> None:
        self.client.close()
