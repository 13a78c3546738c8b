"""Abstract document store and the index layout shared by all backends."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

BOOKS = 'books'
CHAPTERS = 'chapters'
USERS = 'users'
PURCHASES = 'purchases'

COLLECTIONS = (BOOKS, CHAPTERS, USERS, PURCHASES)

# collection -> [(fields, unique)]
INDEXES: Dict[str, List[Tuple[Tuple[str, ...], bool]]] = {
    BOOKS: [
        (('slug',), True),
        (('created_at',), False)
    ],
    CHAPTERS: [
        (('book_id', 'slug'), True),
        (('book_id', 'github_file_path'), True),
        (('book_id', 'order'), False)
    ],
    USERS: [
        (('google_id',), True),
        (('email',), True),
        (('slug',), True)
    ],
    PURCHASES: [
        (('user_id', 'book_id'), True)
    ]
}

Filter = Dict[str, Any]
Sort = Sequence[Tuple[str, int]]


class Collection(ABC):
    """
    Minimal collection API used by repositories and importers.

    Filters are equality matches; a value of the form {'$in': [...]} matches
    any listed value. Updates accept '$set' and '$addToSet'.
    """

    name: str

    @abstractmethod
    def find_one(self, filter: Filter, projection: Optional[Dict[str, int]] = None) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def find(
        self,
        filter: Filter,
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[Sort] = None,
        skip: int = 0,
        limit: int = 0
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def insert_one(self, document: Dict[str, Any]) -> Any:
        """Insert a document and return its _id."""
        pass

    @abstractmethod
    def update_one(self, filter: Filter, changes: Dict[str, Any]) -> int:
        """Apply an update to the first match and return the matched count."""
        pass

    @abstractmethod
    def delete_one(self, filter: Filter) -> int:
        """Delete the first match and return the deleted count."""
        pass

    @abstractmethod
    def count_documents(self, filter: Filter) -> int:
        pass


class DocumentStore(ABC):
    """A set of named collections with the uniqueness invariants in INDEXES."""

    @abstractmethod
    def collection(self, name: str) -> Collection:
        pass

    @abstractmethod
    def ensure_indexes(self) -> None:
        pass

    def close(self) -> None:
        pass

    def __getitem__(self, name: str) -> Collection:
        return self.collection(name)

    @property
    def books(self) -> Collection:
        return self.collection(BOOKS)

    @property
    def chapters(self) -> Collection:
        return self.collection(CHAPTERS)

    @property
    def users(self) -> Collection:
        return self.collection(USERS)

    @property
    def purchases(self) -> Collection:
        return self.collection(PURCHASES)
