"""
Book repository: listing, admin edits, content sync and purchases.
"""

import logging
from typing import Any, Dict, List, Optional

from ..config_loader import DEFAULT_CONFIG, get_nested
from ..errors import AlreadyPurchasedError, NotFoundError, PersistenceError, ValidationError
from ..fetchers import ContentSource, create_content_source
from ..importers import BookImporter
from ..models import Book, ChapterLink, Purchase, User, utcnow
from ..slugify import DEFAULT_MAX_ATTEMPTS, generate_slug
from ..storage import DocumentStore
from .payments import PaymentGateway

logger = logging.getLogger('booksync.repositories.book')


class BookRepository:
    """Book operations over a DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.store = store
        self.config = config or DEFAULT_CONFIG
        self.logger = logger or logging.getLogger('booksync.repositories.book')
        self.slug_max_attempts = get_nested(self.config, 'slug.max_attempts', DEFAULT_MAX_ATTEMPTS)

    def list(self, offset: int = 0, limit: int = 10) -> List[Book]:
        """Books newest first."""
        documents = self.store.books.find(
            {},
            sort=[('created_at', -1)],
            skip=offset,
            limit=limit
        )
        return [Book.from_document(document) for document in documents]

    def get_by_slug(self, slug: str) -> Book:
        """
        Book with its table of contents.

        Raises:
            NotFoundError: No book with this slug
        """
        document = self.store.books.find_one({'slug': slug})
        if document is None:
            raise NotFoundError("Book not found")

        book = Book.from_document(document)
        chapters = self.store.chapters.find(
            {'book_id': book.id},
            projection={'title': 1, 'slug': 1, 'order': 1},
            sort=[('order', 1)]
        )
        book.chapters = [
            ChapterLink(title=chapter['title'], slug=chapter['slug'], order=chapter['order'])
            for chapter in chapters
        ]
        return book

    def get(self, book_id: Any) -> Book:
        document = self.store.books.find_one({'_id': book_id})
        if document is None:
            raise NotFoundError("Book not found")
        return Book.from_document(document)

    def add(self, name: str, price: float, github_repo: str) -> Book:
        """Create a book with a globally unique slug derived from its name."""
        if not name or not str(name).strip():
            raise ValidationError("Book name is required")
        ContentSource.split_repo(github_repo)

        slug = generate_slug(self.store.books, name, max_attempts=self.slug_max_attempts)
        book = Book(name=name, slug=slug, github_repo=github_repo, price=price, created_at=utcnow())
        book.id = self.store.books.insert_one(book.to_document())

        self.logger.info(f"Added book '{slug}' ({github_repo})")
        return book

    def edit(self, book_id: Any, name: str, price: float, github_repo: str) -> Book:
        """
        Update name, price and repository; the slug follows the name.

        Raises:
            NotFoundError: No book with this id
        """
        book = self.get(book_id)
        ContentSource.split_repo(github_repo)

        changes: Dict[str, Any] = {'price': price, 'github_repo': github_repo}
        if name != book.name:
            changes['name'] = name
            changes['slug'] = generate_slug(self.store.books, name, max_attempts=self.slug_max_attempts)

        self.store.books.update_one({'_id': book_id}, {'$set': changes})
        self.logger.info(f"Edited book '{changes.get('slug', book.slug)}'")
        return self.get(book_id)

    def sync_content(
        self,
        book_id: Any,
        github_access_token: Optional[str] = None,
        content_source: Optional[ContentSource] = None
    ) -> Book:
        """
        Sync chapters from the book's repository.

        Args:
            book_id: Book _id
            github_access_token: Admin credential used when no source is given
            content_source: Pre-built content source

        Raises:
            NotFoundError, NoChangeError, UpstreamError
        """
        if content_source is None:
            content_source = create_content_source(self.config, github_access_token)

        importer = BookImporter.from_config(self.store, content_source, self.config, logger=self.logger)
        return importer.sync_book(book_id)

    def buy(self, book_id: Any, user: Optional[User], stripe_token: str, gateway: PaymentGateway) -> Purchase:
        """
        Charge the user for a book and record the purchase.

        Raises:
            ValidationError: No user
            NotFoundError: No book with this id
            AlreadyPurchasedError: User already owns the book
        """
        if user is None or user.id is None:
            raise ValidationError("User required")

        book = self.get(book_id)

        purchases = self.store.purchases
        if purchases.find_one({'user_id': user.id, 'book_id': book.id}, {'_id': 1}) is not None:
            raise AlreadyPurchasedError()

        amount = int(round(book.price * 100))

        # The unique (user_id, book_id) index admits one reservation; only its holder charges
        purchase = Purchase(user_id=user.id, book_id=book.id, amount=amount, pending=True, created_at=utcnow())
        try:
            purchase.id = purchases.insert_one(purchase.to_document())
        except PersistenceError:
            if purchases.find_one({'user_id': user.id, 'book_id': book.id}, {'_id': 1}) is not None:
                raise AlreadyPurchasedError()
            raise

        try:
            charge = gateway.charge(amount=amount, token=stripe_token, buyer_email=user.email)
        except Exception:
            purchases.delete_one({'_id': purchase.id})
            raise

        purchase.charge = charge
        purchase.pending = False
        purchases.update_one({'_id': purchase.id}, {'$set': {'charge': charge, 'pending': False}})
        self.store.users.update_one({'_id': user.id}, {'$addToSet': {'purchased_book_ids': book.id}})

        self.logger.info(f"User {user.id} bought '{book.slug}' for {amount} cents")
        return purchase

    def get_purchased_books(self, purchased_book_ids: List[Any]) -> List[Book]:
        """Books with the given ids, newest first."""
        if not purchased_book_ids:
            return []
        documents = self.store.books.find(
            {'_id': {'$in': list(purchased_book_ids)}},
            sort=[('created_at', -1)]
        )
        return [Book.from_document(document) for document in documents]


__all__ = ['BookRepository']
