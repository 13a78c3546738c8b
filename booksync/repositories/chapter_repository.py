"""Chapter repository: reader-facing lookup with paywall and content sync."""

import logging
from typing import Any, Dict, Optional

from ..errors import NotFoundError
from ..importers import ChapterImporter
from ..models import Book, Chapter, ChapterFile, ReaderContext
from ..storage import DocumentStore

logger = logging.getLogger('booksync.repositories.chapter')


class ChapterRepository:
    """Chapter operations over a DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        chapter_importer: Optional[ChapterImporter] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.store = store
        self.logger = logger or logging.getLogger('booksync.repositories.chapter')
        self.chapter_importer = chapter_importer or ChapterImporter(store, logger=self.logger)

    def get_by_slug(
        self,
        book_slug: str,
        chapter_slug: str,
        reader: ReaderContext = ReaderContext()
    ) -> Dict[str, Any]:
        """
        Chapter as seen by `reader`.

        The result carries `book` and `is_purchased`. A chapter that is neither
        free nor purchased has its `html_content` removed; the excerpt stays.

        Raises:
            NotFoundError: Unknown book slug or chapter slug
        """
        book_document = self.store.books.find_one({'slug': book_slug})
        if book_document is None:
            raise NotFoundError("Book not found")
        book = Book.from_document(book_document)

        chapter_document = self.store.chapters.find_one({'book_id': book.id, 'slug': chapter_slug})
        if chapter_document is None:
            raise NotFoundError("Chapter not found")

        chapter = Chapter.from_document(chapter_document)
        is_purchased = self._is_purchased(book, reader)

        data = chapter.to_dict()
        data['book'] = book.to_dict()
        data['is_purchased'] = is_purchased

        if not chapter.is_free and not is_purchased:
            del data['html_content']

        return data

    def _is_purchased(self, book: Book, reader: ReaderContext) -> bool:
        if reader.user_id is None:
            return False
        if reader.is_admin:
            return True
        purchase = self.store.purchases.find_one(
            {'user_id': reader.user_id, 'book_id': book.id, 'pending': False},
            {'_id': 1}
        )
        return purchase is not None

    def sync_content(self, book: Book, parsed_file: ChapterFile) -> Chapter:
        return self.chapter_importer.sync_chapter(book, parsed_file)


__all__ = ['ChapterRepository']
