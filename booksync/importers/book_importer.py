"""
Book importer: syncs a book's chapters from its GitHub repository.

A sync is skipped (NoChangeError) when the repository HEAD commit equals the
commit recorded by the previous sync. Otherwise every recognized file in the
repository root is fetched and synced concurrently; one file failing does not
stop the others, and the new commit sha is stored once all files have been
attempted.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from ..config_loader import get_nested
from ..converters import parse_front_matter
from ..errors import NoChangeError, NotFoundError
from ..fetchers import ContentSource
from ..logger import ProgressTracker
from ..models import Book, Chapter, ChapterFile
from ..storage import DocumentStore
from .chapter_importer import ChapterImporter, is_chapter_file

logger = logging.getLogger('booksync.importers.book')

DEFAULT_MAX_WORKERS = 5


class BookImporter:
    """Orchestrates commit check, directory listing and per-file chapter sync."""

    def __init__(
        self,
        store: DocumentStore,
        source: ContentSource,
        chapter_importer: Optional[ChapterImporter] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        show_progress: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize book importer.

        Args:
            store: Document store holding books and chapters
            source: Content source bound to the admin's credential
            chapter_importer: Importer for single files (default built on store)
            max_workers: Concurrent file syncs
            show_progress: Show a tqdm progress bar
            logger: Optional logger instance
        """
        self.store = store
        self.source = source
        self.logger = logger or logging.getLogger('booksync.importers.book')
        self.chapter_importer = chapter_importer or ChapterImporter(store, logger=self.logger)
        self.max_workers = max_workers
        self.show_progress = show_progress
        self.stats = self._reset_stats()

    @classmethod
    def from_config(
        cls,
        store: DocumentStore,
        source: ContentSource,
        config: Dict[str, Any],
        logger: Optional[logging.Logger] = None
    ) -> 'BookImporter':
        return cls(
            store,
            source,
            chapter_importer=ChapterImporter.from_config(store, config, logger=logger),
            max_workers=get_nested(config, 'sync.max_workers', DEFAULT_MAX_WORKERS),
            show_progress=get_nested(config, 'sync.show_progress', False),
            logger=logger
        )

    def _reset_stats(self) -> Dict[str, Any]:
        return {
            'files': 0,
            'synced': 0,
            'failed': 0,
            'commit_sha': None,
            'errors': []
        }

    def sync_book(self, book_id: Any) -> Book:
        """
        Sync every chapter of a book from its repository.

        Args:
            book_id: Book _id

        Returns:
            The Book with its updated github_last_commit_sha

        Raises:
            NotFoundError: Book does not exist
            NoChangeError: No commits, or HEAD equals the last synced commit
            UpstreamError: Commit or directory listing failed
        """
        self.stats = self._reset_stats()

        document = self.store.books.find_one({'_id': book_id})
        if document is None:
            raise NotFoundError("Book not found")
        book = Book.from_document(document)

        commits = self.source.list_commits(book.github_repo, limit=1)
        if not commits or not commits[0].get('sha'):
            raise NoChangeError()

        last_commit_sha = commits[0]['sha']
        if last_commit_sha == book.github_last_commit_sha:
            raise NoChangeError()

        self.logger.info(
            f"Syncing '{book.slug}' from {book.github_repo} "
            f"({book.github_last_commit_sha or 'never synced'} -> {last_commit_sha})"
        )

        entries = self.source.list_directory(book.github_repo, '')
        paths = self.select_chapter_files(entries)
        self.stats['files'] = len(paths)
        self.stats['commit_sha'] = last_commit_sha

        self._sync_files(book, paths)

        self.store.books.update_one({'_id': book.id}, {'$set': {'github_last_commit_sha': last_commit_sha}})
        book.github_last_commit_sha = last_commit_sha

        self.logger.info(
            f"Book '{book.slug}' synced at {last_commit_sha}: "
            f"{self.stats['synced']}/{self.stats['files']} files, {self.stats['failed']} failed"
        )
        return book

    @staticmethod
    def select_chapter_files(entries: List[Dict[str, Any]]) -> List[str]:
        """Paths of regular files named introduction.md or chapter-<N>.md."""
        return [
            entry['path'] for entry in entries
            if entry.get('type') == 'file' and is_chapter_file(entry.get('path', ''))
        ]

    def sync_file(self, book: Book, path: str) -> Chapter:
        """Fetch, decode and parse one file, then sync it as a chapter."""
        payload = self.source.get_file_content(book.github_repo, path)
        text = self.source.decode_content(payload)
        document = parse_front_matter(text)
        parsed_file = ChapterFile(attributes=document.attributes, body=document.body, path=path)
        return self.chapter_importer.sync_chapter(book, parsed_file)

    def _sync_files(self, book: Book, paths: List[str]) -> None:
        if not paths:
            self.logger.warning(f"No chapter files found in {book.github_repo}")
            return

        with ProgressTracker(len(paths), "files", logger=self.logger) as tracker:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_path = {
                    executor.submit(self.sync_file, book, path): path
                    for path in paths
                }

                futures = as_completed(future_to_path)
                if self.show_progress:
                    futures = tqdm(futures, desc=f"Syncing {book.slug}", total=len(paths))

                for future in futures:
                    path = future_to_path[future]
                    try:
                        future.result()
                    except Exception as e:
                        # One bad file must not stop the others
                        self.stats['failed'] += 1
                        self.stats['errors'].append({'path': path, 'error': str(e)})
                        self.logger.error(f"Content sync has error: {path}: {e}")
                        tracker.increment(success=False)
                    else:
                        self.stats['synced'] += 1
                        self.logger.info(f"Content is synced: {path}")
                        tracker.increment(success=True)


__all__ = ['BookImporter', 'DEFAULT_MAX_WORKERS']
