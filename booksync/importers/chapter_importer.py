"""
Chapter importer: creates or overwrites one Chapter from one source file.

Recognized source files are `introduction.md` (order 1) and
`chapter-<N>.md` (order N + 1).
"""

import logging
import re
from typing import Any, Dict, Optional

from ..config_loader import get_nested
from ..converters import DEFAULT_RENDER_OPTIONS, RenderOptions, extract_sections, render_chapter
from ..errors import NotFoundError, ValidationError
from ..models import Book, Chapter, ChapterFile, utcnow
from ..slugify import DEFAULT_MAX_ATTEMPTS, generate_slug
from ..storage import DocumentStore

logger = logging.getLogger('booksync.importers.chapter')

INTRODUCTION_FILE = 'introduction.md'
# Chapter number is a positive integer; leading zeros are tolerated
CHAPTER_FILE_RE = re.compile(r'chapter-(0*[1-9][0-9]*)\.md')

TRUE_VALUES = ('true', '1', 'yes')
FALSE_VALUES = ('false', '0', 'no')


def is_chapter_file(path: str) -> bool:
    """True for `introduction.md` and `chapter-<positive integer>.md`."""
    return path == INTRODUCTION_FILE or CHAPTER_FILE_RE.fullmatch(path or '') is not None


def chapter_order(path: str) -> int:
    """
    Reading order derived from the file name.

    Raises:
        ValidationError: For any other file name
    """
    if path == INTRODUCTION_FILE:
        return 1

    match = CHAPTER_FILE_RE.fullmatch(path or '')
    if not match:
        raise ValidationError(f"Not a chapter file: {path!r}")
    return int(match.group(1)) + 1


def parse_flag(value: Any, name: str, default: bool = False) -> bool:
    """
    Read a front-matter boolean.

    Accepts real booleans, 0/1, and the strings true/1/yes and false/0/no
    (case-insensitive). A missing value gives `default`.

    Raises:
        ValidationError: For any other value
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
    raise ValidationError(f"Front matter '{name}' must be a boolean, got {value!r}")


class ChapterImporter:
    """Syncs a parsed source file into the chapters collection."""

    def __init__(
        self,
        store: DocumentStore,
        render_options: RenderOptions = DEFAULT_RENDER_OPTIONS,
        slug_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        logger: Optional[logging.Logger] = None
    ):
        self.store = store
        self.render_options = render_options
        self.slug_max_attempts = slug_max_attempts
        self.logger = logger or logging.getLogger('booksync.importers.chapter')

    @classmethod
    def from_config(cls, store: DocumentStore, config: Dict[str, Any], logger: Optional[logging.Logger] = None) -> 'ChapterImporter':
        return cls(
            store,
            render_options=RenderOptions.from_config(config),
            slug_max_attempts=get_nested(config, 'slug.max_attempts', DEFAULT_MAX_ATTEMPTS),
            logger=logger
        )

    def sync_chapter(self, book: Book, parsed_file: ChapterFile) -> Chapter:
        """
        Create or fully overwrite the chapter produced by `parsed_file`.

        Every derived field is computed before the single write, so a stored
        chapter always matches its content and excerpt.

        Args:
            book: Owning book (needs `id`)
            parsed_file: Front-matter attributes, markdown body and source path

        Returns:
            The stored Chapter

        Raises:
            ValidationError: Missing title or unrecognized file path
            PersistenceError: Store write failed (e.g. slug/path unique index)
        """
        attributes = parsed_file.attributes or {}
        path = parsed_file.path

        title = attributes.get('title')
        if title is None or not str(title).strip():
            raise ValidationError(f"Front matter of {path} has no title")
        title = str(title).strip()

        order = chapter_order(path)
        content = parsed_file.body or ''
        excerpt = str(attributes.get('excerpt') or '')
        html_content, html_excerpt = render_chapter(content, excerpt, self.render_options)

        fields = {
            'content': content,
            'html_content': html_content,
            'sections': [section.to_dict() for section in extract_sections(content, self.render_options)],
            'excerpt': excerpt,
            'html_excerpt': html_excerpt,
            'is_free': parse_flag(attributes.get('isFree'), 'isFree'),
            'order': order,
            'seo_title': attributes.get('seoTitle') or '',
            'seo_description': attributes.get('seoDescription') or ''
        }

        chapters = self.store.chapters
        existing = chapters.find_one({'book_id': book.id, 'github_file_path': path})

        if existing is None:
            slug = generate_slug(chapters, title, {'book_id': book.id}, self.slug_max_attempts)
            document = dict(fields, book_id=book.id, github_file_path=path, title=title,
                            slug=slug, created_at=utcnow())
            chapter_id = chapters.insert_one(document)
            self.logger.debug(f"Created chapter '{slug}' (order {order}) from {path}")
        else:
            chapter_id = existing['_id']
            if title != existing.get('title'):
                fields['title'] = title
                fields['slug'] = generate_slug(chapters, title, {'book_id': book.id}, self.slug_max_attempts)
                self.logger.info(f"Chapter title changed in {path}: '{existing.get('title')}' -> '{title}'")
            chapters.update_one({'_id': chapter_id}, {'$set': fields})
            self.logger.debug(f"Updated chapter from {path}")

        stored = chapters.find_one({'_id': chapter_id})
        if stored is None:
            raise NotFoundError(f"Chapter from {path} disappeared after write")
        return Chapter.from_document(stored)


__all__ = ['ChapterImporter', 'INTRODUCTION_FILE', 'CHAPTER_FILE_RE', 'is_chapter_file', 'chapter_order', 'parse_flag']
