"""Importers package: syncs repository content into books and chapters.

Package Structure:
- chapter_importer: creates or overwrites one Chapter from one source file
- book_importer: commit check, directory listing and concurrent chapter sync
"""

from .book_importer import BookImporter
from .chapter_importer import (
    CHAPTER_FILE_RE,
    INTRODUCTION_FILE,
    ChapterImporter,
    chapter_order,
    is_chapter_file,
    parse_flag
)

__all__ = [
    'BookImporter',
    'ChapterImporter',
    'INTRODUCTION_FILE',
    'CHAPTER_FILE_RE',
    'chapter_order',
    'is_chapter_file',
    'parse_flag'
]
