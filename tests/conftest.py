"""Shared fixtures: in-memory store and a fake GitHub content source."""

import base64
import logging
from typing import Any, Dict, List, Optional

import pytest

from booksync.errors import UpstreamError
from booksync.fetchers import ContentSource
from booksync.models import Book, utcnow
from booksync.storage import MemoryStore


def chapter_source(title: str, body: str, **attributes: Any) -> str:
    """Markdown file with a YAML front-matter block."""
    lines = ['---', f'title: {title}']
    lines.extend(f'{key}: {value}' for key, value in attributes.items())
    lines.append('---')
    return '\n'.join(lines) + '\n' + body


class FakeContentSource(ContentSource):
    """ContentSource serving files and commits from memory."""

    def __init__(self, files: Optional[Dict[str, str]] = None, commits: Optional[List[str]] = None,
                 directories: Optional[List[str]] = None):
        super().__init__(logger=logging.getLogger('booksync.tests.fake_source'))
        self.files = dict(files or {})
        self.commits = list(commits or [])
        self.directories = list(directories or [])
        self.broken: Dict[str, Exception] = {}
        self.fetched: List[str] = []

    def list_commits(self, repo: str, limit: int = 1) -> List[Dict[str, Any]]:
        self.split_repo(repo)
        return [{'sha': sha} for sha in self.commits[:limit]]

    def list_directory(self, repo: str, path: str = '') -> List[Dict[str, Any]]:
        entries = [{'path': name, 'name': name, 'type': 'file'} for name in self.files]
        entries.extend({'path': name, 'name': name, 'type': 'dir'} for name in self.directories)
        return entries

    def get_file_content(self, repo: str, path: str) -> Dict[str, Any]:
        self.fetched.append(path)
        if path in self.broken:
            raise self.broken[path]
        if path not in self.files:
            raise UpstreamError(f"Not Found: {path}", status_code=404)
        encoded = base64.b64encode(self.files[path].encode('utf-8')).decode('ascii')
        return {'type': 'file', 'path': path, 'encoding': 'base64', 'content': encoded}


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def book(store):
    """A stored book that has never been synced."""
    book = Book(name='Builder Book', slug='builder-book', github_repo='builderbook/book-1',
                price=49, created_at=utcnow())
    book.id = store.books.insert_one(book.to_document())
    return book


@pytest.fixture
def source():
    return FakeContentSource(
        files={
            'introduction.md': chapter_source(
                'Introduction', '## Why this book?\n\nBecause.\n', isFree='true',
                excerpt='Start here'
            ),
            'chapter-1.md': chapter_source('Set up Node', '## Install\n\nRun it.\n'),
            'chapter-13.md': chapter_source('Deploy', 'Ship it.\n'),
            'notes.txt': 'not a chapter',
            'chapter-abc.md': chapter_source('Broken name', 'ignored'),
            'README.md': '# readme'
        },
        commits=['sha-2', 'sha-1'],
        directories=['images']
    )
