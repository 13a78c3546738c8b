"""
booksync - books authored as markdown in GitHub repositories

Each book lives in a GitHub repository whose root holds `introduction.md` and
`chapter-<N>.md` files with YAML front matter. A sync pulls the latest commit,
renders every chapter to HTML, extracts its section list and stores the result
so readers can browse chapters, with paid chapters trimmed to their excerpt.

Features:
- Commit-based change detection: an unchanged repository is never re-synced
- Concurrent per-file sync; one broken file does not stop the others
- Markdown rendering with anchored headings, safe links and syntax highlighting
- Per-scope unique slugs for books, chapters and users
- Purchases guarded by a unique (user, book) index
- In-memory or MongoDB storage

Basic Usage:
    1. Copy config.yaml.example to config.yaml
    2. Set GITHUB_TOKEN (and MONGO_URL for the mongodb backend)
    3. Run: booksync add-book --name "My Book" --price 49 --repo owner/my-book
    4. Run: booksync sync --book-slug my-book

Example Configuration (config.yaml):
    github:
        access_token: ${GITHUB_TOKEN}
    storage:
        backend: mongodb
        mongo_url: ${MONGO_URL}
"""

__version__ = "1.0.0"
__description__ = "Sync books authored as markdown in GitHub repositories"

# Import and expose key classes for public API
from .models import (
    Book,
    Chapter,
    ChapterFile,
    ChapterLink,
    Purchase,
    ReaderContext,
    Section,
    User
)
from .errors import (
    AlreadyPurchasedError,
    BookSyncError,
    FrontMatterError,
    NoChangeError,
    NotFoundError,
    PersistenceError,
    UpstreamError,
    ValidationError
)
from .config_loader import ConfigLoader, get_nested
from .logger import setup_logging, ProgressTracker, log_section, log_config
from .slugify import slugify, generate_slug
from .storage import DocumentStore, MemoryStore, MongoStore, create_store
from .importers import BookImporter, ChapterImporter
from .repositories import BookRepository, ChapterRepository, UserRepository, PaymentGateway

# Expose main entry point for CLI
from .cli import main as cli_main

__all__ = [
    # Version info
    '__version__',
    '__description__',

    # Data models
    'Book',
    'Chapter',
    'ChapterFile',
    'ChapterLink',
    'Purchase',
    'ReaderContext',
    'Section',
    'User',

    # Errors
    'AlreadyPurchasedError',
    'BookSyncError',
    'FrontMatterError',
    'NoChangeError',
    'NotFoundError',
    'PersistenceError',
    'UpstreamError',
    'ValidationError',

    # Configuration
    'ConfigLoader',
    'get_nested',

    # Logging
    'setup_logging',
    'ProgressTracker',
    'log_section',
    'log_config',

    # Slugs
    'slugify',
    'generate_slug',

    # Storage, sync and repositories
    'DocumentStore',
    'MemoryStore',
    'MongoStore',
    'create_store',
    'BookImporter',
    'ChapterImporter',
    'BookRepository',
    'ChapterRepository',
    'UserRepository',
    'PaymentGateway',

    # CLI entry point
    'cli_main',
]
