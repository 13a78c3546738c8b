"""
booksync - command line entry point

Manages books whose chapters are authored as markdown files in a GitHub
repository: add and list books, sync a book from its repository, or render a
local chapter file to HTML.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config_loader import ConfigLoader, get_nested
from .converters import RenderOptions, extract_sections, parse_front_matter, render_html
from .errors import BookSyncError, NoChangeError
from .logger import log_config, log_section, setup_logging
from .repositories import BookRepository
from .storage import DocumentStore, create_store


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='booksync',
        description="Sync books authored as markdown in GitHub repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Register a book
  booksync add-book --name "Builder Book" --price 49 --repo builderbook/book-1

  # Sync chapters from GitHub (token from config or --token)
  booksync --config config.yaml sync --book-slug builder-book

  # Preview a chapter file
  booksync render chapter-1.md --sections

  # Verbose logging
  booksync -vv sync --book-slug builder-book
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml, optional)'
    )

    parser.add_argument(
        '--storage',
        choices=['memory', 'mongodb'],
        help='Storage backend (overrides storage.backend)'
    )

    parser.add_argument(
        '--mongo-url',
        type=str,
        help='MongoDB connection string (overrides storage.mongo_url)'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    add_book = subparsers.add_parser('add-book', help='Register a new book')
    add_book.add_argument('--name', required=True, help='Book name')
    add_book.add_argument('--price', required=True, type=float, help='Price in dollars')
    add_book.add_argument('--repo', required=True, help='GitHub repository as owner/name')

    list_books = subparsers.add_parser('list-books', help='List books, newest first')
    list_books.add_argument('--offset', type=int, default=0)
    list_books.add_argument('--limit', type=int, default=10)

    sync = subparsers.add_parser('sync', help="Sync a book's chapters from GitHub")
    sync.add_argument('--book-slug', required=True, help='Slug of the book to sync')
    sync.add_argument('--token', type=str, help='GitHub access token (overrides github.access_token)')
    sync.add_argument('--workers', type=int, help='Concurrent file syncs (overrides sync.max_workers)')
    sync.add_argument(
        '--progress',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Show a progress bar'
    )

    render = subparsers.add_parser('render', help='Render a local markdown chapter to HTML')
    render.add_argument('file', help='Markdown file, front matter optional')
    render.add_argument('--sections', action='store_true', help='Print the section list instead of HTML')

    return parser


def run_add_book(store: DocumentStore, config: dict, args: argparse.Namespace) -> int:
    book = BookRepository(store, config).add(args.name, args.price, args.repo)
    print(f"{book.slug}\t{book.id}")
    return 0


def run_list_books(store: DocumentStore, config: dict, args: argparse.Namespace) -> int:
    for book in BookRepository(store, config).list(offset=args.offset, limit=args.limit):
        print(f"{book.slug}\t{book.name}\t{book.github_repo}\t{book.github_last_commit_sha or '-'}")
    return 0


def run_sync(store: DocumentStore, config: dict, args: argparse.Namespace, logger: logging.Logger) -> int:
    repository = BookRepository(store, config, logger=logger)
    book = repository.get_by_slug(args.book_slug)

    log_section(f"Syncing {book.slug}")
    try:
        book = repository.sync_content(book.id, get_nested(config, 'github.access_token'))
    except NoChangeError as e:
        print(str(e))
        return 0

    print(book.github_last_commit_sha)
    return 0


def run_render(config: dict, args: argparse.Namespace) -> int:
    with open(args.file, 'r', encoding='utf-8') as f:
        document = parse_front_matter(f.read())

    options = RenderOptions.from_config(config)
    if args.sections:
        for section in extract_sections(document.body, options):
            print(f"{section.escaped_text}\t{section.text}")
    else:
        print(render_html(document.body, options))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    store: Optional[DocumentStore] = None
    try:
        setup_logging(verbosity=args.verbose)
        logger = logging.getLogger('booksync.cli')
        logger.info(f"booksync {__version__}")

        logger.info(f"Loading configuration from {args.config}")
        config = ConfigLoader.load(args.config, required=False)
        config = ConfigLoader.merge_with_args(config, args)
        ConfigLoader.validate(config)

        # Reconfigure logging with config file settings
        setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level') if not args.verbose else None
        )
        log_config(config)

        if args.command == 'render':
            return run_render(config, args)

        store = create_store(config)
        if args.command == 'add-book':
            return run_add_book(store, config, args)
        if args.command == 'list-books':
            return run_list_books(store, config, args)
        return run_sync(store, config, args, logger)

    except BookSyncError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    finally:
        if store is not None:
            store.close()


if __name__ == "__main__":
    sys.exit(main())
