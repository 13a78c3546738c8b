"""Exception hierarchy shared by the sync pipeline, storage and repositories."""

from typing import Optional


class BookSyncError(Exception):
    """Base exception for booksync errors."""
    pass


class NotFoundError(BookSyncError):
    """A book, chapter or user lookup did not match any document."""
    pass


class NoChangeError(BookSyncError):
    """Raised when a sync has nothing to do (no commits or same commit sha)."""

    def __init__(self, message: str = "No change in content!"):
        super().__init__(message)


class ValidationError(BookSyncError):
    """Input failed validation (front matter, file path, slug source...)."""
    pass


class FrontMatterError(ValidationError):
    """Front-matter block could not be parsed."""
    pass


class UpstreamError(BookSyncError):
    """The content source (GitHub) failed: auth, rate limit, network."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is not None:
            return f"[{self.status_code}] {message}"
        return message


class PersistenceError(BookSyncError):
    """Document store write failed, e.g. unique index violation."""
    pass


class AlreadyPurchasedError(BookSyncError):
    """User already owns the book."""

    def __init__(self, message: str = "Already bought this book"):
        super().__init__(message)


__all__ = [
    'BookSyncError',
    'NotFoundError',
    'NoChangeError',
    'ValidationError',
    'FrontMatterError',
    'UpstreamError',
    'PersistenceError',
    'AlreadyPurchasedError'
]
