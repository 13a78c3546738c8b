"""Repositories: book, chapter and user operations over a document store."""

from .book_repository import BookRepository
from .chapter_repository import ChapterRepository
from .payments import PaymentGateway
from .user_repository import UserRepository

__all__ = ['BookRepository', 'ChapterRepository', 'UserRepository', 'PaymentGateway']
