"""Fetchers package for retrieving book sources from a content repository."""

from .base_fetcher import ContentSource
from .github_fetcher import GithubClient, create_content_source

__all__ = [
    'ContentSource',
    'GithubClient',
    'create_content_source'
]
