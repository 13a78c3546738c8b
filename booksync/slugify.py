"""URL slug generation with per-scope collision resolution."""

import logging
import re
from typing import Any, Dict, Optional

from .errors import PersistenceError, ValidationError

logger = logging.getLogger('booksync.slugify')

DEFAULT_MAX_ATTEMPTS = 1000

# ASCII non-word characters up to \xC0; accented letters above it are kept
_NON_WORD_RE = re.compile(r'(?!\w)[\x00-\xc0]', re.ASCII)
_WHITESPACE_RE = re.compile(r'\s+')
_DASHES_RE = re.compile(r'-{2,}')


def slugify(text: Any) -> str:
    """
    Normalize text to a lowercase, hyphenated slug.

    >>> slugify('John Jonhson Jr.')
    'john-jonhson-jr'
    >>> slugify('Tips & Tricks')
    'tips-and-tricks'
    """
    slug = str(text).lower().strip()
    slug = _WHITESPACE_RE.sub('-', slug)
    slug = slug.replace('&', '-and-')
    slug = _NON_WORD_RE.sub('-', slug)
    slug = _DASHES_RE.sub('-', slug)
    return slug.strip('-')


def generate_slug(
    collection,
    name: str,
    scope_filter: Optional[Dict[str, Any]] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
) -> str:
    """
    Return a slug for `name` that is free within `scope_filter`.

    Tries the bare slug first, then `slug-1`, `slug-2`, ... Each candidate is
    checked against the same scope, so chapters of different books may share
    a slug while books and users are unique globally (empty scope).

    Args:
        collection: Store collection exposing find_one(filter, projection)
        name: Human readable name (title, display name...)
        scope_filter: Extra equality filter restricting the uniqueness scope
        max_attempts: Upper bound on numbered suffixes to try

    Raises:
        ValidationError: If the name normalizes to an empty slug
        PersistenceError: If no free slug is found within max_attempts
    """
    scope = dict(scope_filter or {})
    base_slug = slugify(name)
    if not base_slug:
        raise ValidationError(f"Cannot generate slug from name: {name!r}")

    if not _slug_taken(collection, base_slug, scope):
        return base_slug

    for count in range(1, max_attempts + 1):
        candidate = f"{base_slug}-{count}"
        if not _slug_taken(collection, candidate, scope):
            logger.debug(f"Slug '{base_slug}' taken, using '{candidate}'")
            return candidate

    raise PersistenceError(
        f"Error with slug generation: no free slug for '{base_slug}' after {max_attempts} attempts"
    )


def _slug_taken(collection, slug: str, scope: Dict[str, Any]) -> bool:
    query = dict(scope)
    query['slug'] = slug
    return collection.find_one(query, {'_id': 1}) is not None


__all__ = ['slugify', 'generate_slug', 'DEFAULT_MAX_ATTEMPTS']
