"""HTML sanitizer applied to rendered chapter HTML."""

import logging
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger('booksync.converters.html_cleaner')

DANGEROUS_TAGS = ('script', 'style', 'iframe', 'object', 'embed', 'frame', 'frameset', 'base')
URL_ATTRIBUTES = ('href', 'src', 'action', 'formaction', 'xlink:href')
UNSAFE_SCHEMES = ('javascript:', 'vbscript:', 'data:text/html')


class HtmlSanitizer:
    """Removes executable markup from rendered HTML without touching content."""

    def __init__(self, removed_tags: Iterable[str] = DANGEROUS_TAGS, logger: Optional[logging.Logger] = None):
        self.removed_tags = tuple(removed_tags)
        self.logger = logger or logging.getLogger('booksync.converters.html_cleaner')

    def sanitize(self, html: str) -> str:
        """
        Strip dangerous elements, event handler attributes and script URLs.

        Args:
            html: HTML fragment

        Returns:
            Sanitized HTML fragment
        """
        if not html:
            return ''

        soup = BeautifulSoup(html, 'html.parser')
        removed = 0

        for element in soup.find_all(self.removed_tags):
            element.decompose()
            removed += 1

        for element in soup.find_all(True):
            removed += self._clean_attributes(element)

        if removed:
            self.logger.debug(f"Sanitizer removed {removed} unsafe elements/attributes")

        return str(soup)

    def _clean_attributes(self, element: Tag) -> int:
        removed = 0
        for name in list(element.attrs):
            lowered = name.lower()
            if lowered.startswith('on'):
                del element[name]
                removed += 1
            elif lowered in URL_ATTRIBUTES and self._is_unsafe_url(element[name]):
                del element[name]
                removed += 1
        return removed

    @staticmethod
    def _is_unsafe_url(value) -> bool:
        if isinstance(value, list):
            value = ' '.join(value)
        compact = ''.join(str(value).split()).lower()
        return compact.startswith(UNSAFE_SCHEMES)


__all__ = ['HtmlSanitizer', 'DANGEROUS_TAGS']
