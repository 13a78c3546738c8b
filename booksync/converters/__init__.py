"""Converters package: front matter parsing, markdown rendering and section extraction."""

import logging

from .front_matter import FrontMatterDocument, parse_front_matter
from .html_cleaner import HtmlSanitizer
from .markdown_renderer import (
    DEFAULT_RENDER_OPTIONS,
    RenderOptions,
    escape_heading,
    render_chapter,
    render_html
)
from .section_extractor import extract_sections

logger = logging.getLogger('booksync.converters')

__all__ = [
    'FrontMatterDocument',
    'parse_front_matter',
    'HtmlSanitizer',
    'RenderOptions',
    'DEFAULT_RENDER_OPTIONS',
    'escape_heading',
    'render_html',
    'render_chapter',
    'extract_sections'
]
