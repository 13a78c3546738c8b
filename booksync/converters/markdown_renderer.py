"""
Markdown to HTML rendering for chapter content.

Chapter sources arrive HTML-entity encoded from the content repository. They
are decoded, converted with python-markdown and post-processed by a tree
processor that rewrites links, images and level 2/4 headings:

- links open in a new tab (`target="_blank" rel="noopener noreferrer"`)
- images get a fixed width, border and alt text
- h2 headings get an anchor, a link icon and a `section-anchor` marker span
  used by the reader page to highlight the current section
- h4 headings get the anchor and icon only

Fenced code blocks are highlighted with Pygments through codehilite.
"""

import html
import logging
import re
import xml.etree.ElementTree as etree
from dataclasses import dataclass
from typing import List, Tuple

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from markdown.util import ETX, STX

from .html_cleaner import HtmlSanitizer

logger = logging.getLogger('booksync.converters.markdown_renderer')

_HEADING_NON_WORD_RE = re.compile(r'[^\w]+', re.ASCII)
_ESCAPED_CHAR_RE = re.compile(f'{STX}([0-9]+){ETX}')
_PLACEHOLDER_RE = re.compile(f'{STX}[^{ETX}]*{ETX}')

ICON_STYLE = 'vertical-align: middle; opacity: 0.5; cursor: pointer;'


@dataclass(frozen=True)
class RenderOptions:
    """Immutable renderer configuration, passed into every render call."""

    breaks: bool = True
    highlight: bool = True
    sanitize: bool = True
    image_alt: str = 'Builder Book'
    image_border: str = '1px solid #ddd'
    heading_style: str = 'color: #222; font-weight: 400;'
    subheading_style: str = 'color: #222;'
    anchor_style: str = 'color: #222;'
    code_css_class: str = 'codehilite'

    @classmethod
    def from_config(cls, config: dict) -> 'RenderOptions':
        rendering = (config or {}).get('rendering', {}) or {}
        defaults = cls()
        return cls(
            breaks=rendering.get('breaks', defaults.breaks),
            highlight=rendering.get('highlight', defaults.highlight),
            sanitize=rendering.get('sanitize', defaults.sanitize),
            image_alt=rendering.get('image_alt', defaults.image_alt),
            image_border=rendering.get('image_border', defaults.image_border)
        )


DEFAULT_RENDER_OPTIONS = RenderOptions()


def decode_source(source: str) -> str:
    """Decode HTML entities in chapter source before markdown parsing."""
    return html.unescape(source or '')


def escape_heading(text: str) -> str:
    """
    Anchor name for a heading: trimmed, lowercased, non-word runs -> '-'.

    >>> escape_heading('Why this book?')
    'why-this-book-'
    """
    return _HEADING_NON_WORD_RE.sub('-', text.strip().lower())


def heading_text(element: etree.Element) -> str:
    """Visible text of a heading element after inline processing."""
    text = ''.join(element.itertext())
    text = _ESCAPED_CHAR_RE.sub(lambda m: chr(int(m.group(1))), text)
    return _PLACEHOLDER_RE.sub('', text)


class ChapterHtmlTreeprocessor(Treeprocessor):
    """Rewrites links, images and headings in the parsed element tree."""

    def __init__(self, md: markdown.Markdown, options: RenderOptions):
        super().__init__(md)
        self.options = options

    def run(self, root: etree.Element) -> None:
        for element in list(root.iter()):
            if element.tag == 'a':
                self._rewrite_link(element)
            elif element.tag == 'img':
                self._rewrite_image(element)
            elif element.tag == 'h2':
                self._anchor_heading(element, section_marker=True)
            elif element.tag == 'h4':
                self._anchor_heading(element, section_marker=False)

    def _rewrite_link(self, element: etree.Element) -> None:
        href = element.get('href', '')
        title = element.get('title')
        element.attrib.clear()
        element.set('href', href)
        element.set('target', '_blank')
        element.set('rel', 'noopener noreferrer')
        if title:
            element.set('title', title)

    def _rewrite_image(self, element: etree.Element) -> None:
        src = element.get('src', '')
        element.attrib.clear()
        element.set('src', src)
        element.set('style', f'border: {self.options.image_border};')
        element.set('width', '100%')
        element.set('alt', self.options.image_alt)

    def _anchor_heading(self, heading: etree.Element, section_marker: bool) -> None:
        slug = escape_heading(heading_text(heading))
        leading_text = heading.text
        children = list(heading)
        for child in children:
            heading.remove(child)

        heading.text = None
        heading.attrib.clear()
        if section_marker:
            heading.set('class', 'chapter-section')
        heading.set('style', self.options.heading_style if section_marker else self.options.subheading_style)

        anchor = etree.SubElement(heading, 'a', {
            'name': slug,
            'href': f'#{slug}',
            'style': self.options.anchor_style
        })
        icon = etree.SubElement(anchor, 'i', {'class': 'material-icons', 'style': ICON_STYLE})
        icon.text = 'link'

        if section_marker:
            marker = etree.SubElement(heading, 'span', {'class': 'section-anchor', 'name': slug})
            marker.text = leading_text
            marker.extend(children)
        else:
            anchor.tail = leading_text
            heading.extend(children)


class ChapterHtmlExtension(Extension):
    """Registers ChapterHtmlTreeprocessor after inline processing."""

    def __init__(self, options: RenderOptions = DEFAULT_RENDER_OPTIONS, **kwargs):
        self.options = options
        super().__init__(**kwargs)

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        # inline is 20, prettify is 10
        md.treeprocessors.register(ChapterHtmlTreeprocessor(md, self.options), 'chapter_html', 15)


def build_markdown(options: RenderOptions, extra_extensions: List[Extension] = ()) -> markdown.Markdown:
    """Create a fresh Markdown instance for one conversion."""
    extensions: List = ['extra', 'sane_lists']
    extension_configs = {}

    if options.breaks:
        extensions.append('nl2br')

    if options.highlight:
        extensions.append('codehilite')
        extension_configs['codehilite'] = {
            'css_class': options.code_css_class,
            'guess_lang': True
        }

    extensions.extend(extra_extensions)

    return markdown.Markdown(extensions=extensions, extension_configs=extension_configs)


def render_html(source: str, options: RenderOptions = DEFAULT_RENDER_OPTIONS) -> str:
    """
    Render entity-encoded markdown to sanitized chapter HTML.

    Args:
        source: Markdown source, possibly HTML-entity encoded
        options: Rendering options

    Returns:
        HTML string ('' for empty input)
    """
    text = decode_source(source)
    if not text.strip():
        return ''

    md = build_markdown(options, [ChapterHtmlExtension(options)])
    rendered = md.convert(text)

    if options.sanitize:
        rendered = HtmlSanitizer().sanitize(rendered)

    logger.debug(f"Rendered {len(text)} chars of markdown to {len(rendered)} chars of HTML")
    return rendered


def render_chapter(body: str, excerpt: str, options: RenderOptions = DEFAULT_RENDER_OPTIONS) -> Tuple[str, str]:
    """Render chapter body and excerpt together."""
    return render_html(body, options), render_html(excerpt, options)


__all__ = [
    'RenderOptions',
    'DEFAULT_RENDER_OPTIONS',
    'ChapterHtmlExtension',
    'build_markdown',
    'decode_source',
    'escape_heading',
    'heading_text',
    'render_html',
    'render_chapter'
]
