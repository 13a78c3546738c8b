"""Extracts level-2 sections from chapter markdown for in-page navigation."""

import xml.etree.ElementTree as etree
from typing import List

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from ..models import Section
from .markdown_renderer import (
    DEFAULT_RENDER_OPTIONS,
    RenderOptions,
    build_markdown,
    decode_source,
    escape_heading,
    heading_text
)

SECTION_LEVEL = 2


class SectionCollector(Treeprocessor):
    """Records every h2 in document order; other elements are ignored."""

    def __init__(self, md: markdown.Markdown, sections: List[Section]):
        super().__init__(md)
        self.sections = sections

    def run(self, root: etree.Element) -> None:
        for element in root.iter(f'h{SECTION_LEVEL}'):
            text = heading_text(element).strip()
            self.sections.append(Section(
                text=text,
                level=SECTION_LEVEL,
                escaped_text=escape_heading(text)
            ))


class SectionCollectorExtension(Extension):

    def __init__(self, sections: List[Section], **kwargs):
        self.sections = sections
        super().__init__(**kwargs)

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.treeprocessors.register(SectionCollector(md, self.sections), 'section_collector', 15)


def extract_sections(source: str, options: RenderOptions = DEFAULT_RENDER_OPTIONS) -> List[Section]:
    """
    List the level-2 headings of a chapter.

    `escaped_text` matches the anchor name `render_html` writes for the same
    heading, so the table of contents links resolve.
    """
    text = decode_source(source)
    if not text.strip():
        return []

    sections: List[Section] = []
    md = build_markdown(options, [SectionCollectorExtension(sections)])
    md.convert(text)
    return sections


__all__ = ['SECTION_LEVEL', 'SectionCollector', 'extract_sections']
