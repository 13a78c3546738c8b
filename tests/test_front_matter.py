"""Tests for YAML front-matter parsing."""

import pytest

from booksync.converters import parse_front_matter
from booksync.errors import FrontMatterError, ValidationError


class TestFrontMatter:

    def test_attributes_and_body(self):
        text = '---\ntitle: Introduction\nisFree: true\nexcerpt: Start here\n---\n## Why\n\nBody\n'
        document = parse_front_matter(text)

        assert document.attributes == {'title': 'Introduction', 'isFree': True, 'excerpt': 'Start here'}
        assert document.body == '## Why\n\nBody\n'

    def test_no_front_matter(self):
        text = '# Just markdown\n\n---\n\nwith a rule\n'
        document = parse_front_matter(text)

        assert document.attributes == {}
        assert document.body == text

    def test_empty_block(self):
        document = parse_front_matter('---\n---\nBody')
        assert document.attributes == {}
        assert document.body == 'Body'

    def test_crlf_and_dots_terminator(self):
        document = parse_front_matter('---\r\ntitle: Windows\r\n...\r\nBody')
        assert document.attributes == {'title': 'Windows'}
        assert document.body == 'Body'

    def test_byte_order_mark(self):
        document = parse_front_matter('\ufeff---\ntitle: BOM\n---\nBody')
        assert document.attributes['title'] == 'BOM'

    def test_invalid_yaml(self):
        with pytest.raises(FrontMatterError):
            parse_front_matter('---\ntitle: [unclosed\n---\nBody')

    def test_non_mapping_is_validation_error(self):
        with pytest.raises(ValidationError):
            parse_front_matter('---\n- a\n- b\n---\nBody')
