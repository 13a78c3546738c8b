"""YAML front-matter parsing for chapter source files."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict

import yaml

from ..errors import FrontMatterError

# Opening '---' on the first line, closing '---' or '...' on its own line
FRONT_MATTER_RE = re.compile(
    r'\A\ufeff?---[ \t]*\r?\n(?P<yaml>.*?)^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)',
    re.DOTALL | re.MULTILINE
)


@dataclass
class FrontMatterDocument:
    attributes: Dict[str, Any] = field(default_factory=dict)
    body: str = ''


def parse_front_matter(text: str) -> FrontMatterDocument:
    """
    Split a markdown document into its YAML attributes and body.

    Documents without a front-matter block return empty attributes and the
    whole text as body.

    Raises:
        FrontMatterError: If the block is not valid YAML or not a mapping
    """
    match = FRONT_MATTER_RE.match(text)
    if not match:
        return FrontMatterDocument(attributes={}, body=text)

    try:
        attributes = yaml.safe_load(match.group('yaml'))
    except yaml.YAMLError as e:
        raise FrontMatterError(f"Invalid front matter: {e}") from e

    if attributes is None:
        attributes = {}
    if not isinstance(attributes, dict):
        raise FrontMatterError(
            f"Front matter must be a mapping, got {type(attributes).__name__}"
        )

    return FrontMatterDocument(attributes=attributes, body=text[match.end():])
