"""Metadata block codec for NewsPage articles.

An article file starts with a metadata block between two ``---`` marker
lines, followed by the Markdown body::

    ---
    id: my-article
    title: "Hello: World"
    date: 2024-03-15
    description: Short summary
    layout: wide
    ---

    # Hello

This module reads and writes that block line by line so that keys it does
not know about survive an edit untouched and in their original order. The
catalog uses a YAML loader instead (see ``extract_frontmatter``) because it
only needs typed values, not a lossless round trip.

Key pieces:
- FrontMatter: record of the five known fields plus ordered extras.
- parse_frontmatter: split raw text into (FrontMatter, body).
- serialize_frontmatter: render a FrontMatter and body back to text.
- extract_frontmatter: YAML view of the block, used by the catalog.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

KNOWN_KEYS = ("id", "title", "date", "description", "thumbnail")

BLOCK_RE = re.compile(r"^---\r?\n(.*?)\r?\n---(?:\r?\n|$)(.*)\Z", re.DOTALL)

# Characters that change the meaning of a plain YAML scalar
_NEEDS_QUOTES_RE = re.compile(r"[:#\[\]{},&*?|>!'\"@%`]")


@dataclass
class FrontMatter:
    """Metadata of a single article.

    Empty strings mean "not set". Unrecognized keys are kept in ``extra``
    as raw ``(key, value)`` pairs in file order.
    """

    id: str = ""
    title: str = ""
    date: str = ""
    description: str = ""
    thumbnail: str = ""
    extra: list[tuple[str, str]] = field(default_factory=list)


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def quote_if_needed(value: str) -> str:
    """Wrap a value in double quotes when it contains YAML-significant characters.

    Backslashes and double quotes inside a quoted value are escaped.

    Examples:
        >>> quote_if_needed("plain")
        'plain'

        >>> quote_if_needed("Breaking: news")
        '"Breaking: news"'
    """
    if not _NEEDS_QUOTES_RE.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_frontmatter(raw: str) -> tuple[FrontMatter, str]:
    """Split raw article text into its metadata record and body.

    Lines without a colon are ignored. Surrounding single or double quotes
    are removed from values; escapes inside them are not interpreted.

    Args:
        raw: Full text of an article file.

    Returns:
        Tuple of (FrontMatter, body). Text without a metadata block yields an
        empty record and the full text as body.
    """
    match = BLOCK_RE.match(raw)
    if not match:
        return FrontMatter(), raw

    meta = FrontMatter()
    for line in match.group(1).split("\n"):
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = _strip_quotes(value.strip())
        if key in KNOWN_KEYS:
            setattr(meta, key, value)
        else:
            meta.extra.append((key, value))
    return meta, match.group(2)


def serialize_frontmatter(meta: FrontMatter, body: str) -> str:
    """Render a metadata record and body as article text.

    Known fields are written in a fixed order and only when non-empty;
    extras follow in their stored order. The body is separated from the
    block by one blank line, with its own leading newlines removed.

    Args:
        meta: Metadata record.
        body: Markdown body.

    Returns:
        Full article text.
    """
    lines = ["---"]
    if meta.id:
        lines.append(f"id: {meta.id}")
    if meta.title:
        lines.append(f"title: {quote_if_needed(meta.title)}")
    if meta.date:
        lines.append(f"date: {meta.date}")
    if meta.description:
        lines.append(f"description: {quote_if_needed(meta.description)}")
    if meta.thumbnail:
        lines.append(f"thumbnail: {quote_if_needed(meta.thumbnail)}")
    for key, value in meta.extra:
        lines.append(f"{key}: {quote_if_needed(value)}")
    lines.append("---")
    return "\n".join(lines) + "\n\n" + body.lstrip("\r\n")


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Load the metadata block with a YAML parser.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (metadata dict, remaining content). Text without a block
        yields an empty dict.

    Raises:
        yaml.YAMLError: If the block is not valid YAML.
        ValueError: If the block is valid YAML but not a mapping.
    """
    match = BLOCK_RE.match(text)
    if not match:
        return {}, text
    data = yaml.safe_load(match.group(1))
    if data is None:
        return {}, match.group(2)
    if not isinstance(data, dict):
        raise ValueError("metadata block is not a key/value mapping")
    return data, match.group(2)
