"""Article catalog for NewsPage.

The catalog is the read model of the article directory: one ArticleMeta per
file, with defaults resolved and ordered newest first. It is rebuilt from
disk on every call; nothing is cached.

Key pieces:
- ArticleMeta: Normalized metadata of one article.
- parse_article: Build an ArticleMeta from one file.
- build_catalog: Parse every file concurrently and sort by date.
- find_article: First catalog entry with a given id.
- catalog_to_json: JSON-ready representation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .context import SiteContext
from .errors import ArticleParseError
from .frontmatter import extract_frontmatter
from .store import list_files
from .utils import slugify, to_iso_date, today_iso

logger = logging.getLogger(__name__)

MAX_PARSE_WORKERS = 8


@dataclass
class ArticleMeta:
    """Normalized metadata of one article.

    Attributes:
        id: URL-safe slug, unique by convention only.
        title: Human-readable title.
        date: Publication date as YYYY-MM-DD.
        description: Short summary, possibly empty.
        thumbnail: Optional image URL.
        filename: Storage key inside the article directory.
    """

    id: str
    title: str
    date: str
    description: str
    filename: str
    thumbnail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "date": self.date,
            "description": self.description,
        }
        if self.thumbnail is not None:
            data["thumbnail"] = self.thumbnail
        data["filename"] = self.filename
        return data


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def parse_article(ctx: SiteContext, filename: str) -> ArticleMeta:
    """Read one article file and resolve its metadata defaults.

    Args:
        ctx: Site context.
        filename: Name of the file inside the article directory.

    Returns:
        ArticleMeta for the file.

    Raises:
        ArticleParseError: If the file cannot be read or its metadata block
            is not a valid YAML mapping.
    """
    path = ctx.article_path(filename)
    try:
        text = path.read_text(encoding="utf-8")
        data, _ = extract_frontmatter(text)
    except (OSError, UnicodeDecodeError, yaml.YAMLError, ValueError) as exc:
        raise ArticleParseError(filename, str(exc)) from exc

    article_id = _as_text(data.get("id")) or slugify(Path(filename).stem)
    title = _as_text(data.get("title")) or article_id
    return ArticleMeta(
        id=article_id,
        title=title,
        date=to_iso_date(data.get("date")) or today_iso(),
        description=_as_text(data.get("description")) or "",
        thumbnail=_as_text(data.get("thumbnail")) or None,
        filename=filename,
    )


def _parse_or_skip(ctx: SiteContext, filename: str) -> ArticleMeta | None:
    try:
        return parse_article(ctx, filename)
    except ArticleParseError as exc:
        logger.warning("Skipping article %s: %s", exc.filename, exc.message)
        return None


def build_catalog(ctx: SiteContext) -> list[ArticleMeta]:
    """Build the presentation-ordered list of all articles.

    Files are parsed concurrently. A file that fails to parse is logged and
    left out; it never aborts the others. The result is sorted by date,
    newest first; articles with equal dates keep filename order.

    Args:
        ctx: Site context.

    Returns:
        List of ArticleMeta, date descending.

    Raises:
        StoreUnavailable: If the article directory is missing or unreadable.
    """
    files = list_files(ctx)
    if not files:
        return []
    workers = min(MAX_PARSE_WORKERS, len(files))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_parse_or_skip, ctx, name) for name in files]
        parsed = [future.result() for future in futures]
    articles = [article for article in parsed if article is not None]
    articles.sort(key=lambda article: article.date, reverse=True)
    return articles


def find_article(catalog: Iterable[ArticleMeta], article_id: str) -> ArticleMeta | None:
    """Return the first catalog entry with the given id, or None."""
    for article in catalog:
        if article.id == article_id:
            return article
    return None


def catalog_to_json(catalog: Iterable[ArticleMeta]) -> list[dict[str, Any]]:
    return [article.to_dict() for article in catalog]
