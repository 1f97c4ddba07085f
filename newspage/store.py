"""File-backed article store for NewsPage.

The article directory is the database: one Markdown file per article,
named ``<id>.md`` by convention. This module owns reading, writing and
deleting those files. There is no locking; concurrent writes to the same
file are last-write-wins.

Key functions:
- list_files: Sorted article filenames.
- read_article / write_article: Metadata-aware access.
- read_raw / write_raw: Whole-file access used by the editing API.
- delete_article: Remove an article file.
- generate_skeleton / create_article: New article scaffolding.
- find_file: Resolve a CLI-supplied id or filename.
"""

from __future__ import annotations

import logging

from .context import SiteContext
from .errors import ArticleExists, NotFound, StoreUnavailable, ValidationError
from .frontmatter import FrontMatter, parse_frontmatter, serialize_frontmatter
from .utils import is_markdown, slugify, today_iso

logger = logging.getLogger(__name__)

SKELETON_BODY = "# {title}\n\nWrite your article here...\n"


def list_files(ctx: SiteContext) -> list[str]:
    """Return all article filenames, lexicographically sorted.

    Args:
        ctx: Site context.

    Returns:
        Sorted list of ``*.md`` filenames in the article directory.

    Raises:
        StoreUnavailable: If the article directory is missing or unreadable.
    """
    directory = ctx.articles_dir
    if not directory.is_dir():
        raise StoreUnavailable(f"Article directory not found: {directory}")
    try:
        names = [p.name for p in directory.iterdir() if p.is_file() and is_markdown(p)]
    except OSError as exc:
        raise StoreUnavailable(f"Cannot read article directory {directory}: {exc}") from exc
    return sorted(names)


def read_raw(ctx: SiteContext, filename: str) -> str:
    """Read the full text of an article file.

    Raises:
        NotFound: If the file does not exist.
    """
    path = ctx.article_path(filename)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise NotFound(f"Article not found: {filename}") from None


def write_raw(ctx: SiteContext, filename: str, text: str) -> None:
    """Replace the full text of an article file."""
    ctx.articles_dir.mkdir(parents=True, exist_ok=True)
    ctx.article_path(filename).write_text(text, encoding="utf-8")


def read_article(ctx: SiteContext, filename: str) -> tuple[FrontMatter, str]:
    """Load an article and split it into metadata and body.

    Args:
        ctx: Site context.
        filename: Name of the file inside the article directory.

    Returns:
        Tuple of (FrontMatter, body).

    Raises:
        NotFound: If the file does not exist.
    """
    return parse_frontmatter(read_raw(ctx, filename))


def write_article(ctx: SiteContext, filename: str, meta: FrontMatter, body: str) -> None:
    """Serialize metadata and body into an article file.

    Args:
        ctx: Site context.
        filename: Name of the file inside the article directory.
        meta: Metadata to write; unknown keys in ``meta.extra`` are kept.
        body: Markdown body.
    """
    write_raw(ctx, filename, serialize_frontmatter(meta, body))


def delete_article(ctx: SiteContext, filename: str) -> None:
    """Remove an article file.

    Raises:
        NotFound: If the file does not exist.
    """
    try:
        ctx.article_path(filename).unlink()
    except FileNotFoundError:
        raise NotFound(f"Article not found: {filename}") from None
    logger.info("Deleted article %s", filename)


def generate_skeleton(title: str, description: str = "") -> str:
    """Produce the text of a brand new article.

    Args:
        title: Human-readable title; its slug becomes the article id.
        description: Optional short description.

    Returns:
        Article text with today's date and a placeholder body.
    """
    meta = FrontMatter(
        id=slugify(title),
        title=title,
        date=today_iso(),
        description=description,
    )
    return serialize_frontmatter(meta, SKELETON_BODY.format(title=title))


def create_article(
    ctx: SiteContext,
    title: str,
    description: str = "",
    overwrite: bool = False,
) -> str:
    """Create a new article file from a title.

    Args:
        ctx: Site context.
        title: Article title.
        description: Optional description.
        overwrite: Replace an existing file with the same name.

    Returns:
        The new article id.

    Raises:
        ValidationError: If the title is blank or has no sluggable characters.
        ArticleExists: If ``<slug>.md`` exists and ``overwrite`` is false.
    """
    title = (title or "").strip()
    if not title:
        raise ValidationError("title required")
    article_id = slugify(title)
    if not article_id:
        raise ValidationError(f"Cannot derive an article id from title: {title!r}")
    filename = f"{article_id}.md"
    path = ctx.article_path(filename)
    if path.exists() and not overwrite:
        raise ArticleExists(filename)
    write_raw(ctx, filename, generate_skeleton(title, description))
    logger.info("Created article %s", filename)
    return article_id


def find_file(ctx: SiteContext, article_id: str) -> str:
    """Resolve an id or filename to an article filename.

    A filename equal to ``article_id`` or ``article_id + ".md"`` wins;
    otherwise the first file (in filename order) whose metadata ``id``
    matches is returned. Files that cannot be read or decoded are
    skipped with a warning.

    Raises:
        NotFound: If nothing matches.
    """
    try:
        files = list_files(ctx)
    except StoreUnavailable:
        files = []
    for filename in files:
        if filename in (article_id, f"{article_id}.md"):
            return filename
        try:
            meta, _ = read_article(ctx, filename)
        except (NotFound, OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping article %s: %s", filename, exc)
            continue
        if meta.id == article_id:
            return filename
    raise NotFound(f"Article not found: {article_id}")
