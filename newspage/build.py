"""Site building functionality for NewsPage.

This module turns the article directory plus the site configuration into a
self-contained static site. The output holds no state of its own and can be
deleted and rebuilt at any time.

Output layout::

    index.html, article.html   HTML shells with config placeholders filled
    js/index.js, js/article.js compiled client scripts
    themes/*.css               theme stylesheets
    articles/*.md              verbatim article files
    articles.json              catalog, newest first
    config.json                {title, theme, description}
    uploads/                   uploaded media (when present)

Key functions:
- build_site: Main function to build the entire site.
- render_shell: Fill the placeholders of an HTML shell.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .bundler import SITE_ENTRIES, ScriptBundler
from .catalog import ArticleMeta, build_catalog, catalog_to_json
from .config import FALLBACK_THEMES, SiteConfig, load_config
from .context import ARTICLES_DIR, UPLOADS_DIR, SiteContext
from .errors import BuildFailure, StoreUnavailable
from .utils import copy_file, ensure_clean_dir, replace_placeholders

logger = logging.getLogger(__name__)

SHELL_TEMPLATES = ("index.html", "article.html")

# Every build ships all themes so the theme can be switched without a rebuild
BUILD_THEMES = FALLBACK_THEMES


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        articles: Catalog written to articles.json.
        output_dir: Directory where the site was built.
        config: Configuration the site was rendered with.
    """

    articles: list[ArticleMeta]
    output_dir: Path
    config: SiteConfig


def render_shell(template: Path, config: SiteConfig) -> str:
    """Render an HTML shell by literal placeholder replacement.

    Args:
        template: Path to the shell template.
        config: Site configuration.

    Returns:
        HTML with ``{{SITE_TITLE}}``, ``{{SITE_DESCRIPTION}}`` and
        ``{{THEME}}`` replaced.
    """
    replacements = {
        "SITE_TITLE": config.title,
        "SITE_DESCRIPTION": config.description,
        "THEME": config.theme,
    }
    return replace_placeholders(template.read_text(encoding="utf-8"), replacements)


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def build_site(
    ctx: SiteContext,
    output_dir: Path,
    clean_output: bool = False,
) -> BuildResult:
    """Build the entire static site.

    Args:
        ctx: Site context.
        output_dir: Directory to write the site into.
        clean_output: Whether to wipe the output directory before building.

    Returns:
        BuildResult with the catalog, output directory and configuration.

    Raises:
        BuildFailure: If the article directory is unavailable, a client
            script fails to compile, or writing the output fails. The
            output directory may be left partially written.
    """
    config = load_config(ctx)
    try:
        articles = build_catalog(ctx)
    except StoreUnavailable as exc:
        raise BuildFailure(exc.message, ctx.articles_dir, exc) from exc

    bundler = ScriptBundler(ctx.root)
    try:
        if clean_output:
            ensure_clean_dir(output_dir)
        else:
            output_dir.mkdir(parents=True, exist_ok=True)
        bundler.compile_all(
            [ctx.frontend_dir / name for name in SITE_ENTRIES], output_dir / "js"
        )
        _write_shells(ctx, output_dir, config)
        _copy_themes(ctx, output_dir)
        _copy_uploads(ctx, output_dir)
        _write_json(output_dir / "config.json", config.to_dict())
        _write_json(output_dir / "articles.json", catalog_to_json(articles))
        _copy_articles(ctx, output_dir, articles)
    except OSError as exc:
        source = Path(exc.filename) if exc.filename else None
        raise BuildFailure(_format_error_message(exc), source, exc) from exc

    logger.info("Built %d article(s) into %s", len(articles), output_dir)
    return BuildResult(articles=articles, output_dir=output_dir, config=config)


def _format_error_message(exc: OSError) -> str:
    """Format an I/O error, keeping the system's own message."""
    if exc.filename:
        return f"{exc.strerror or exc}: {exc.filename}"
    return str(exc)


def _write_shells(ctx: SiteContext, output_dir: Path, config: SiteConfig) -> None:
    for name in SHELL_TEMPLATES:
        html = render_shell(ctx.templates_dir / name, config)
        (output_dir / name).write_text(html, encoding="utf-8")


def _copy_themes(ctx: SiteContext, output_dir: Path) -> None:
    for theme in BUILD_THEMES:
        filename = f"{theme}.css"
        copy_file(ctx.themes_dir / filename, output_dir / "themes" / filename)


def _copy_uploads(ctx: SiteContext, output_dir: Path) -> None:
    """Copy the uploads tree; a missing uploads directory is not an error."""
    if not ctx.uploads_dir.is_dir():
        return
    shutil.copytree(ctx.uploads_dir, output_dir / UPLOADS_DIR, dirs_exist_ok=True)


def _copy_articles(ctx: SiteContext, output_dir: Path, articles: list[ArticleMeta]) -> None:
    target = output_dir / ARTICLES_DIR
    target.mkdir(parents=True, exist_ok=True)
    for article in articles:
        copy_file(ctx.article_path(article.filename), target / article.filename)
