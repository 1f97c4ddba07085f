"""Command-line interface for NewsPage.

This module defines the CLI commands using Click framework.
Running ``newspage`` without a command opens the interactive menu.

Commands:
- generate: Build the static site into a directory.
- articles: Refresh, add or remove articles.
- serve: Run the editing server.
- config: Edit the site configuration interactively.
- import-flavortown: Import Flavortown projects as articles.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
import questionary

from . import __version__
from .context import CONFIG_FILE, SiteContext
from .errors import NewsPageError


def _context() -> SiteContext:
    return SiteContext.from_root(Path.cwd())


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="newspage")
@click.option("-v", "--verbose", is_flag=True, help="Show informational log messages")
@click.pass_context
def cli(click_ctx: click.Context, verbose: bool):
    """CLI for generating and managing a dynamic, frontend-only news page."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if click_ctx.invoked_subcommand is None:
        from .interactive import run_menu

        run_menu(_context())


@cli.command()
@click.argument("path", type=click.Path(file_okay=False, path_type=Path))
def generate(path: Path):
    """Generate the static site into PATH."""
    generate_site(_context(), path)


@cli.command()
@click.argument("action", type=click.Choice(["refresh", "add", "remove"]))
@click.argument("article_id", required=False)
def articles(action: str, article_id: str | None):
    """Manage articles.

    \b
      refresh            list articles and their metadata
      add [ARTICLE_ID]   create a new markdown article
      remove ARTICLE_ID  delete an article by id
    """
    ctx = _context()
    if action == "refresh":
        refresh_articles(ctx)
    elif action == "add":
        if article_id:
            # A slug-like argument becomes a title: "my-first-post" -> "my first post"
            title = article_id.replace("-", " ") if "-" in article_id else article_id
        else:
            title = _ask_text("Article title:")
        add_article(ctx, title)
    else:
        if not article_id:
            raise click.UsageError("Usage: newspage articles remove <ARTICLE_ID>")
        remove_article(ctx, article_id)


@cli.command()
@click.option("--port", type=int, required=False, help="Port to run the server on")
@click.option("--watch", is_flag=True, help="Rebuild the site when articles change")
def serve(port: int | None, watch: bool):
    """Serve the generated site and the editor UI."""
    from .server import EditServer

    server = EditServer(_context(), port=port)
    server.start(watch=watch)


@cli.command()
def config():
    """Start the interactive configuration wizard."""
    configure_site(_context())


@cli.command("import-flavortown")
@click.option(
    "--api-key",
    envvar="FLAVORTOWN_API_KEY",
    help="Flavortown API key (defaults to $FLAVORTOWN_API_KEY, else prompts)",
)
@click.option("--overwrite", is_flag=True, help="Replace articles that already exist")
def import_flavortown(api_key: str | None, overwrite: bool):
    """Import your Hack Club Flavortown projects as articles."""
    import_from_flavortown(_context(), api_key or _ask_text("Flavortown API key:"), overwrite)


def generate_site(ctx: SiteContext, path: Path) -> None:
    """Build the site into ``path`` and report the result."""
    from .build import build_site
    from .errors import BuildFailure

    dest = path.resolve()
    click.echo(f"Generating site → {dest}")
    try:
        result = build_site(ctx, dest)
    except BuildFailure as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        if exc.source_path is not None:
            click.echo(click.style(f"  File: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(f"Built {len(result.articles)} article(s) into {result.output_dir}")


def import_from_flavortown(ctx: SiteContext, api_key: str, overwrite: bool = False) -> None:
    """Run the Flavortown import and report each article."""
    from .importer import FlavortownClient, import_projects

    click.echo("Fetching Flavortown projects…")
    try:
        with FlavortownClient(api_key) as client:
            report = import_projects(ctx, client, overwrite=overwrite)
    except NewsPageError as exc:
        raise click.ClickException(exc.message) from None
    for filename in report.written:
        click.echo(f"Wrote articles/{filename}")
    for filename in report.skipped:
        click.echo(f"Skipped articles/{filename} (already exists, use --overwrite)")
    for project_id in report.failed:
        click.echo(click.style(f"Failed to import project {project_id}", fg="yellow"), err=True)
    click.echo(f"Imported {len(report.written)} article(s)")


def refresh_articles(ctx: SiteContext) -> None:
    from .catalog import build_catalog
    from .errors import StoreUnavailable

    try:
        catalog = build_catalog(ctx)
    except StoreUnavailable:
        catalog = []
    click.echo(f"Refreshed {len(catalog)} article(s):")
    for article in catalog:
        click.echo(f"  [{article.date}] {article.title}  ({article.filename})")


def add_article(ctx: SiteContext, title: str) -> None:
    from .store import create_article

    try:
        article_id = create_article(ctx, title)
    except NewsPageError as exc:
        raise click.ClickException(exc.message) from None
    click.echo(f"Created: articles/{article_id}.md")


def remove_article(ctx: SiteContext, article_id: str) -> None:
    from .store import delete_article, find_file

    try:
        filename = find_file(ctx, article_id)
        delete_article(ctx, filename)
    except NewsPageError as exc:
        raise click.ClickException(exc.message) from None
    click.echo(f"Removed: articles/{filename}")


def configure_site(ctx: SiteContext) -> None:
    """Prompt for title, description and theme, then save the config."""
    from .config import SiteConfig, installed_themes, load_config, save_config

    current = load_config(ctx)
    click.echo("\n── NewsPage Config Wizard ──")
    click.echo("Press Enter to keep the current value.\n")

    title = _ask_text("Site title:", default=current.title, allow_empty=True) or current.title
    description = (
        _ask_text("Site description:", default=current.description, allow_empty=True)
        or current.description
    )
    theme = questionary.select(
        "Theme:",
        choices=installed_themes(ctx),
        default=current.theme,
        style=_questionary_style(),
    ).ask()
    if theme is None:
        raise click.Abort()

    updated = SiteConfig(title=title, description=description, theme=theme)
    save_config(ctx, updated)
    click.echo(f"\n✓ Config saved to {CONFIG_FILE}")
    click.echo(json.dumps(updated.to_dict(), indent=2))


def _ask_text(message: str, default: str = "", allow_empty: bool = False) -> str:
    answer = questionary.text(
        message,
        default=default,
        validate=lambda x: allow_empty or len(x.strip()) > 0 or "Value cannot be empty",
        style=_questionary_style(),
    ).ask()
    if answer is None:
        raise click.Abort()
    return answer.strip()


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
