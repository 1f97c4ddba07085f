"""Interactive menu for NewsPage.

Shown when ``newspage`` runs without a command. Every entry calls the same
helpers as the corresponding CLI command.
"""

from __future__ import annotations

from pathlib import Path

import click
import questionary

from .cli import (
    _ask_text,
    _questionary_style,
    add_article,
    configure_site,
    generate_site,
    refresh_articles,
    remove_article,
)
from .context import SiteContext

MAIN_CHOICES = [
    "Start dev server",
    "Build static site",
    "Manage articles",
    "Configure site",
    "Exit",
]

ARTICLE_CHOICES = [
    "List / refresh articles",
    "Add article",
    "Remove article",
    "Back",
]


def _select(message: str, choices: list[str]) -> str:
    answer = questionary.select(message, choices=choices, style=_questionary_style()).ask()
    # Ctrl+C in a prompt returns None
    return answer if answer is not None else choices[-1]


def _run_safely(action, *args) -> None:
    """Run a menu action, reporting failures without leaving the menu."""
    try:
        action(*args)
    except click.ClickException as exc:
        exc.show()
    except SystemExit:
        pass


def _manage_articles(ctx: SiteContext) -> None:
    choice = _select("Articles:", ARTICLE_CHOICES)
    if choice == "List / refresh articles":
        _run_safely(refresh_articles, ctx)
    elif choice == "Add article":
        _run_safely(add_article, ctx, _ask_text("Article title:"))
    elif choice == "Remove article":
        _run_safely(remove_article, ctx, _ask_text("Article id to remove:"))


def run_menu(ctx: SiteContext) -> None:
    """Loop over the main menu until the user exits."""
    click.echo("\nWelcome to NewsPage! No command specified, launching interactive mode.")
    while True:
        choice = _select("What would you like to do?", MAIN_CHOICES)
        if choice == "Start dev server":
            from .server import EditServer

            click.echo("\nStarting dev server… (Ctrl+C to stop)\n")
            EditServer(ctx).start()
            return
        if choice == "Build static site":
            path = _ask_text("Output path:", default="dist")
            _run_safely(generate_site, ctx, Path(path))
        elif choice == "Manage articles":
            _manage_articles(ctx)
        elif choice == "Configure site":
            _run_safely(configure_site, ctx)
        else:
            click.echo("Bye!")
            return
