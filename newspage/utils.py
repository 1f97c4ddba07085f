"""Utility functions for NewsPage.

This module contains small helpers used throughout the NewsPage codebase.
These include string processing, date formatting and path handling.

Key functions:
    slugify: Convert free text to a URL-safe slug.
    today_iso: Today's date as YYYY-MM-DD.
    to_iso_date: Normalize a date-like metadata value.
    replace_placeholders: Literal {{NAME}} substitution for HTML shells.
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_file: Copy a file, creating parent directories.
    is_markdown: Check if a path is a Markdown file.
    is_within: Check that a path stays inside a base directory.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path

_UNSAFE_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")


def slugify(text: str) -> str:
    """Convert free text to a lowercase, hyphen-separated slug.

    Args:
        text: Arbitrary text, typically an article title or filename stem.

    Returns:
        URL-safe slug. May be empty when the text has no usable characters.

    Examples:
        >>> slugify("Hello, World! 2024")
        'hello-world-2024'

        >>> slugify("  a -- b  ")
        'a-b'
    """
    cleaned = _UNSAFE_RE.sub("", text.lower()).strip()
    cleaned = _WHITESPACE_RE.sub("-", cleaned)
    cleaned = _HYPHENS_RE.sub("-", cleaned)
    return cleaned.strip("-")


def today_iso() -> str:
    """Return the current local date as YYYY-MM-DD."""
    return date.today().isoformat()


def to_iso_date(value: object) -> str | None:
    """Normalize a metadata date value.

    YAML loaders turn bare dates into ``date`` or ``datetime`` objects; those
    are reduced to their calendar date. Strings are kept as written.

    Args:
        value: Raw metadata value.

    Returns:
        The date as a string, or None when the value is not date-like.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def replace_placeholders(text: str, replacements: Mapping[str, str]) -> str:
    """Replace ``{{NAME}}`` placeholders with literal values.

    This is a plain substring replacement. Placeholders without a
    replacement are left untouched.

    Args:
        text: Template text.
        replacements: Mapping of placeholder name to value.

    Returns:
        Text with known placeholders substituted.
    """
    for key, value in replacements.items():
        text = text.replace("{{" + key + "}}", value)
    return text


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def copy_file(source: Path, dest: Path) -> None:
    """Copy a file, creating the destination's parent directories."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def is_within(base: Path, target: Path) -> bool:
    """Check that ``target`` resolves to a location inside ``base``."""
    try:
        target.resolve().relative_to(base.resolve())
    except ValueError:
        return False
    return True
