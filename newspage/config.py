"""Site configuration for NewsPage.

The configuration is a single JSON document, ``newspage.config.json``, in
the project root::

    {"title": "NewsPage", "description": "A dynamic news page", "theme": "tech"}

Loading never fails: a missing file yields the defaults, and a corrupt one
is logged and replaced by the defaults. Only the configuration wizard
writes the file.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass

from .context import SiteContext

logger = logging.getLogger(__name__)

# Used when the packaged theme directory cannot be read
FALLBACK_THEMES = ("guardian", "times", "tagesschau", "tech")


@dataclass
class SiteConfig:
    """Site-wide settings rendered into the static shells.

    Attributes:
        title: Site title.
        description: Site description.
        theme: Name of an installed theme stylesheet.
    """

    title: str = "NewsPage"
    description: str = "A dynamic news page"
    theme: str = "tech"

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


DEFAULT_CONFIG = SiteConfig()


def installed_themes(ctx: SiteContext) -> list[str]:
    """Return the names of the theme stylesheets shipped with the install.

    Falls back to the built-in theme list when the theme directory is
    missing or unreadable.
    """
    try:
        themes = sorted(p.stem for p in ctx.themes_dir.iterdir() if p.suffix == ".css")
    except OSError:
        themes = []
    return themes or list(FALLBACK_THEMES)


def load_config(ctx: SiteContext) -> SiteConfig:
    """Load the site configuration, substituting defaults where needed.

    Args:
        ctx: Site context.

    Returns:
        SiteConfig. Missing keys take their default values; an unknown
        theme is replaced by the default theme.
    """
    path = ctx.config_path
    if not path.exists():
        return SiteConfig()
    try:
        with open(path, encoding="utf-8") as f:
            loaded = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        logger.warning("Failed to parse config file %s, using defaults: %s", path, exc)
        return SiteConfig()
    if not isinstance(loaded, dict):
        logger.warning("Config file %s is not a JSON object, using defaults.", path)
        return SiteConfig()

    config = SiteConfig()
    for key in ("title", "description", "theme"):
        value = loaded.get(key)
        if isinstance(value, str):
            setattr(config, key, value)
    if config.theme not in installed_themes(ctx):
        logger.warning(
            "Unknown theme %r in %s, using %r.", config.theme, path, DEFAULT_CONFIG.theme
        )
        config.theme = DEFAULT_CONFIG.theme
    return config


def save_config(ctx: SiteContext, config: SiteConfig) -> None:
    """Write the configuration as pretty-printed JSON."""
    ctx.config_path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")
