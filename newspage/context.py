"""Explicit site context for NewsPage.

Every store, catalog, build and API call receives a SiteContext instead of
reading the process working directory. The CLI creates one from
``Path.cwd()``; tests create one per ``tmp_path``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

ARTICLES_DIR = "articles"
UPLOADS_DIR = "uploads"
CONFIG_FILE = "newspage.config.json"
SERVE_DIR = ".newspage-dist"

# Templates, themes and client scripts shipped with the package
INSTALL_DIR = Path(__file__).parent / "static"


@dataclass(frozen=True)
class SiteContext:
    """Locations a NewsPage project is read from and written to.

    Attributes:
        root: Working directory of the project.
        install_dir: Directory holding HTML shells, themes and client scripts.
        serve_dir: Output directory used by the editing server.
    """

    root: Path
    install_dir: Path = INSTALL_DIR
    serve_dir: Path | None = field(default=None)

    @classmethod
    def from_root(cls, root: Path | str) -> SiteContext:
        resolved = Path(root).resolve()
        return cls(root=resolved, serve_dir=resolved / SERVE_DIR)

    @property
    def articles_dir(self) -> Path:
        return self.root / ARTICLES_DIR

    @property
    def uploads_dir(self) -> Path:
        return self.root / UPLOADS_DIR

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE

    @property
    def output_dir(self) -> Path:
        """Directory the editing server builds and serves its snapshot from."""
        return self.serve_dir or self.root / SERVE_DIR

    @property
    def templates_dir(self) -> Path:
        return self.install_dir

    @property
    def themes_dir(self) -> Path:
        return self.install_dir / "themes"

    @property
    def frontend_dir(self) -> Path:
        return self.install_dir / "frontend"

    def article_path(self, filename: str) -> Path:
        return self.articles_dir / filename
