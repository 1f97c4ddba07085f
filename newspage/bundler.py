"""Client script bundling for NewsPage.

The static site and the editor are driven by small browser scripts shipped
in ``static/frontend``. Bundling turns an entry script into the file the
browser loads: minified with terser when a terser executable is available,
otherwise with rjsmin.

Key pieces:
- find_executable: Locate a tool in PATH or local node_modules.
- ScriptBundler: Compiles entry scripts, raising BundleError on failure.
- build_editor_bundle: Compile the editor script for the editing server.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from rjsmin import jsmin

from .context import SiteContext
from .errors import BundleError

logger = logging.getLogger(__name__)

# Entry scripts of the static site, compiled into <output>/js/
SITE_ENTRIES = ("index.js", "article.js")
EDITOR_ENTRY = "editor.js"
EDITOR_BUNDLE = "editor-bundle.js"


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH or local node_modules.

    Args:
        name: Name of the executable to find (e.g. 'terser').
        project_root: Optional directory whose node_modules/.bin is searched.

    Returns:
        Full path to the executable if found, None otherwise.
    """
    found = shutil.which(name)
    if found:
        return found
    if project_root is not None:
        local = project_root / "node_modules" / ".bin" / name
        if local.exists():
            return str(local)
    return None


class ScriptBundler:
    """Compiles client entry scripts into browser bundles.

    Attributes:
        project_root: Directory searched for a local terser install.
    """

    def __init__(self, project_root: Path | None = None):
        self.project_root = project_root

    def compile(self, source: Path, dest: Path, minify: bool = True) -> Path:
        """Compile one entry script.

        Args:
            source: Entry script path.
            dest: Output bundle path.
            minify: Whether to minify the output.

        Returns:
            The destination path.

        Raises:
            BundleError: If the entry cannot be read or the compiler fails.
                The compiler's diagnostic is kept verbatim in the message.
        """
        try:
            code = source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BundleError(
                f"Cannot read entry script {source}: {exc}", source, exc
            ) from exc

        dest.parent.mkdir(parents=True, exist_ok=True)
        if not minify:
            dest.write_text(code, encoding="utf-8")
            return dest

        terser = find_executable("terser", self.project_root)
        if terser:
            result = subprocess.run(
                [terser, str(source), "-c", "-m", "-o", str(dest)],
                capture_output=True,
                text=True,
            )
            if result.returncode != 0:
                raise BundleError(result.stderr.strip(), source)
            return dest

        dest.write_text(jsmin(code), encoding="utf-8")
        return dest

    def compile_all(self, sources: list[Path], out_dir: Path) -> list[Path]:
        """Compile several entry scripts into ``out_dir``, keeping their names."""
        return [self.compile(source, out_dir / source.name) for source in sources]


def build_editor_bundle(ctx: SiteContext) -> Path:
    """Compile the editor script into the editing server's output directory.

    Raises:
        BundleError: If compilation fails.
    """
    bundler = ScriptBundler(ctx.root)
    dest = bundler.compile(
        ctx.frontend_dir / EDITOR_ENTRY, ctx.output_dir / EDITOR_BUNDLE, minify=False
    )
    logger.info("Built editor bundle %s", dest)
    return dest
