"""Editing server for NewsPage.

Serves the editor, the editing API and a built snapshot of the site:
- ``/editor`` and ``/editor-bundle.js``: the editor page and its script.
- ``/api/*``: EditorAPI.
- ``/uploads/*`` and ``/articles/*.md``: straight from the working tree, so
  edits show up without a rebuild.
- everything else: the snapshot in ``.newspage-dist``, ``/`` → index.html.

Snapshots are built into a staging directory and swapped into place, so a
failed build never leaves the served site half-written. With ``watch``
enabled, changes to articles, uploads or the config file trigger a rebuild.

Key classes:
- EditServer: Builds the snapshot and runs the HTTP server.
- _EditorHandler: HTTP request handler implementing the routing above.
- _ChangeHandler: File system event handler for triggering rebuilds.
"""

from __future__ import annotations

import functools
import logging
import os
import shutil
import threading
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import unquote, urlsplit

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .api import API_PREFIX, EditorAPI
from .build import build_site
from .bundler import EDITOR_BUNDLE, build_editor_bundle
from .context import ARTICLES_DIR, UPLOADS_DIR, SiteContext
from .errors import BuildFailure
from .utils import is_within

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000


class _EditorHandler(SimpleHTTPRequestHandler):
    """HTTP request handler layering editor, API, live files and snapshot.

    Attributes:
        edit_server: The EditServer this handler serves for.
    """

    edit_server: EditServer

    def end_headers(self):
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        super().end_headers()

    def do_GET(self):
        self._dispatch()

    def do_HEAD(self):
        self._dispatch()

    def do_POST(self):
        self._dispatch()

    def do_PUT(self):
        self._dispatch()

    def do_DELETE(self):
        self._dispatch()

    def list_directory(self, path):  # pragma: no cover - never reached via _dispatch
        return self._send_not_found()

    def _dispatch(self) -> None:
        server = self.edit_server
        raw_path = urlsplit(self.path).path

        if raw_path.startswith(API_PREFIX):
            body = self._read_body()
            response = server.api.handle(
                self.command,
                raw_path[len(API_PREFIX):],
                body,
                {"Content-Type": self.headers.get("Content-Type", "")},
            )
            self._send(response.status, response.body(), response.content_type)
            return

        pathname = unquote(raw_path)
        if pathname == f"/{EDITOR_BUNDLE}":
            bundle = server.ensure_editor_bundle()
            if bundle is None:
                self._send_not_found()
                return
            self._send_file(bundle, "application/javascript")
            return

        if pathname in ("/editor", "/editor/"):
            self._send_file(server.ctx.templates_dir / "editor.html", "text/html; charset=utf-8")
            return

        ctx = server.ctx
        if pathname.startswith(f"/{UPLOADS_DIR}/"):
            live = ctx.root / pathname.lstrip("/")
            if is_within(ctx.uploads_dir, live) and live.is_file():
                self._send_file(live)
                return

        if pathname.startswith(f"/{ARTICLES_DIR}/") and pathname.endswith(".md"):
            live = ctx.root / pathname.lstrip("/")
            if is_within(ctx.articles_dir, live) and live.is_file():
                self._send_file(live, "text/markdown; charset=utf-8")
                return

        clean = "index.html" if pathname == "/" else pathname.lstrip("/")
        target = server.output_dir / clean
        if is_within(server.output_dir, target) and target.is_file():
            self._send_file(target)
            return
        self._send_not_found()

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length > 0 else b""

    def _send(self, status: int, body: bytes, content_type: str) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _send_file(self, path: Path, content_type: str | None = None) -> None:
        try:
            data = path.read_bytes()
        except OSError:
            self._send_not_found()
            return
        self._send(200, data, content_type or self.guess_type(str(path)))

    def _send_not_found(self) -> None:
        self._send(404, b"Not Found", "text/plain; charset=utf-8")


class EditServer:
    """Editing server with snapshot rebuilds.

    Attributes:
        ctx: Site context.
        port: Port for the HTTP server.
        output_dir: Directory the snapshot is served from.
        api: Editing API bound to this server's rebuild.
        _observer: File system observer for changes.
    """

    def __init__(self, ctx: SiteContext, port: int | None = None):
        """Initialize the editing server.

        Args:
            ctx: Site context.
            port: Optional override for the HTTP port.
        """
        self.ctx = ctx
        self.port = int(port or DEFAULT_PORT)
        self.output_dir = ctx.output_dir
        self._staging_dir = self.output_dir.with_name(self.output_dir.name + ".staging")
        self._retired_dir = self.output_dir.with_name(self.output_dir.name + ".old")
        self.api = EditorAPI(ctx, rebuild=self.rebuild_snapshot)
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None
        self._build_lock = threading.Lock()
        self._last_rebuild_at = 0.0
        self._last_signature: tuple | None = None
        self._debounce_seconds = 0.2

    def start(self, watch: bool = False) -> None:  # pragma: no cover - integration path
        print("Building site…")
        try:
            self.rebuild_snapshot()
        except BuildFailure as exc:
            print(f"Initial build failed (continuing anyway): {exc.message}")
        self.ensure_editor_bundle()
        self._last_signature = self._compute_signature()

        print("\nServer running:")
        print(f"  Site:   http://localhost:{self.port}/")
        print(f"  Editor: http://localhost:{self.port}/editor")

        threading.Thread(target=self._start_http, daemon=True).start()
        if watch:
            self._start_watcher()
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            self.stop()

    def stop(self) -> None:
        if self._observer:
            self._observer.stop()
            self._observer.join()
        if self._httpd:
            self._httpd.shutdown()

    def _make_handler(self):
        handler_cls = type(
            "_EditorHandlerForSite",
            (_EditorHandler,),
            {"edit_server": self},
        )
        return functools.partial(handler_cls, directory=str(self.output_dir))

    def _start_http(self) -> None:  # pragma: no cover - integration path
        self._httpd = ThreadingHTTPServer(("", self.port), self._make_handler())
        self._httpd.serve_forever()

    def rebuild_snapshot(self) -> None:
        """Build the site into staging and swap it into place.

        Raises:
            BuildFailure: If the build fails; the served snapshot is kept.
        """
        with self._build_lock:
            try:
                staging = self._prepare_staging_dir()
            except OSError as exc:
                raise BuildFailure(
                    f"Cannot prepare staging directory: {exc}", self._staging_dir, exc
                ) from exc
            try:
                build_site(self.ctx, staging, clean_output=True)
            except BuildFailure:
                shutil.rmtree(staging, ignore_errors=True)
                raise
            try:
                self._activate_staging(staging)
            except OSError as exc:
                shutil.rmtree(staging, ignore_errors=True)
                raise BuildFailure(
                    f"Cannot activate snapshot: {exc}", self.output_dir, exc
                ) from exc
            self._last_rebuild_at = time.time()

    def ensure_editor_bundle(self) -> Path | None:
        """Return the editor bundle, compiling it when it is missing."""
        bundle = self.output_dir / EDITOR_BUNDLE
        if bundle.exists():
            return bundle
        try:
            return build_editor_bundle(self.ctx)
        except BuildFailure as exc:
            logger.warning("Editor bundle build failed: %s", exc.message)
            return None

    def _prepare_staging_dir(self) -> Path:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        return staging

    def _activate_staging(self, staging: Path) -> None:
        target = self.output_dir
        retired = self._retired_dir
        if retired.exists():
            shutil.rmtree(retired)
        if target.exists():
            os.replace(target, retired)
        try:
            os.replace(staging, target)
        except OSError:
            if retired.exists() and not target.exists():
                os.replace(retired, target)
            raise
        shutil.rmtree(retired, ignore_errors=True)

    def _start_watcher(self) -> None:
        handler = _ChangeHandler(self)
        observer = Observer()
        for folder in (self.ctx.articles_dir, self.ctx.uploads_dir):
            if folder.exists():
                observer.schedule(handler, str(folder), recursive=True)
        # The config file lives in the root; watch it non-recursively
        observer.schedule(handler, str(self.ctx.root), recursive=False)
        observer.start()
        self._observer = observer

    def rebuild_on_change(self) -> None:
        now = time.time()
        if self._build_lock.locked() or (now - self._last_rebuild_at) < self._debounce_seconds:
            return
        signature = self._compute_signature()
        if signature == self._last_signature:
            return
        print("Change detected; rebuilding...")
        try:
            self.rebuild_snapshot()
        except BuildFailure as exc:
            print(f"Rebuild failed: {exc.message}")
        self._last_signature = signature

    def _compute_signature(self) -> tuple | None:
        entries: list[tuple] = []
        paths: list[Path] = [self.ctx.config_path]
        for folder in (self.ctx.articles_dir, self.ctx.uploads_dir):
            if folder.exists():
                paths.extend(sorted(p for p in folder.rglob("*") if not p.is_dir()))
        for path in paths:
            try:
                stat = path.stat()
            except OSError:
                continue
            rel = path.relative_to(self.ctx.root)
            entries.append((str(rel), stat.st_mtime_ns, stat.st_size))
        return tuple(entries) if entries else None


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, server: EditServer):
        super().__init__()
        self.server = server

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        # Skip changes in output/staging directories
        for ignored in (
            self.server.output_dir,
            self.server._staging_dir,
            self.server._retired_dir,
        ):
            try:
                path.relative_to(ignored)
                return
            except ValueError:
                pass
        self.server.rebuild_on_change()
