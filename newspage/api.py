"""Editing API for NewsPage.

EditorAPI maps a request, given as ``(method, path, body, headers)`` with
``path`` relative to the ``/api/`` prefix, to an ApiResponse. All work
against the article directory happens synchronously inside ``handle``;
the HTTP server calls it from its worker threads. There is no locking
between requests: concurrent edits to one article are last-write-wins.

Routes:
    GET    articles        list the catalog
    GET    articles/<id>   raw article text
    POST   articles        create from {title, description?}
    PUT    articles/<id>   replace raw text with {content}
    DELETE articles/<id>   delete, removing uploads nothing else uses
    POST   generate        rebuild the served snapshot
    POST   upload          store a multipart "file" field
"""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from python_multipart import parse_form
from python_multipart.exceptions import FormParserError

from .build import build_site
from .catalog import ArticleMeta, build_catalog, catalog_to_json, find_article
from .context import SiteContext
from .errors import (
    ArticleExists,
    BuildFailure,
    NotFound,
    StoreUnavailable,
    ValidationError,
)
from .media import delete_orphaned_uploads, extract_uploaded_images, save_upload
from .store import create_article, delete_article, list_files, read_raw, write_raw

logger = logging.getLogger(__name__)

API_PREFIX = "/api/"


@dataclass
class ApiResponse:
    """Status code and JSON payload of an API call."""

    status: int
    payload: Any

    content_type = "application/json"

    def body(self) -> bytes:
        return json.dumps(self.payload).encode("utf-8")


def _error(status: int, message: str) -> ApiResponse:
    return ApiResponse(status, {"error": message})


NOT_FOUND = "Not found"


class EditorAPI:
    """Stateless request handler over the article store and site builder.

    Attributes:
        ctx: Site context.
        rebuild: Callable refreshing the served snapshot. Defaults to a
            clean build into ``ctx.output_dir``.
    """

    def __init__(self, ctx: SiteContext, rebuild: Callable[[], Any] | None = None):
        self.ctx = ctx
        self.rebuild = rebuild or self._default_rebuild

    def _default_rebuild(self) -> None:
        build_site(self.ctx, self.ctx.output_dir, clean_output=True)

    def handle(
        self,
        method: str,
        path: str,
        body: bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        """Dispatch one API request.

        Args:
            method: HTTP method.
            path: Request path below the API prefix, e.g. ``articles/my-id``.
            body: Raw request body.
            headers: Request headers; only Content-Type is consulted.

        Returns:
            ApiResponse. Unknown routes yield 404 ``{"error": "Not found"}``.
        """
        method = method.upper()
        segments = path.lstrip("/").split("/")
        resource = segments[0]

        if resource == "articles":
            if len(segments) == 1:
                if method == "GET":
                    return self.list_articles()
                if method == "POST":
                    return self._with_json(body, self.create_article)
            elif len(segments) == 2:
                article_id = unquote(segments[1])
                if method == "GET":
                    return self.read_article(article_id)
                if method == "PUT":
                    return self._with_json(
                        body, lambda data: self.update_article(article_id, data)
                    )
                if method == "DELETE":
                    return self.delete_article(article_id)
        elif resource == "generate" and method == "POST":
            return self.generate()
        elif resource == "upload" and method == "POST":
            content_type = (headers or {}).get("Content-Type", "")
            return self.upload(body, content_type)
        return _error(404, NOT_FOUND)

    def _with_json(self, body: bytes, handler: Callable[[dict], ApiResponse]) -> ApiResponse:
        try:
            data = json.loads(body.decode("utf-8") or "{}")
        except (UnicodeDecodeError, json.JSONDecodeError):
            return _error(400, "Invalid JSON body")
        if not isinstance(data, dict):
            return _error(400, "Invalid JSON body")
        return handler(data)

    def _lookup(self, article_id: str) -> tuple[list[ArticleMeta], ArticleMeta | None]:
        try:
            catalog = build_catalog(self.ctx)
        except StoreUnavailable:
            return [], None
        return catalog, find_article(catalog, article_id)

    def list_articles(self) -> ApiResponse:
        try:
            catalog = build_catalog(self.ctx)
        except StoreUnavailable as exc:
            logger.warning("Error building article list: %s", exc.message)
            catalog = []
        return ApiResponse(200, catalog_to_json(catalog))

    def read_article(self, article_id: str) -> ApiResponse:
        _, meta = self._lookup(article_id)
        if meta is None:
            return _error(404, NOT_FOUND)
        try:
            content = read_raw(self.ctx, meta.filename)
        except NotFound:
            return _error(404, NOT_FOUND)
        return ApiResponse(200, {"content": content})

    def create_article(self, data: dict) -> ApiResponse:
        title = data.get("title")
        description = data.get("description") or ""
        if not isinstance(title, str) or not isinstance(description, str):
            return _error(400, "title required")
        try:
            article_id = create_article(self.ctx, title, description)
        except ArticleExists as exc:
            return _error(409, exc.message)
        except ValidationError as exc:
            return _error(400, exc.message)
        return ApiResponse(200, {"id": article_id})

    def update_article(self, article_id: str, data: dict) -> ApiResponse:
        _, meta = self._lookup(article_id)
        if meta is None:
            return _error(404, NOT_FOUND)
        content = data.get("content")
        if not isinstance(content, str):
            return _error(400, "content required")
        write_raw(self.ctx, meta.filename, content)
        return ApiResponse(200, {"ok": True})

    def delete_article(self, article_id: str) -> ApiResponse:
        """Delete an article and the uploads only it referenced.

        References held by every other article file are collected first,
        including files whose metadata the catalog cannot parse; the
        article file is removed next, then each upload it alone referenced.
        Failing to remove an upload never fails the request.
        """
        _, meta = self._lookup(article_id)
        if meta is None:
            return _error(404, NOT_FOUND)

        still_used = self._uploads_referenced_elsewhere(meta.filename)

        try:
            content = read_raw(self.ctx, meta.filename)
            delete_article(self.ctx, meta.filename)
        except NotFound:
            return _error(404, NOT_FOUND)

        orphans = [p for p in extract_uploaded_images(content) if p not in still_used]
        deleted = delete_orphaned_uploads(self.ctx, orphans)
        return ApiResponse(200, {"ok": True, "deletedImages": deleted})

    def _uploads_referenced_elsewhere(self, filename: str) -> set[str]:
        """Collect upload paths referenced by every article file but ``filename``.

        Files the catalog would skip still count; only unreadable files are
        left out.
        """
        try:
            files = list_files(self.ctx)
        except StoreUnavailable:
            return set()
        referenced: set[str] = set()
        for other in files:
            if other == filename:
                continue
            try:
                referenced.update(extract_uploaded_images(read_raw(self.ctx, other)))
            except (NotFound, OSError, UnicodeDecodeError) as exc:
                logger.warning("Cannot scan %s for upload references: %s", other, exc)
        return referenced

    def generate(self) -> ApiResponse:
        try:
            self.rebuild()
        except BuildFailure as exc:
            logger.warning("Rebuild failed: %s", exc.message)
            return _error(500, exc.message)
        return ApiResponse(200, {"ok": True})

    def upload(self, body: bytes, content_type: str) -> ApiResponse:
        try:
            upload = _read_file_field(body, content_type)
        except FormParserError as exc:
            logger.info("Rejected upload body: %s", exc)
            upload = None
        if upload is None:
            return _error(400, "No file provided")
        original_name, data = upload
        try:
            url = save_upload(self.ctx, original_name, data)
        except OSError as exc:
            return _error(500, str(exc))
        return ApiResponse(200, {"url": url})


def _read_file_field(body: bytes, content_type: str) -> tuple[str, bytes] | None:
    """Extract the multipart field named ``file``.

    Returns:
        Tuple of (client filename, content), or None when there is no such
        file part.

    Raises:
        FormParserError: If the body is not a parseable multipart form.
    """
    parsed: list = []

    def on_field(field) -> None:
        pass

    def on_file(file) -> None:
        parsed.append(file)

    headers = {"Content-Type": content_type, "Content-Length": str(len(body))}
    try:
        parse_form(headers, io.BytesIO(body), on_field, on_file)
        for file in parsed:
            if file.field_name == b"file" and file.file_name:
                file.file_object.seek(0)
                name = file.file_name.decode("utf-8", errors="replace")
                return name, file.file_object.read()
        return None
    finally:
        # The parser still flushes each file after its callback runs
        for file in parsed:
            file.close()
