"""Uploaded media handling for NewsPage.

Uploads live in ``<root>/uploads`` under generated names and are referenced
from article bodies as ``/uploads/<name>``. There is no reference index:
references are found by scanning article text whenever they are needed.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Iterable

from .context import UPLOADS_DIR, SiteContext
from .utils import is_within

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = f"/{UPLOADS_DIR}/"

# Markdown image or link targets: ![alt](/uploads/x.png) or [text](/uploads/x.pdf "title")
UPLOAD_REF_RE = re.compile(r"\]\((/uploads/[^)\s\"']+)")

# Stored names keep only a plain alphanumeric extension
_EXTENSION_RE = re.compile(r"\.([A-Za-z0-9]+)\Z")


def extract_uploaded_images(text: str) -> list[str]:
    """Return the upload paths referenced by Markdown targets in ``text``.

    Args:
        text: Article text.

    Returns:
        Paths such as ``/uploads/abc.png`` in order of first appearance.

    Examples:
        >>> extract_uploaded_images("![a](/uploads/x.png) [b](/uploads/x.png)")
        ['/uploads/x.png']
    """
    seen: list[str] = []
    for path in UPLOAD_REF_RE.findall(text):
        if path not in seen:
            seen.append(path)
    return seen


def upload_name(original_name: str) -> str:
    """Generate a unique stored name keeping the lowercased extension."""
    match = _EXTENSION_RE.search(original_name)
    suffix = f".{match.group(1).lower()}" if match else ""
    return f"{uuid.uuid4().hex}{suffix}"


def save_upload(ctx: SiteContext, original_name: str, data: bytes) -> str:
    """Store uploaded bytes under a generated name.

    Args:
        ctx: Site context.
        original_name: Client-supplied filename; only its extension is kept.
        data: File content.

    Returns:
        Site-relative URL of the stored file.

    Raises:
        OSError: If the file cannot be written.
    """
    name = upload_name(original_name)
    ctx.uploads_dir.mkdir(parents=True, exist_ok=True)
    (ctx.uploads_dir / name).write_bytes(data)
    logger.info("Stored upload %s (%d bytes)", name, len(data))
    return f"{UPLOAD_PREFIX}{name}"


def delete_orphaned_uploads(ctx: SiteContext, paths: Iterable[str]) -> int:
    """Delete upload files, ignoring individual failures.

    Args:
        ctx: Site context.
        paths: Site-relative upload paths known to be unreferenced.

    Returns:
        Number of paths attempted.
    """
    attempted = 0
    for url_path in paths:
        attempted += 1
        target = ctx.root / url_path.lstrip("/")
        if not is_within(ctx.uploads_dir, target):
            logger.warning("Refusing to delete %s outside the uploads directory", url_path)
            continue
        try:
            target.unlink()
        except OSError as exc:
            logger.debug("Could not delete orphaned upload %s: %s", url_path, exc)
    return attempted
