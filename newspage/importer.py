"""Flavortown importer for NewsPage.

Turns the Hack Club Flavortown projects of the signed-in user into
articles: one article per project, with the project's devlogs as the body.
Media attached to a devlog is linked from the Flavortown host, never
downloaded into ``uploads/``.

Key pieces:
- FlavortownClient: Thin synchronous client for the Flavortown REST API.
- project_metadata / render_devlogs: Article metadata and body for a project.
- import_projects: Fetch every project and write it to the article store.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from .context import SiteContext
from .errors import ImportFailure
from .frontmatter import FrontMatter
from .store import write_article
from .utils import slugify

logger = logging.getLogger(__name__)

FLAVORTOWN_URL = "https://flavortown.hackclub.com"
DEFAULT_BANNER = "/assets/default-banner-3d4e1b67.png"

_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


class FlavortownClient:
    """Synchronous client for the Flavortown API.

    Attributes:
        base_url: Flavortown host, also used to absolutize media URLs.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = FLAVORTOWN_URL,
        http_client: httpx.Client | None = None,
    ):
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client or httpx.Client(timeout=30.0)

    def __enter__(self) -> FlavortownClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http_client.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}/api/v1/{path}"
        try:
            response = self._http_client.get(
                url,
                params=params,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            data = response.json()
        except httpx.HTTPError as exc:
            raise ImportFailure(f"Request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise ImportFailure(f"Invalid JSON from {url} (HTTP {response.status_code})") from exc

        if not isinstance(data, dict):
            raise ImportFailure(f"Unexpected response from {url}")
        if data.get("error"):
            raise ImportFailure(str(data["error"]))
        if response.is_error:
            raise ImportFailure(f"HTTP {response.status_code} from {url}")
        return data

    def current_user(self) -> dict[str, Any]:
        return self._get("users/me")

    def project(self, project_id: int) -> dict[str, Any]:
        return self._get(f"projects/{project_id}")

    def devlogs(self, project_id: int) -> list[dict[str, Any]]:
        """Return every devlog of a project, following pagination."""
        devlogs: list[dict[str, Any]] = []
        page: int | None = 1
        while page is not None:
            data = self._get(f"projects/{project_id}/devlogs", params={"page": page})
            devlogs.extend(data.get("devlogs") or [])
            next_page = (data.get("pagination") or {}).get("next_page")
            page = next_page if isinstance(next_page, int) and next_page > page else None
        return devlogs


@dataclass
class ImportReport:
    """Outcome of an import run.

    Attributes:
        written: Filenames written to the article directory.
        skipped: Filenames left alone because they already existed.
        failed: Project ids that could not be fetched.
    """

    written: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


def format_tracked_time(seconds: int | float | None) -> str:
    """Format a duration as ``<hours>h <minutes>m``.

    Examples:
        >>> format_tracked_time(3725)
        '1h 2m'
    """
    total = int(seconds or 0)
    return f"{total // 3600}h {(total % 3600) // 60}m"


def _iso_day(value: Any) -> str:
    if isinstance(value, str) and _ISO_DAY_RE.match(value):
        return value[:10]
    return ""


def _absolute(url: str, base_url: str) -> str:
    if url.startswith(("http://", "https://")):
        return url
    return base_url + url


def _one_line(text: Any) -> str:
    return " ".join(str(text or "").split())


def project_metadata(project: dict[str, Any], base_url: str = FLAVORTOWN_URL) -> FrontMatter:
    """Build the metadata block for a project article.

    The id is the slug of the project title, the date is the day the
    project was created, and the thumbnail is the project banner (or the
    Flavortown default banner).
    """
    title = _one_line(project.get("title"))
    return FrontMatter(
        id=slugify(title),
        title=title,
        date=_iso_day(project.get("created_at")),
        description=_one_line(project.get("description")),
        thumbnail=_absolute(project.get("banner_url") or DEFAULT_BANNER, base_url),
    )


def render_devlogs(
    title: str,
    devlogs: list[dict[str, Any]],
    base_url: str = FLAVORTOWN_URL,
) -> str:
    """Render a project's devlogs as the Markdown body of its article.

    Each devlog becomes a section headed by its tracked time and date.
    Image media is embedded as a Markdown image, video media as a
    ``<video>`` element; other media types are left out.
    """
    sections: list[str] = []
    for devlog in devlogs:
        heading = (
            f"## {format_tracked_time(devlog.get('duration_seconds'))}"
            f" - {_iso_day(devlog.get('created_at'))}"
        )
        parts = [heading, str(devlog.get("body") or "").strip()]
        for media in devlog.get("media") or []:
            url = _absolute(str(media.get("url") or ""), base_url)
            content_type = str(media.get("content_type") or "")
            if content_type.startswith("image/"):
                parts.append(f"![{title}]({url})")
            elif content_type.startswith("video/"):
                parts.append(f'<video controls src="{url}"></video>')
        sections.append("\n\n".join(part for part in parts if part))
    return "\n\n".join(sections) + "\n" if sections else ""


def import_projects(
    ctx: SiteContext,
    client: FlavortownClient,
    overwrite: bool = False,
) -> ImportReport:
    """Write one article per Flavortown project of the signed-in user.

    Args:
        ctx: Site context.
        client: Authenticated Flavortown client.
        overwrite: Replace articles that already exist. Otherwise they are
            skipped.

    Returns:
        ImportReport listing written, skipped and failed items.

    Raises:
        ImportFailure: If the signed-in user cannot be fetched. Failures for
            a single project are logged and recorded in the report.
    """
    user = client.current_user()
    logger.info("Signed in to Flavortown as %s", user.get("display_name"))

    report = ImportReport()
    for project_id in user.get("project_ids") or []:
        try:
            project = client.project(project_id)
            devlogs = client.devlogs(project_id)
        except ImportFailure as exc:
            logger.warning("Skipping Flavortown project %s: %s", project_id, exc.message)
            report.failed.append(project_id)
            continue

        meta = project_metadata(project, client.base_url)
        if not meta.id:
            logger.warning("Skipping Flavortown project %s: title has no usable characters", project_id)
            report.failed.append(project_id)
            continue

        filename = f"{meta.id}.md"
        if ctx.article_path(filename).exists() and not overwrite:
            report.skipped.append(filename)
            continue
        write_article(ctx, filename, meta, render_devlogs(meta.title, devlogs, client.base_url))
        report.written.append(filename)
    return report
