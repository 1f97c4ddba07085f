"""Error types for NewsPage.

Every error raised by the content pipeline derives from NewsPageError so
callers (the CLI and the editing API) can map them to exit codes and HTTP
statuses in one place.

Hierarchy:
- NotFound: a referenced article or asset does not exist.
- ValidationError: required input is missing or invalid.
- ArticleExists: creating an article would overwrite an existing file.
- StoreUnavailable: the article directory is missing or unreadable.
- ArticleParseError: a single article file could not be parsed.
- BuildFailure: a site build step failed.
- BundleError: compiling a client script failed.
- ImportFailure: fetching from the Flavortown API failed.
"""

from __future__ import annotations

from pathlib import Path


class NewsPageError(Exception):
    """Base class for all NewsPage errors.

    Attributes:
        message: Human-readable error message.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(NewsPageError):
    """A referenced article or asset does not exist."""


class ValidationError(NewsPageError):
    """Required input is empty or malformed."""


class ArticleExists(ValidationError):
    """An article file with the derived filename already exists."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Article already exists: {filename}")


class StoreUnavailable(NewsPageError):
    """The article directory does not exist or cannot be read."""


class ArticleParseError(NewsPageError):
    """A single article file could not be read or parsed.

    Attributes:
        filename: Name of the offending file inside the article directory.
    """

    def __init__(self, filename: str, message: str):
        self.filename = filename
        super().__init__(f"{filename}: {message}")


class BuildFailure(NewsPageError):
    """A site build step failed.

    The message carries the underlying diagnostic verbatim.

    Attributes:
        source_path: Optional path of the file that caused the failure.
        original_error: The exception that was caught, if any.
    """

    def __init__(
        self,
        message: str,
        source_path: Path | None = None,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.original_error = original_error
        super().__init__(message)


class BundleError(BuildFailure):
    """Compiling a client-side entry script failed."""


class ImportFailure(NewsPageError):
    """A request to the Flavortown API failed or returned an error payload."""
