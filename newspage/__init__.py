"""NewsPage: a file-backed news site generator and editor.

Articles are Markdown files with a small metadata block. The package turns
them into a static, client-rendered site and exposes an editing API over the
same files.

The main entry point is the CLI module, which provides commands for building
the site, managing articles, editing the site configuration and running the
editing server.
"""

__all__ = ["__version__"]
__version__ = "1.0.0"
