"""Quire static blog compiler.

This package compiles a directory of posts and standalone pages into a fully
assembled static website: rendered HTML pages, an RSS feed, an XML sitemap,
a tag index, monthly archives and a paginated listing of recent posts.

The main entry point is the CLI module, which provides commands for building
the site, watching it for changes, serving it locally and deploying it.

Every build recomputes the whole site from the content directory; nothing is
cached between builds.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
