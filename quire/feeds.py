"""Feed generation for Quire.

This module generates the syndication and indexing documents (RSS, sitemap)
from site content. Feed generation is separate from build orchestration and
each format is a FeedGenerator subclass, so new formats can be registered
without touching the existing ones.

Classes:
    FeedGenerator: Base class for feed generators.
    RSSGenerator: Generates the RSS 2.0 feed of the newest posts.
    SitemapGenerator: Generates sitemap.xml.
    FeedRegistry: Registry for managing feed generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import urljoin

from markupsafe import escape

from .content import ContentStore
from .parallel import ordered_map
from .urls import post_url, site_url
from .utils import post_date, rfc822_date
from .writer import OutputWriter

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
XHTML_STRICT_DOCTYPE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
    '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">'
)
RSS_ITEM_LIMIT = 10


class FeedGenerator(ABC):
    """Abstract base class for feed generators.

    Subclasses implement one document format. Generators depend only on the
    content store and URL derivation, never on rendered pages, so they can
    run in any order relative to page rendering.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output path of the document, relative to the output root."""
        ...

    @abstractmethod
    def generate(self, store: ContentStore) -> str:
        """Generate the document.

        Args:
            store: Content store for the build.

        Returns:
            The document text.
        """
        ...

    def write(self, writer: OutputWriter, store: ContentStore) -> str:
        """Generate the document and write it.

        Returns:
            The output filename.
        """
        writer.write(self.filename, self.generate(store))
        return self.filename


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the ten newest posts.

    Newest means last in store order; a post's ``pubDate`` comes from its
    filename date. A post whose date cannot be parsed fails the whole feed.
    """

    @property
    def filename(self) -> str:
        return "rss-feed"

    def item(self, store: ContentStore, path: Path) -> str:
        """Build the ``<item>`` element for one post."""
        config = store.config
        unit = store.read(path)
        link = urljoin(config.site_url, post_url(path, config.post_out_subdir))
        pub_date = rfc822_date(post_date(path))
        return (
            f"<item><title>{escape(unit.title)}</title>"
            f"<link>{escape(link)}</link>"
            f"<pubDate>{pub_date}</pubDate>"
            f"<description>{escape(unit.body)}</description></item>"
        )

    def generate(self, store: ContentStore) -> str:
        config = store.config
        newest = list(reversed(store.list_units("posts")))[:RSS_ITEM_LIMIT]
        items = ordered_map(lambda path: self.item(store, path), newest, config.workers)
        return "".join(
            [
                XML_DECLARATION,
                XHTML_STRICT_DOCTYPE,
                '<rss version="2.0"><channel>',
                f"<title>{escape(config.site_title)}</title>",
                f"<link>{escape(config.site_url)}</link>",
                f"<description>{escape(config.site_description)}</description>",
                *items,
                "</channel></rss>",
            ]
        )


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org 0.9 protocol.

    Lists the site root, then every post, then every page, with no
    priority or change-frequency metadata.
    """

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def locations(self, store: ContentStore) -> list[str]:
        config = store.config
        base = config.site_url.rstrip("/")
        pages_dir = config.dir_path("pages")
        locations = [config.site_url]
        locations.extend(
            f"{base}{post_url(path, config.post_out_subdir)}"
            for path in store.list_units("posts")
        )
        locations.extend(
            f"{base}/{site_url(path, pages_dir, store.read(path).extension)}"
            for path in store.list_units("pages")
        )
        return locations

    def generate(self, store: ContentStore) -> str:
        entries = "".join(f"<url><loc>{escape(loc)}</loc></url>" for loc in self.locations(store))
        return (
            f"{XML_DECLARATION}"
            f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
        )


class FeedRegistry:
    """Registry for managing feed generators.

    Attributes:
        generators: Registered feed generators, in registration order.
    """

    def __init__(self) -> None:
        self.generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self.generators.append(generator)

    def __iter__(self):
        return iter(self.generators)


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with the RSS and sitemap generators."""
    registry = FeedRegistry()
    registry.register(RSSGenerator())
    registry.register(SitemapGenerator())
    return registry
