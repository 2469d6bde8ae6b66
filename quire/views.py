"""Aggregate page views for Quire.

Each view folds over the post set, builds an HTML body with the markup
helpers and renders it through the default template, returning
``(output_path, document)`` pairs for the orchestrator to write.

Views:
- tags_view: ``tags/index.html``.
- latest_posts_view: ``latest-posts/{n}/index.html`` per page.
- archives_view: ``archives/index.html`` and one page per month.
- alias_view: Redirect pages for a unit's ``alias`` metadata.
"""

from __future__ import annotations

from markupsafe import Markup

from .collections import Page, build_archive_index, build_pages, build_tag_index, posts_for_month
from .config import SiteConfig
from .content import ContentStore, ContentUnit
from .markup import link_to, tag
from .templates import TemplateEngine
from .urls import alias_output_path, post_url
from .utils import format_date, format_month

Output = tuple[str, str]


def _listing_metadata(config: SiteConfig, title: str, **extra) -> dict:
    return {"title": title, "template": config.default_template, **extra}


def snippet(unit: ContentUnit, config: SiteConfig) -> Markup:
    """Render a post for display on index pages."""
    return tag(
        "div",
        tag("h2", link_to(post_url(unit.path, config.post_out_subdir), unit.title)),
        tag("p", format_date(unit.path, "%d %b %Y"), class_="publish_date"),
        tag("p", Markup(unit.body)),
    )


def pager(page: Page) -> Markup:
    """Navigation links for one latest-posts page."""
    links = []
    if page.has_older:
        links.append(
            tag(
                "div",
                link_to(f"/latest-posts/{page.older_index}/", Markup("&laquo; Older Entries")),
                class_="pager-left",
            )
        )
    if page.has_newer:
        links.append(
            tag(
                "div",
                link_to(f"/latest-posts/{page.newer_index}/", Markup("Newer Entries &raquo;")),
                class_="pager-right",
            )
        )
    return Markup("").join(links)


def tags_view(store: ContentStore, engine: TemplateEngine) -> list[Output]:
    config = store.config
    index = build_tag_index(store.read_all("posts"), config.post_out_subdir)
    body = Markup("").join(
        [
            tag("h2", "Tags"),
            *(
                tag(
                    "h4",
                    tag("a", name, name=name),
                    tag("ul", [tag("li", link_to(url, title)) for url, title in entries]),
                )
                for name, entries in index.items()
            ),
        ]
    )
    return [("tags/index.html", engine.render(_listing_metadata(config, "Tags"), body))]


def latest_posts_view(store: ContentStore, engine: TemplateEngine) -> list[Output]:
    """Render the paginated listing of posts, newest page last.

    When ``blog_as_index`` is set the newest page is also written as the
    site's ``index.html``.
    """
    config = store.config
    posts = list(reversed(store.read_all("posts")))
    pages = build_pages(posts, config.posts_per_page)
    metadata = _listing_metadata(
        config, config.site_title, description=config.site_description
    )
    outputs: list[Output] = []
    for page in pages:
        body = Markup("").join([*(snippet(unit, config) for unit in page.posts), pager(page)])
        outputs.append((f"latest-posts/{page.index}/index.html", engine.render(metadata, body)))
    if config.blog_as_index and outputs:
        outputs.append(("index.html", outputs[-1][1]))
    return outputs


def month_path(key: str) -> str:
    return f"archives/{key.replace('-', '/')}/"


def archives_view(store: ContentStore, engine: TemplateEngine) -> list[Output]:
    """Render the archive index and one listing page per month."""
    config = store.config
    paths = store.list_units("posts")
    index = build_archive_index(paths)
    metadata = _listing_metadata(config, "Archives")
    body = Markup("").join(
        [
            tag("h2", "Archives"),
            tag(
                "ul",
                [
                    tag("li", link_to(f"/{month_path(key)}", format_month(key)), f" ({count})")
                    for key, count in index.items()
                ],
            ),
        ]
    )
    outputs: list[Output] = [("archives/index.html", engine.render(metadata, body))]
    for key in index:
        month_body = Markup("").join(
            snippet(store.read(path), config) for path in posts_for_month(paths, key)
        )
        outputs.append((f"{month_path(key)}index.html", engine.render(metadata, month_body)))
    return outputs


def alias_view(unit: ContentUnit, target_url: str) -> list[Output]:
    """Render redirect pages from each of the unit's aliases to ``target_url``."""
    document = str(
        tag(
            "html",
            tag(
                "head",
                tag("meta", http_equiv="content-type", content="text/html; charset=utf-8"),
                tag("meta", http_equiv="refresh", content=f"0;url={target_url}"),
            ),
        )
    )
    return [(alias_output_path(alias), document) for alias in unit.aliases]
