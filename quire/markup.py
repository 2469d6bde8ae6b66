"""HTML construction helpers for Quire.

This module builds markup from Python values. The builders return
``markupsafe.Markup`` so their output can be nested and passed into templates
without being escaped twice, while plain strings are always escaped.

The same helpers are exposed to expression-mode templates.

Functions:
    escape: Escape a value for inclusion in HTML.
    tag: Build an element from a name, children and attributes.
    link_to: Build an anchor element.
    include_css: Build stylesheet link elements.
    include_js: Build script elements.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from markupsafe import Markup, escape

__all__ = ["Markup", "escape", "include_css", "include_js", "link_to", "tag"]

VOID_ELEMENTS = frozenset(
    {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "wbr"}
)


def _attr_name(name: str) -> str:
    # class_ -> class, http_equiv -> http-equiv
    return name.rstrip("_").replace("_", "-")


def _render_attrs(attrs: dict[str, Any]) -> str:
    parts = []
    for name, value in attrs.items():
        if value is None or value is False:
            continue
        key = _attr_name(name)
        if value is True:
            parts.append(f" {key}")
        else:
            parts.append(f' {key}="{escape(value)}"')
    return "".join(parts)


def _render_children(children: Iterable[Any]) -> str:
    rendered = []
    for child in children:
        if child is None:
            continue
        if isinstance(child, (str, Markup)):
            rendered.append(str(escape(child)))
        elif isinstance(child, Iterable):
            rendered.append(_render_children(child))
        else:
            rendered.append(str(escape(child)))
    return "".join(rendered)


def tag(name: str, /, *children: Any, **attrs: Any) -> Markup:
    """Build an HTML element.

    Args:
        name: Element name.
        *children: Strings (escaped), Markup (verbatim), nested iterables
            (flattened) or None (skipped).
        **attrs: Attributes; ``None``/``False`` are omitted and ``True``
            renders a bare attribute.

    Returns:
        The element as Markup.

    Examples:
        >>> tag("a", "Tom & Jerry", href="/t/", class_="x")
        Markup('<a href="/t/" class="x">Tom &amp; Jerry</a>')
    """
    opening = f"<{name}{_render_attrs(attrs)}"
    if name.lower() in VOID_ELEMENTS and not children:
        return Markup(f"{opening} />")
    return Markup(f"{opening}>{_render_children(children)}</{name}>")


def link_to(url: str, *children: Any, **attrs: Any) -> Markup:
    """Build an anchor pointing at ``url``."""
    return tag("a", *children, href=url, **attrs)


def include_css(*urls: str) -> Markup:
    return Markup("").join(
        tag("link", type="text/css", href=url, rel="stylesheet") for url in urls
    )


def include_js(*urls: str) -> Markup:
    return Markup("").join(tag("script", type="text/javascript", src=url) for url in urls)

