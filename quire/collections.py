"""Derived post collections for Quire.

The aggregate pages are built from structures folded over the full post
set. All of them rely on the content store's ascending filename order, which
is chronological because post filenames start with their date. Newest-first
views reverse that order; nothing sorts by parsed date.

Key items:
- TagIndex / build_tag_index: Tag name -> posts declaring it.
- ArchiveIndex / build_archive_index: Month key -> post count, newest first.
- posts_for_month: Posts of one month, newest first.
- Page / build_pages: Fixed-size pages of the newest-first post list.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple

from .content import ContentUnit
from .urls import post_url
from .utils import basename, month_key


class TagEntry(NamedTuple):
    url: str
    title: str


class TagIndex(Mapping[str, list[TagEntry]]):
    """Mapping of tag name to ``(url, title)`` entries, keys ascending."""

    def __init__(self, mapping: dict[str, list[TagEntry]]):
        self._mapping = {key: list(mapping[key]) for key in sorted(mapping)}

    def __getitem__(self, key: str) -> list[TagEntry]:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagIndex({len(self._mapping)} tags)"


def build_tag_index(posts: Iterable[ContentUnit], subdir: str = "") -> TagIndex:
    """Build the tag index.

    Posts are scanned in store order and appended to every tag they declare,
    so entries within a tag stay oldest-first. Posts without a ``tags`` field
    are skipped.

    Args:
        posts: Posts in store order.
        subdir: Configured post output subdirectory.

    Returns:
        TagIndex with keys in ascending order.
    """
    tags: dict[str, list[TagEntry]] = {}
    for post in posts:
        if not post.has_tags:
            continue
        entry = TagEntry(post_url(post.path, subdir), post.title)
        for name in post.tags:
            tags.setdefault(name, []).append(entry)
    return TagIndex(tags)


class ArchiveIndex(Mapping[str, int]):
    """Mapping of ``yyyy-MM`` month key to post count, newest month first."""

    def __init__(self, counts: dict[str, int]):
        self._counts = {key: counts[key] for key in sorted(counts, reverse=True)}

    def __getitem__(self, key: str) -> int:
        return self._counts[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ArchiveIndex({len(self._counts)} months)"


def build_archive_index(paths: Iterable[Path]) -> ArchiveIndex:
    """Count posts per month.

    Raises:
        DateParseError: If a post filename has no date prefix.
    """
    counts: dict[str, int] = {}
    for path in paths:
        key = month_key(path)
        counts[key] = counts.get(key, 0) + 1
    return ArchiveIndex(counts)


def posts_for_month(paths: Sequence[Path], key: str) -> list[Path]:
    """Return the posts whose filename starts with ``key``, newest first."""
    return [path for path in reversed(list(paths)) if basename(path).startswith(key)]


@dataclass
class Page:
    """One page of the latest-posts listing.

    Index 0 holds the oldest posts and the highest index the newest.

    Attributes:
        index: Page number.
        posts: Posts on this page, newest first.
        has_older: Whether to link to ``index - 1``.
        has_newer: Whether to link to ``index + 1``.
    """

    index: int
    posts: list[Any] = field(default_factory=list)
    has_older: bool = False
    has_newer: bool = False

    @property
    def older_index(self) -> int | None:
        return self.index - 1 if self.has_older else None

    @property
    def newer_index(self) -> int | None:
        return self.index + 1 if self.has_newer else None


def chunk(items: Sequence[Any], size: int) -> list[list[Any]]:
    """Split ``items`` into windows of ``size``; the last may be shorter."""
    if size < 1:
        raise ValueError("size must be positive")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


def build_pages(posts: Sequence[Any], page_size: int) -> list[Page]:
    """Paginate the newest-first post list.

    Windows are cut from the newest end, then numbered so the oldest window
    is page 0 and the newest is the highest index. Page 0 only links newer,
    the highest page only links older, pages between link both ways. When
    everything fits on one page there are no links at all.

    Args:
        posts: Posts, newest first.
        page_size: Posts per page.

    Returns:
        Pages ordered by index.
    """
    windows = list(reversed(chunk(posts, page_size)))
    max_index = len(windows) - 1
    paginate = len(posts) > page_size
    pages = []
    for index, window in enumerate(windows):
        pages.append(
            Page(
                index=index,
                posts=window,
                has_older=paginate and index > 0,
                has_newer=paginate and index < max_index,
            )
        )
    return pages
