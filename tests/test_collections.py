from pathlib import Path

import pytest

from quire.collections import (
    TagEntry,
    build_archive_index,
    build_pages,
    build_tag_index,
    chunk,
    posts_for_month,
)
from quire.utils import DateParseError


class FakePost:
    def __init__(self, filename, title, tags=None):
        self.path = Path("posts") / filename
        self.title = title
        self.has_tags = tags is not None
        self.tags = tags.split() if tags else []


def test_tag_index_groups_sorts_and_keeps_store_order():
    posts = [
        FakePost("2023-01-01-a.md", "A", "python web"),
        FakePost("2023-02-01-b.md", "B"),
        FakePost("2023-03-01-c.md", "C", "clojure python"),
    ]
    index = build_tag_index(posts)
    assert list(index) == ["clojure", "python", "web"]
    assert index["python"] == [
        TagEntry("/2023/01/01/a/", "A"),
        TagEntry("/2023/03/01/c/", "C"),
    ]
    assert index["web"] == [("/2023/01/01/a/", "A")]
    assert all("B" not in [e.title for e in entries] for entries in index.values())
    assert len(index) == 3


def test_tag_index_uses_subdir():
    index = build_tag_index([FakePost("2023-01-01-a.md", "A", "x")], subdir="blog")
    assert index["x"][0].url == "/blog/2023/01/01/a/"


def test_archive_index_counts_newest_first():
    paths = [
        Path("2022-12-30-a.md"),
        Path("2023-01-02-b.md"),
        Path("2023-01-20-c.md"),
        Path("2023-03-01-d.md"),
    ]
    index = build_archive_index(paths)
    assert list(index.items()) == [("2023-03", 1), ("2023-01", 2), ("2022-12", 1)]
    assert index["2023-01"] == 2


def test_archive_index_names_bad_post():
    with pytest.raises(DateParseError) as excinfo:
        build_archive_index([Path("2023-01-02-b.md"), Path("undated.md")])
    assert excinfo.value.path == Path("undated.md")


def test_posts_for_month_newest_first():
    paths = [Path("2023-01-02-b.md"), Path("2023-01-20-c.md"), Path("2023-02-01-d.md")]
    assert posts_for_month(paths, "2023-01") == [Path("2023-01-20-c.md"), Path("2023-01-02-b.md")]
    assert posts_for_month(paths, "2024-01") == []


def test_chunk():
    assert chunk([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunk([], 3) == []
    with pytest.raises(ValueError):
        chunk([1], 0)


def test_build_pages_two_posts_one_per_page():
    newest_first = ["2023-01-02", "2023-01-01"]
    pages = build_pages(newest_first, 1)
    assert [p.index for p in pages] == [0, 1]
    assert pages[0].posts == ["2023-01-01"]
    assert (pages[0].has_older, pages[0].has_newer) == (False, True)
    assert pages[0].newer_index == 1
    assert pages[0].older_index is None
    assert pages[1].posts == ["2023-01-02"]
    assert (pages[1].has_older, pages[1].has_newer) == (True, False)
    assert pages[1].older_index == 0


def test_build_pages_middle_page_links_both_ways():
    pages = build_pages([5, 4, 3, 2, 1], 2)
    assert [p.posts for p in pages] == [[1], [3, 2], [5, 4]]
    assert (pages[1].has_older, pages[1].has_newer) == (True, True)


def test_build_pages_without_pagination():
    pages = build_pages([2, 1], 2)
    assert len(pages) == 1
    assert pages[0].posts == [2, 1]
    assert not pages[0].has_older and not pages[0].has_newer
    assert build_pages([], 2) == []
