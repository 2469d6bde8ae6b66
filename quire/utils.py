"""Utility functions for Quire.

This module contains small helpers used throughout the Quire codebase:
filename date handling, date formatting, string processing and path handling.

Key functions:
    date_token: Extract the yyyy-MM-dd prefix from a post filename.
    post_date: Parse a post filename's date prefix into a datetime.
    month_key: Return the yyyy-MM archive bucket for a post filename.
    format_date: Reformat a post filename's date with strftime.
    rfc822_date: Format a datetime for RSS pubDate elements.
    titleize: Derive a fallback title from a filename.
    split_words: Normalize whitespace-separated or list metadata values.
    ensure_clean_dir: Recreate the output directory empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any

DATE_TOKEN_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?=-|$)")


class DateParseError(ValueError):
    """A post filename does not start with a valid yyyy-MM-dd date.

    Attributes:
        path: The offending content path.
    """

    def __init__(self, path: Path | str, reason: str = "missing yyyy-MM-dd date prefix"):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path.name}: {reason}")


def basename(path: Path | str) -> str:
    """Return the filename of ``path`` without directory and extension."""
    return Path(path).stem


def date_token(path: Path | str) -> str:
    """Extract the ``yyyy-MM-dd`` date prefix from a post filename.

    Args:
        path: Path (or filename) of the post.

    Returns:
        The date token, e.g. ``"2024-01-15"``.

    Raises:
        DateParseError: If the filename does not start with a valid date.

    Examples:
        >>> date_token("posts/2024-01-15-hello-world.md")
        '2024-01-15'
    """
    match = DATE_TOKEN_RE.match(basename(path))
    if not match:
        raise DateParseError(path)
    token = match.group(0)
    try:
        datetime.strptime(token, "%Y-%m-%d")
    except ValueError as exc:
        raise DateParseError(path, f"invalid date {token!r}") from exc
    return token


def post_date(path: Path | str) -> datetime:
    """Parse the date prefix of a post filename.

    Raises:
        DateParseError: If the filename does not start with a valid date.
    """
    return datetime.strptime(date_token(path), "%Y-%m-%d")


def month_key(path: Path | str) -> str:
    """Return the ``yyyy-MM`` archive bucket for a post filename."""
    return date_token(path)[:7]


def format_date(path: Path | str, fmt: str) -> str:
    """Reformat the date prefix of a post filename.

    Args:
        path: Path of the post.
        fmt: strftime format string.

    Returns:
        The formatted date.
    """
    return post_date(path).strftime(fmt)


def format_month(key: str, fmt: str = "%B %Y") -> str:
    """Format a ``yyyy-MM`` month key, e.g. ``"2024-01"`` -> ``"January 2024"``."""
    return datetime.strptime(key, "%Y-%m").strftime(fmt)


def rfc822_date(value: datetime) -> str:
    """Format a datetime as an RFC-822 date for RSS.

    The day of month is not zero padded and the offset is always UTC.

    Examples:
        >>> rfc822_date(datetime(2024, 1, 5))
        'Fri, 5 Jan 2024 00:00:00 +0000'
    """
    return f"{value:%a}, {value.day} {value:%b %Y %H:%M:%S} +0000"


def titleize(filename: str) -> str:
    """Turn a filename into a title, e.g. ``2024-01-15-hello-world.md`` -> ``Hello World``.

    A leading date is dropped and hyphens or underscores separate words.
    """
    stem = DATE_TOKEN_RE.sub("", Path(filename).stem, count=1)
    words = re.findall(r"[^\s\-_]+", stem)
    return " ".join(word.capitalize() for word in words) or "Untitled"


def split_words(value: Any) -> list[str]:
    """Normalize a metadata value holding several words.

    Strings are split on whitespace; lists are stringified item by item.
    ``None`` yields an empty list.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if str(item).strip()]
    return str(value).split()


def ensure_clean_dir(path: Path) -> None:
    """Recreate ``path`` as an empty directory, removing anything already there."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True)
