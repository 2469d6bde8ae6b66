"""URL derivation for Quire.

Post URLs come from the filename convention ``yyyy-MM-dd-slug.ext``; page
output paths mirror the page's location under the pages directory.
"""

from __future__ import annotations

from pathlib import Path

from .utils import DateParseError, basename, date_token

DEFAULT_EXTENSION = ".html"


def post_url(path: Path | str, subdir: str = "") -> str:
    """Return the canonical URL of a post.

    The basename is split into at most four hyphen-delimited parts (year,
    month, day and the slug, which may itself contain hyphens).

    Args:
        path: Path of the post source file.
        subdir: Optional output subdirectory prepended to the URL.

    Returns:
        URL such as ``/2024/01/15/hello-world/`` or
        ``/blog/2024/01/15/hello-world/``.

    Raises:
        DateParseError: If the filename lacks a date prefix or a slug.
    """
    date_token(path)
    parts = basename(path).split("-", 3)
    if len(parts) < 4 or not parts[3]:
        raise DateParseError(path, "expected yyyy-MM-dd-slug")
    url = "".join(f"/{part}" for part in parts) + "/"
    subdir = subdir.strip("/")
    return f"/{subdir}{url}" if subdir else url


def post_output_path(path: Path | str, subdir: str = "") -> str:
    """Return the output file of a post, relative to the output root."""
    return f"{post_url(path, subdir).strip('/')}/index.html"


def normalize_extension(extension: str | None) -> str:
    """Return ``extension`` with a leading dot, defaulting to ``.html``."""
    if not extension:
        return DEFAULT_EXTENSION
    extension = str(extension).strip()
    return extension if extension.startswith(".") else f".{extension}"


def site_url(path: Path | str, pages_dir: Path, extension: str | None = None) -> str:
    """Return the output path of a standalone page.

    Args:
        path: Path of the page source file.
        pages_dir: Directory the page lives under.
        extension: Optional output extension overriding ``.html``.

    Returns:
        Relative output path such as ``about.html`` or ``docs/feed.xml``.
    """
    rel = Path(path).relative_to(pages_dir)
    return rel.with_suffix(normalize_extension(extension)).as_posix()


def alias_output_path(alias: str) -> str:
    """Return the file written for a redirect alias.

    Aliases naming a directory (trailing slash or no extension) get an
    ``index.html`` inside it.
    """
    cleaned = alias.strip().lstrip("/")
    if not cleaned or cleaned.endswith("/") or not Path(cleaned).suffix:
        return f"{cleaned.rstrip('/')}/index.html".lstrip("/")
    return cleaned
