"""Metadata extractors for Quire.

A unit is a metadata header between ``---`` lines followed by its body.
Each extractor returns part of the result for one source file and the
composite merges them.

Key classes:
- FrontmatterExtractor: Parses the YAML metadata header and splits off the body.
- TitleExtractor: Supplies a title from the filename when the header has none.
- CompositeMetadataExtractor: Runs extractors in order and merges their results.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .utils import titleize

FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(.*?)\n?---[ \t]*(?:\n|\Z)", re.DOTALL)


class ContentParseError(ValueError):
    """A content unit has a malformed metadata header.

    Attributes:
        path: Path to the offending source file.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


def extract_frontmatter(text: str, path: Path) -> tuple[dict[str, Any], str]:
    """Extract the YAML metadata header from content.

    Args:
        text: Raw file content.
        path: Path of the file, used in error messages.

    Returns:
        Tuple of (metadata dict, remaining body). Content without a header
        yields an empty dict and the unchanged text.

    Raises:
        ContentParseError: If the header is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise ContentParseError(path, f"Malformed metadata header: {exc}") from exc
    if not isinstance(data, dict):
        raise ContentParseError(path, "Metadata header must be a mapping")
    return {str(k): v for k, v in data.items()}, text[match.end() :]


class FrontmatterExtractor:
    """Parses the metadata header between ``---`` markers."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract the header from content.

        Returns:
            Dictionary with ``metadata`` and ``body`` keys.
        """
        metadata, body = extract_frontmatter(content, path)
        return {"metadata": metadata, "body": body}


class TitleExtractor:
    """Falls back to a titleized filename for units without a title."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        return {"title": titleize(path.name)}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Extractors run in order; later results are merged over earlier ones,
    except that an explicit ``title`` in the parsed header always wins.
    """

    def __init__(self, extractors: list | None = None):
        self.extractors = (
            [TitleExtractor(), FrontmatterExtractor()] if extractors is None else list(extractors)
        )

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from content.

        Args:
            content: Raw source content.
            path: Path to the source file.

        Returns:
            Dictionary with ``metadata`` (the header, with a guaranteed
            ``title``) and ``body`` keys.
        """
        result: dict[str, Any] = {}
        for extractor in self.extractors:
            result.update(extractor.extract(content, path))
        metadata = dict(result.get("metadata", {}))
        if not metadata.get("title") and "title" in result:
            metadata["title"] = result["title"]
        return {"metadata": metadata, "body": result.get("body", content)}


default_metadata_extractor = CompositeMetadataExtractor()
