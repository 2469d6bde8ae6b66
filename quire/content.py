"""Content loading for Quire.

This module discovers posts and pages under the content directory and reads
them into ContentUnit objects: the parsed metadata header plus a body that is
rendered to HTML lazily, at most once.

Key classes:
- ContentUnit: One post or page with metadata and a lazily rendered body.
- ContentStore: Lists units in filename order and memoises reads for a build.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .config import SiteConfig
from .extractors import CompositeMetadataExtractor, ContentParseError, default_metadata_extractor
from .renderers import RendererRegistry, default_renderer_registry
from .urls import normalize_extension
from .utils import split_words

if TYPE_CHECKING:
    from .protocols import ContentRenderer

CONTENT_KINDS = ("posts", "pages")


@dataclass
class ContentUnit:
    """A post or standalone page.

    Attributes:
        path: Path to the source file.
        kind: ``posts`` or ``pages``.
        metadata: Parsed metadata header; always holds a ``title``.
        source: Raw body text after the header.
        renderer: Body renderer chosen for the file type.
    """

    path: Path
    kind: str
    metadata: dict[str, Any]
    source: str
    renderer: ContentRenderer | None = None
    _body: str | None = field(default=None, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    @property
    def body(self) -> str:
        """Rendered HTML body, computed on first access only."""
        if self._body is None:
            with self._lock:
                if self._body is None:
                    if self.renderer is None:
                        self._body = self.source
                    else:
                        self._body = self.renderer.render(self.source)
        return self._body

    @property
    def title(self) -> str:
        return str(self.metadata.get("title", ""))

    @property
    def tags(self) -> list[str]:
        return split_words(self.metadata.get("tags"))

    @property
    def has_tags(self) -> bool:
        return self.metadata.get("tags") is not None

    @property
    def template(self) -> str | None:
        value = self.metadata.get("template")
        return str(value) if value else None

    @property
    def extension(self) -> str:
        return normalize_extension(self.metadata.get("extension"))

    @property
    def aliases(self) -> list[str]:
        return split_words(self.metadata.get("alias"))

    def is_empty(self) -> bool:
        return not self.source.strip()


class ContentStore:
    """Lists and reads content units for one build.

    Reads are memoised so the aggregators, which each re-scan the full post
    set, parse every file only once. The store is safe to share between
    worker threads.

    Attributes:
        config: Site configuration.
    """

    def __init__(
        self,
        config: SiteConfig,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.config = config
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self._cache: dict[Path, ContentUnit] = {}
        self._lock = threading.Lock()

    def list_units(self, kind: str) -> list[Path]:
        """List the source files of ``kind`` in ascending filename order.

        Args:
            kind: ``posts`` or ``pages``.

        Returns:
            Sorted list of paths; empty when the directory does not exist.

        Raises:
            ValueError: For an unknown kind.
        """
        if kind not in CONTENT_KINDS:
            raise ValueError(f"Unknown content kind: {kind}")
        root = self.config.dir_path(kind)
        if not root.is_dir():
            return []
        files = [
            path
            for path in root.rglob("*")
            if path.is_file()
            and not path.name.startswith(".")
            and self.renderer_registry.accepts(path)
        ]
        return sorted(files, key=lambda p: p.relative_to(root).as_posix())

    def kind_of(self, path: Path) -> str:
        posts_dir = self.config.dir_path("posts")
        try:
            path.relative_to(posts_dir)
        except ValueError:
            return "pages"
        return "posts"

    def read(self, path: Path) -> ContentUnit:
        """Read a unit, returning the cached instance on repeated calls.

        Raises:
            ContentParseError: If the metadata header is malformed or the file
                is not valid text in the configured encoding.
        """
        with self._lock:
            cached = self._cache.get(path)
        if cached is not None:
            return cached
        try:
            text = path.read_text(encoding=self.config.encoding)
        except UnicodeDecodeError as exc:
            raise ContentParseError(path, f"not valid {self.config.encoding} text") from exc
        extracted = self.metadata_extractor.extract(text, path)
        unit = ContentUnit(
            path=path,
            kind=self.kind_of(path),
            metadata=extracted["metadata"],
            source=extracted["body"],
            renderer=self.renderer_registry.get_renderer(path),
        )
        with self._lock:
            return self._cache.setdefault(path, unit)

    def read_all(self, kind: str) -> list[ContentUnit]:
        return [self.read(path) for path in self.list_units(kind)]
