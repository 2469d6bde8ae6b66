"""Protocol definitions for Quire.

New body formats are supported by registering another ContentRenderer with
the RendererRegistry; the content store never needs to know the concrete
renderer classes.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class ContentRenderer(Protocol):
    """Turns the body of one source format into HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file."""
        ...

    @abstractmethod
    def render(self, content: str) -> str:
        """Render a body to HTML."""
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (e.g., 'markdown', 'html')."""
        ...
