"""Output writing for Quire.

Every generated file goes through OutputWriter, which persists content under
the output root and remembers what was written for the build summary.
"""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class OutputWriter:
    """Writes generated files beneath an output directory.

    Each unit owns a unique output path, so writers on different threads
    never touch the same file. A URL collision is last-writer-wins.

    Attributes:
        root: Output root directory.
        encoding: Encoding applied to text content.
        written: Relative paths written so far, in completion order.
    """

    def __init__(self, root: Path, encoding: str = "utf-8"):
        self.root = root
        self.encoding = encoding
        self.written: list[str] = []
        self._lock = threading.Lock()

    def write(self, relative_path: str, content: str | bytes) -> Path:
        """Write ``content`` to ``relative_path`` under the output root.

        Parent directories are created as needed and existing files are
        overwritten. ``OSError`` propagates to the caller.

        Args:
            relative_path: Destination relative to the root; a leading slash
                is ignored.
            content: Text (encoded with ``encoding``) or raw bytes.

        Returns:
            The absolute path written.
        """
        rel = relative_path.lstrip("/")
        target = self.root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            with open(target, "w", encoding=self.encoding, newline="") as f:
                f.write(content)
        with self._lock:
            self.written.append(rel)
        logger.debug("Wrote %s", rel)
        return target

    def copy_tree(self, source: Path) -> int:
        """Copy a directory of static files verbatim into the output root.

        Returns:
            Number of files copied; 0 when ``source`` does not exist.
        """
        if not source.is_dir():
            return 0
        count = 0
        for path in sorted(source.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(source).as_posix()
            dest = self.root / rel
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dest)
            with self._lock:
                self.written.append(rel)
            count += 1
        return count
