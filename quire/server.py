"""Development server for Quire.

``quire serve`` builds the project, serves the output directory over HTTP and
rebuilds whenever a file under the content directory changes. ``quire watch``
does the same without the HTTP server. Rebuilds always go through a staging
directory that is swapped into place, so requests never see a half-written
site.

Key items:
- DevServer: Builds, serves and watches one project.
- content_snapshot: Fingerprint used to skip rebuilds when nothing changed.
"""

from __future__ import annotations

import functools
import logging
import os
import threading
import time
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .build import BuildFailed, build_site, staging_dir
from .config import ConfigurationError, load_config

logger = logging.getLogger(__name__)

Snapshot = tuple[tuple[str, int, int], ...]


def content_snapshot(root: Path) -> Snapshot | None:
    """Fingerprint every file under ``root`` by relative path, mtime and size.

    Returns:
        The fingerprint, or None when ``root`` is missing or holds no files.
    """
    if not root.is_dir():
        return None
    entries = []
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        try:
            info = path.stat()
        except OSError:
            continue  # removed while scanning
        entries.append((path.relative_to(root).as_posix(), info.st_mtime_ns, info.st_size))
    return tuple(entries) or None


class _SiteHandler(SimpleHTTPRequestHandler):
    """Serves built files only: no directory listings, 404 for anything else."""

    def end_headers(self):
        self.send_header("Cache-Control", "no-store")
        super().end_headers()

    def _has_document(self) -> bool:
        target = Path(self.translate_path(self.path))
        if target.is_dir():
            target = target / "index.html"
        return target.is_file()

    def send_head(self):
        if not self._has_document():
            self.send_error(HTTPStatus.NOT_FOUND, f"Not found: {self.path}")
            return None
        return super().send_head()

    def log_message(self, format, *args):  # noqa: A002 - signature from base class
        logger.debug("%s %s", self.address_string(), format % args)


class DevServer:
    """Builds a project, then serves it and rebuilds on content changes.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration, reloaded before every build.
        output_dir: Directory served over HTTP.
        staging_dir: Directory rebuilds are written to before the swap.
        host: Interface to bind.
        port: Port to bind.
        quiet_period: Seconds after a build during which change events are
            dropped; editors often emit several events per save.
    """

    quiet_period = 0.05

    def __init__(self, project_root: Path, port: int | None = None):
        self.project_root = project_root
        self.config = load_config(project_root)
        self.output_dir = self.config.output_dir
        self.staging_dir = staging_dir(self.output_dir)
        self.host = self.config.host
        self.port = port or self.config.port
        self._build_lock = threading.Lock()
        self._built_at = 0.0
        self._snapshot: Snapshot | None = None
        self._stopped = threading.Event()
        self._observer: Observer | None = None
        self._httpd: ThreadingHTTPServer | None = None

    def start(self, serve: bool = True) -> None:  # pragma: no cover - blocks until interrupted
        """Build once, then watch (and optionally serve) until interrupted."""
        self.build()
        self._snapshot = self.snapshot()
        if serve:
            handler = functools.partial(_SiteHandler, directory=str(self.output_dir))
            self._httpd = ThreadingHTTPServer((self.host, self.port), handler)
            threading.Thread(target=self._httpd.serve_forever, daemon=True).start()
            logger.info("Serving %s at http://%s:%s", self.output_dir, self.host, self.port)
        self._observer = self._watch()
        logger.info("Watching %s for changes", self.config.content_dir)
        try:
            while not self._stopped.wait(1):
                pass
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()

    def stop(self) -> None:
        self._stopped.set()
        if self._observer is not None:
            self._observer.stop()
            self._observer.join()
            self._observer = None
        if self._httpd is not None:
            self._httpd.shutdown()
            self._httpd.server_close()
            self._httpd = None

    def _watch(self) -> Observer:
        observer = Observer()
        if self.config.content_dir.is_dir():
            observer.schedule(_ChangeHandler(self), str(self.config.content_dir), recursive=True)
        observer.start()
        return observer

    def snapshot(self) -> Snapshot | None:
        return content_snapshot(self.config.content_dir)

    def build(self) -> bool:
        """Build the site atomically, logging failures instead of raising them.

        Returns:
            True if the build succeeded.
        """
        try:
            self.config = load_config(self.project_root)
            build_site(self.project_root, config=self.config, atomic=True)
        except BuildFailed as exc:
            for error in exc.errors:
                logger.error("%s: %s", error.source_path, error.message)
            return False
        except ConfigurationError as exc:
            logger.error("Configuration error: %s", exc)
            return False
        return True

    def rebuild(self) -> bool:
        """Rebuild in response to a change event.

        Events arriving while a build runs, within ``quiet_period`` of the
        previous one, or that leave the content fingerprint unchanged are
        dropped.

        Returns:
            True if a build ran.
        """
        if time.monotonic() - self._built_at < self.quiet_period:
            return False
        if not self._build_lock.acquire(blocking=False):
            return False
        try:
            current = self.snapshot()
            if current is not None and current == self._snapshot:
                return False
            logger.info("Change detected; rebuilding")
            if self.build():
                self._snapshot = current
            return True
        finally:
            self._built_at = time.monotonic()
            self._build_lock.release()


class _ChangeHandler(FileSystemEventHandler):
    """Forwards file events to DevServer.rebuild, ignoring build output."""

    def __init__(self, server: DevServer):
        super().__init__()
        self.server = server
        self.ignored = (server.output_dir, server.staging_dir)

    def on_any_event(self, event):
        if event.is_directory:
            return
        path = Path(os.fsdecode(event.src_path))
        if any(path.is_relative_to(directory) for directory in self.ignored):
            return
        self.server.rebuild()
