"""Site building functionality for Quire.

This module drives a full build: it loads configuration, resolves every
template up front, renders each post and page on a worker pool, then builds
the aggregate pages and feeds, writing everything beneath the output
directory.

Per-unit failures do not stop the build. They are collected and raised
together as ``BuildFailed`` once every unit has been processed. Configuration
errors abort before any output is written; write errors abort immediately.

Key items:
- build_site: Build the entire site.
- SiteBuilder: Runs the build stages against one store, engine and writer.
- BuildError / BuildFailed: Per-unit failure and the aggregate of them.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import TemplateSyntaxError, UndefinedError
from jinja2.exceptions import SecurityError

from .config import ConfigurationError, SiteConfig, load_config
from .content import ContentStore
from .extractors import ContentParseError
from .feeds import FeedRegistry, create_default_feed_registry
from .log import log_time_elapsed
from .parallel import UnitResult, run_units
from .templates import TemplateEngine
from .urls import post_output_path, post_url, site_url
from .utils import DateParseError, ensure_clean_dir
from .views import alias_view, archives_view, latest_posts_view, tags_view
from .writer import OutputWriter

logger = logging.getLogger(__name__)


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path of the unit that failed, or the name of the
            failing stage.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path | str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class BuildFailed(Exception):
    """One or more units failed; raised after every unit was processed.

    Attributes:
        errors: The per-unit failures, in processing order.
    """

    def __init__(self, errors: list[BuildError]):
        self.errors = errors
        super().__init__(f"{len(errors)} unit(s) failed to build")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Number of posts rendered.
        pages: Number of standalone pages rendered.
        output_dir: Directory where the site was built.
        written: Output paths written, sorted.
    """

    posts: int
    pages: int
    output_dir: Path
    written: list[str] = field(default_factory=list)


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    if isinstance(exc, SecurityError):
        return f"Template sandbox violation: {exc}"
    if isinstance(exc, UndefinedError):
        return f"Undefined variable: {exc}"
    if isinstance(exc, ContentParseError):
        return exc.message
    if isinstance(exc, DateParseError):
        return f"Bad post filename {exc.path.name}: {exc.reason}"
    if isinstance(exc, ConfigurationError):
        return f"Configuration error: {exc}"
    return f"{type(exc).__name__}: {exc}"


def _to_build_error(result: UnitResult) -> BuildError:
    exc = result.error
    if isinstance(exc, DateParseError) and not isinstance(result.source, Path):
        # An aggregate stage failed on one post; name the post.
        return BuildError(exc.path, f"{result.source}: {_format_error_message(exc)}", exc)
    return BuildError(result.source, _format_error_message(exc), exc)


class SiteBuilder:
    """Runs the build stages for one build.

    Attributes:
        store: Content store.
        engine: Template engine.
        writer: Output writer.
        feeds: Feed generators to run after the aggregate pages.
    """

    def __init__(
        self,
        store: ContentStore,
        engine: TemplateEngine,
        writer: OutputWriter,
        feeds: FeedRegistry | None = None,
    ):
        self.store = store
        self.engine = engine
        self.writer = writer
        self.config: SiteConfig = store.config
        self.feeds = feeds or create_default_feed_registry()

    def process_post(self, path: Path) -> str:
        """Render one post to ``{post_url}/index.html``."""
        unit = self.store.read(path)
        if unit.is_empty():
            logger.warning("Empty content: %s", path)
        url = post_url(path, self.config.post_out_subdir)
        metadata = {**unit.metadata, "type": "post", "url": url}
        output = post_output_path(path, self.config.post_out_subdir)
        self.writer.write(output, self.engine.render(metadata, unit.body))
        return output

    def process_page(self, path: Path) -> str:
        """Render one standalone page to its mirrored output path."""
        unit = self.store.read(path)
        if unit.is_empty():
            logger.warning("Empty content: %s", path)
        output = site_url(path, self.config.dir_path("pages"), unit.extension)
        metadata = {**unit.metadata, "type": "site"}
        self.writer.write(output, self.engine.render(metadata, unit.body))
        return output

    def create_aliases(self, path: Path) -> list[str]:
        """Write redirect pages for the unit's ``alias`` metadata."""
        unit = self.store.read(path)
        if not unit.aliases:
            return []
        if unit.kind == "posts":
            target = post_url(path, self.config.post_out_subdir)
        else:
            target = "/" + site_url(path, self.config.dir_path("pages"), unit.extension)
        return self._write_all(alias_view(unit, target))

    def _write_all(self, outputs: list[tuple[str, str]]) -> list[str]:
        for rel, document in outputs:
            self.writer.write(rel, document)
        return [rel for rel, _ in outputs]

    def stages(self) -> list[tuple[str, Callable[[], object]]]:
        """Aggregate stages, each folding over the full post set on one worker."""
        stages: list[tuple[str, Callable[[], object]]] = [
            ("Creating Tags", lambda: self._write_all(tags_view(self.store, self.engine))),
            (
                "Creating Latest Posts",
                lambda: self._write_all(latest_posts_view(self.store, self.engine)),
            ),
        ]
        if self.config.create_archives:
            stages.append(
                ("Creating Archives", lambda: self._write_all(archives_view(self.store, self.engine)))
            )
        for generator in self.feeds:
            stages.append(
                (f"Creating {generator.filename}", _bind_feed(generator, self.writer, self.store))
            )
        return stages

    def run(self) -> list[BuildError]:
        """Run every stage and return the collected failures."""
        workers = self.config.workers
        posts = self.store.list_units("posts")
        pages = self.store.list_units("pages")
        results: list[UnitResult] = []

        with log_time_elapsed("Processing Public"):
            self.writer.copy_tree(self.config.dir_path("public"))
        with log_time_elapsed("Processing Site"):
            results += run_units(self.process_page, pages, workers)
        with log_time_elapsed("Processing Posts"):
            results += run_units(self.process_post, posts, workers)
        with log_time_elapsed("Creating Aliases"):
            results += run_units(self.create_aliases, pages + posts, workers)

        def run_stage(stage: tuple[str, Callable[[], object]]) -> object:
            name, fn = stage
            with log_time_elapsed(name):
                return fn()

        results += run_units(run_stage, self.stages(), workers, source=lambda stage: stage[0])
        return [_to_build_error(result) for result in results if not result.ok]


def _bind_feed(generator, writer: OutputWriter, store: ContentStore) -> Callable[[], str]:
    return lambda: generator.write(writer, store)


def check_templates(store: ContentStore, engine: TemplateEngine) -> None:
    """Resolve the default template and every template a unit names.

    Units whose header cannot be parsed are skipped here; they are reported
    when they are rendered.

    Raises:
        ConfigurationError: If any template cannot be resolved.
    """
    identifiers = {store.config.default_template}
    for kind in ("pages", "posts"):
        for path in store.list_units(kind):
            try:
                unit = store.read(path)
            except ContentParseError:
                continue
            identifiers.add(engine.resolve(unit.metadata))
    engine.check(identifiers)


def staging_dir(output_dir: Path) -> Path:
    return output_dir.with_name(output_dir.name + ".staging")


def _activate_staging(staging: Path, target: Path) -> None:
    if target.exists():
        shutil.rmtree(target)
    os.replace(staging, target)


def build_site(
    project_root: Path,
    config: SiteConfig | None = None,
    atomic: bool | None = None,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        config: Optional preloaded configuration; read from quire.yaml if None.
        atomic: Build into a staging directory and swap it in on success.
            Defaults to the ``atomic_build`` setting.
        output_dir_override: Optional path to write the build output instead
            of the configured ``out_dir``.

    Returns:
        BuildResult describing the build.

    Raises:
        ConfigurationError: Before any output is written.
        BuildFailed: If any unit failed; other units were still built.
        OSError: If writing output fails.
    """
    config = config or load_config(project_root)
    if not config.content_dir.is_dir():
        raise ConfigurationError(f"Expected content directory at {config.content_dir}")
    store = ContentStore(config)
    engine = TemplateEngine(config)
    check_templates(store, engine)

    output_dir = output_dir_override or config.output_dir
    atomic = config.atomic_build if atomic is None else atomic
    target = staging_dir(output_dir) if atomic else output_dir
    ensure_clean_dir(target)
    writer = OutputWriter(target, encoding=config.encoding)

    try:
        errors = SiteBuilder(store, engine, writer).run()
    except BaseException:
        if atomic:
            shutil.rmtree(target, ignore_errors=True)
        raise
    if errors:
        if atomic:
            shutil.rmtree(target, ignore_errors=True)
        raise BuildFailed(errors)
    if atomic:
        _activate_staging(target, output_dir)

    return BuildResult(
        posts=len(store.list_units("posts")),
        pages=len(store.list_units("pages")),
        output_dir=output_dir,
        written=sorted(set(writer.written)),
    )
