"""Template rendering engine for Quire.

Every rendered page is produced from a ``(metadata, content)`` pair and a
named template. A template is one of two variants behind a single
``render(metadata, content)`` method, so callers never need to know which
kind they are using:

- ExpressionTemplate: a Jinja2 template evaluated in a sandboxed environment.
  The template sees ``metadata``, ``content``, the read-only ``site`` settings
  and the markup builders from ``quire.markup``. Selected for ``.jinja`` /
  ``.j2`` templates and for the ``none`` sentinel, which renders the content
  itself as the template.
- SubstitutionTemplate: plain ``$name`` / ``${name}`` placeholder substitution
  against the flattened metadata plus ``content``. Selected for every other
  template file (``.html``, ``.txt``...). Unknown placeholders render empty
  and log a warning.

Key classes:
- TemplateLoader: Resolves template identifiers to Template variants.
- TemplateEngine: Picks the template for a unit and renders it.
"""

from __future__ import annotations

import logging
import string
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import jinja2
from jinja2 import FileSystemLoader, TemplateNotFound, TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment
from markupsafe import Markup

from .config import ConfigurationError, SiteConfig
from .markup import escape, include_css, include_js, link_to, tag

__all__ = [
    "ExpressionTemplate",
    "NONE_TEMPLATE",
    "SubstitutionTemplate",
    "Template",
    "TemplateEngine",
    "TemplateLoader",
    "flatten_metadata",
]

logger = logging.getLogger(__name__)

NONE_TEMPLATE = "none"
EXPRESSION_SUFFIXES = (".jinja", ".j2")


def flatten_metadata(metadata: Mapping[str, Any]) -> dict[str, str]:
    """Flatten a metadata map to string keys and string values.

    Lists are joined with spaces and ``None`` becomes an empty string.
    """
    flat: dict[str, str] = {}
    for key, value in metadata.items():
        if value is None:
            flat[str(key)] = ""
        elif isinstance(value, (list, tuple)):
            flat[str(key)] = " ".join(str(item) for item in value)
        else:
            flat[str(key)] = str(value)
    return flat


class Template(ABC):
    """A resolved template.

    Attributes:
        name: Template identifier, used in log and error messages.
        source: Template source text.
    """

    mode: str = ""

    def __init__(self, name: str, source: str):
        self.name = name
        self.source = source

    @abstractmethod
    def render(self, metadata: Mapping[str, Any], content: str) -> str:
        """Render the template for one unit.

        Args:
            metadata: The unit's metadata map.
            content: The unit's rendered body.

        Returns:
            The rendered document.
        """
        ...

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"{type(self).__name__}({self.name!r})"


class ExpressionTemplate(Template):
    """Sandboxed Jinja2 template with ``metadata`` and ``content`` bindings.

    The body is bound as Markup and is inserted verbatim; metadata strings
    are escaped.
    """

    mode = "code"

    def __init__(self, name: str, source: str, compiled: jinja2.Template):
        super().__init__(name, source)
        self._compiled = compiled

    @classmethod
    def from_source(
        cls, env: SandboxedEnvironment, source: str, name: str = NONE_TEMPLATE
    ) -> ExpressionTemplate:
        return cls(name, source, env.from_string(source))

    def render(self, metadata: Mapping[str, Any], content: str) -> str:
        return self._compiled.render(metadata=dict(metadata), content=Markup(content))


class _LenientValues(dict):
    """Substitution values that render unknown placeholders as empty."""

    def __init__(self, values: dict[str, str], template_name: str):
        super().__init__(values)
        self.template_name = template_name

    def __missing__(self, key: str) -> str:
        logger.warning("Template %s: no value for placeholder '%s'", self.template_name, key)
        return ""


class SubstitutionTemplate(Template):
    """Named-placeholder template with no access to expressions."""

    mode = "html"

    def __init__(self, name: str, source: str):
        super().__init__(name, source)
        self._template = string.Template(source)

    def render(self, metadata: Mapping[str, Any], content: str) -> str:
        values = flatten_metadata(metadata)
        values["content"] = str(content)
        return self._template.safe_substitute(_LenientValues(values, self.name))


def create_environment(templates_dir: Path, site: Mapping[str, Any]) -> SandboxedEnvironment:
    """Create the sandboxed Jinja environment for expression templates.

    Args:
        templates_dir: Directory searched by ``include``/``extends``.
        site: Read-only site settings exposed as ``site``.

    Returns:
        Configured SandboxedEnvironment.
    """
    env = SandboxedEnvironment(
        loader=FileSystemLoader([str(templates_dir)]),
        autoescape=True,
        enable_async=False,
        keep_trailing_newline=True,
    )
    env.globals["site"] = dict(site)
    env.globals["tag"] = tag
    env.globals["link_to"] = link_to
    env.globals["include_css"] = include_css
    env.globals["include_js"] = include_js
    env.globals["escape"] = escape
    return env


class TemplateLoader:
    """Resolves template identifiers to Template variants.

    Identifiers are file names relative to the templates directory. The
    file suffix selects the rendering mode. Resolved templates are cached
    for the lifetime of the loader.

    Attributes:
        templates_dir: Directory holding template files.
        encoding: Encoding used to read template files.
        env: Sandboxed Jinja environment for expression templates.
    """

    def __init__(self, templates_dir: Path, env: SandboxedEnvironment, encoding: str = "utf-8"):
        self.templates_dir = templates_dir
        self.encoding = encoding
        self.env = env
        self._cache: dict[str, Template] = {}
        self._lock = threading.Lock()

    def read_template(self, identifier: str) -> Template:
        """Resolve a template identifier.

        Args:
            identifier: Template file name, e.g. ``default.html``.

        Returns:
            ExpressionTemplate or SubstitutionTemplate.

        Raises:
            ConfigurationError: If the template cannot be found.
        """
        with self._lock:
            cached = self._cache.get(identifier)
        if cached is not None:
            return cached
        template = self._load(identifier)
        with self._lock:
            return self._cache.setdefault(identifier, template)

    def _load(self, identifier: str) -> Template:
        path = (self.templates_dir / identifier).resolve()
        try:
            path.relative_to(self.templates_dir.resolve())
        except ValueError:
            raise ConfigurationError(f"Template outside templates directory: {identifier}") from None
        if not path.is_file():
            raise ConfigurationError(f"Template not found: {identifier}")
        if path.suffix.lower() in EXPRESSION_SUFFIXES:
            try:
                compiled = self.env.get_template(Path(identifier).as_posix())
            except TemplateNotFound as exc:
                raise ConfigurationError(f"Template not found: {identifier}") from exc
            except TemplateSyntaxError as exc:
                raise ConfigurationError(
                    f"Template {identifier}: line {exc.lineno}: {exc.message}"
                ) from exc
            source = path.read_text(encoding=self.encoding)
            return ExpressionTemplate(identifier, source, compiled)
        return SubstitutionTemplate(identifier, path.read_text(encoding=self.encoding))


class TemplateEngine:
    """Renders ``(metadata, content)`` pairs against named templates.

    The template is the one named by the ``template`` metadata key, falling
    back to the configured default. Rendering state is passed explicitly on
    every call, so one engine serves all worker threads.

    Attributes:
        config: Site configuration.
        env: Sandboxed Jinja environment.
        loader: Template loader.
    """

    def __init__(self, config: SiteConfig, loader: TemplateLoader | None = None):
        self.config = config
        templates_dir = config.dir_path("templates")
        if loader is None:
            env = create_environment(templates_dir, config.as_dict())
            loader = TemplateLoader(templates_dir, env, encoding=config.encoding)
        self.loader = loader
        self.env = loader.env

    def resolve(self, metadata: Mapping[str, Any]) -> str:
        """Return the template identifier a unit renders with."""
        return str(metadata.get("template") or self.config.default_template)

    def render(self, metadata: Mapping[str, Any], content: str) -> str:
        """Render a unit.

        Args:
            metadata: The unit's metadata.
            content: The unit's rendered body.

        Returns:
            The rendered document.

        Raises:
            ConfigurationError: If the template cannot be resolved.
        """
        name = self.resolve(metadata)
        if name == NONE_TEMPLATE:
            template: Template = ExpressionTemplate.from_source(self.env, content)
        else:
            template = self.loader.read_template(name)
        return template.render(metadata, content)

    def check(self, identifiers: Iterable[str]) -> None:
        """Resolve every identifier up front.

        Raises:
            ConfigurationError: For the first identifier that cannot be resolved.
        """
        for identifier in sorted(set(identifiers)):
            if identifier != NONE_TEMPLATE:
                self.loader.read_template(identifier)
