"""Site configuration for Quire.

Configuration lives in ``quire.yaml`` at the project root. Every key is
optional; missing keys fall back to ``DEFAULT_CONFIG``. The loaded values are
validated once and frozen into a ``SiteConfig`` that is shared read-only by
every worker during a build.

Key items:
- SiteConfig: Immutable settings object.
- load_config: Load and validate ``quire.yaml``.
- ConfigurationError: Raised for invalid configuration.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "quire.yaml"

CONTENT_DIRS = {
    "posts": "posts",
    "pages": "pages",
    "templates": "templates",
    "public": "public",
}


class ConfigurationError(Exception):
    """Invalid site configuration or an unresolvable template."""


DEFAULT_CONFIG: dict[str, Any] = {
    "site_title": "A Static Blog",
    "site_description": "Default blog description",
    "site_url": "http://localhost:8080",
    "in_dir": "resources",
    "out_dir": "html",
    "post_out_subdir": "",
    "default_template": "default.html",
    "encoding": "utf-8",
    "posts_per_page": 2,
    "blog_as_index": True,
    "create_archives": True,
    "atomic_build": False,
    "workers": None,
    "host": "localhost",
    "port": 8080,
    "rsync": "rsync",
    "deploy_user": "",
    "deploy_host": "",
    "deploy_dir": "",
}


@dataclass(frozen=True)
class SiteConfig:
    """Validated site settings.

    Attributes:
        root: Project root directory; relative directories resolve against it.
        site_title: Title used by the RSS channel and the listing pages.
        site_description: Description used by the RSS channel.
        site_url: Absolute base URL of the deployed site.
        in_dir: Content directory holding posts/, pages/, templates/, public/.
        out_dir: Output directory.
        post_out_subdir: Optional directory prepended to post URLs.
        default_template: Template used when a unit does not name one.
        encoding: Encoding for reading content and writing output.
        posts_per_page: Page size of the latest-posts listing.
        blog_as_index: Also write the newest listing page to index.html.
        create_archives: Generate the monthly archive pages.
        atomic_build: Build into a staging directory and swap on success.
        workers: Worker thread count, or None for the executor default.
    """

    root: Path
    site_title: str
    site_description: str
    site_url: str
    in_dir: str
    out_dir: str
    post_out_subdir: str
    default_template: str
    encoding: str
    posts_per_page: int
    blog_as_index: bool
    create_archives: bool
    atomic_build: bool
    workers: int | None
    host: str
    port: int
    rsync: str
    deploy_user: str
    deploy_host: str
    deploy_dir: str

    @classmethod
    def from_mapping(cls, root: Path, values: dict[str, Any]) -> SiteConfig:
        """Build a config from raw values layered over the defaults.

        Raises:
            ConfigurationError: If a value has the wrong type or range.
        """
        merged = DEFAULT_CONFIG.copy()
        merged.update({k.replace("-", "_"): v for k, v in values.items()})
        known = {f.name for f in fields(cls)} - {"root"}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

        for key in ("site_title", "site_description", "site_url", "in_dir", "out_dir",
                    "default_template", "encoding", "host", "rsync",
                    "deploy_user", "deploy_host", "deploy_dir"):
            if not isinstance(merged[key], str):
                raise ConfigurationError(f"'{key}' must be a string")
        if merged["post_out_subdir"] is None:
            merged["post_out_subdir"] = ""
        merged["post_out_subdir"] = str(merged["post_out_subdir"]).strip("/")
        for key in ("blog_as_index", "create_archives", "atomic_build"):
            if not isinstance(merged[key], bool):
                raise ConfigurationError(f"'{key}' must be true or false")

        per_page = merged["posts_per_page"]
        if isinstance(per_page, bool) or not isinstance(per_page, int) or per_page < 1:
            raise ConfigurationError("'posts_per_page' must be a positive integer")
        workers = merged["workers"]
        if workers is not None and (
            isinstance(workers, bool) or not isinstance(workers, int) or workers < 1
        ):
            raise ConfigurationError("'workers' must be a positive integer")
        if not isinstance(merged["port"], int) or isinstance(merged["port"], bool):
            raise ConfigurationError("'port' must be an integer")
        if not merged["default_template"].strip():
            raise ConfigurationError("'default_template' must not be empty")

        return cls(root=root, **merged)

    @property
    def content_dir(self) -> Path:
        return self.root / self.in_dir

    @property
    def output_dir(self) -> Path:
        return self.root / self.out_dir

    def dir_path(self, kind: str) -> Path:
        """Return the source directory for ``kind``.

        Args:
            kind: One of ``posts``, ``pages``, ``templates`` or ``public``.

        Raises:
            ValueError: For an unknown kind.
        """
        try:
            return self.content_dir / CONTENT_DIRS[kind]
        except KeyError:
            raise ValueError(f"Unknown content kind: {kind}") from None

    def as_dict(self) -> dict[str, Any]:
        """Return settings as a plain dict (exposed to templates as ``site``)."""
        data = asdict(self)
        data["root"] = str(self.root)
        return data


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from quire.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Validated SiteConfig with defaults applied.

    Raises:
        ConfigurationError: If the file is malformed or holds invalid values.
    """
    config_path = project_root / CONFIG_FILENAME
    loaded: Any = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"{CONFIG_FILENAME}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"{CONFIG_FILENAME} must contain a mapping")
    return SiteConfig.from_mapping(project_root, loaded)
