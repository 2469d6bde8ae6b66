from pathlib import Path

import pytest
import yaml

DEFAULT_TEMPLATE = "<html><head><title>$title</title></head><body>$content</body></html>"


def write_unit(directory: Path, filename: str, body: str = "Body", **metadata) -> Path:
    """Write a content file with a YAML metadata header."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    header = yaml.safe_dump(metadata, sort_keys=False) if metadata else ""
    path.write_text(f"---\n{header}---\n{body}", encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path) -> Path:
    root = tmp_path / "site"
    templates = root / "resources" / "templates"
    templates.mkdir(parents=True)
    (root / "quire.yaml").write_text(
        "site_title: Test Blog\n"
        "site_description: Notes & things\n"
        "site_url: https://example.com\n"
        "posts_per_page: 2\n",
        encoding="utf-8",
    )
    (templates / "default.html").write_text(DEFAULT_TEMPLATE, encoding="utf-8")
    return root


@pytest.fixture
def posts_dir(project) -> Path:
    return project / "resources" / "posts"


@pytest.fixture
def pages_dir(project) -> Path:
    return project / "resources" / "pages"
