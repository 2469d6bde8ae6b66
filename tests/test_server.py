import functools
import threading
import urllib.error
import urllib.request
from http.server import ThreadingHTTPServer

import pytest

from conftest import write_unit
from quire.build import BuildError, BuildFailed
from quire.config import ConfigurationError
from quire.server import DevServer, _ChangeHandler, _SiteHandler, content_snapshot


class DummyEvent:
    def __init__(self, path, is_directory=False):
        self.src_path = path
        self.is_directory = is_directory


def test_dev_server_port(tmp_path):
    assert DevServer(tmp_path).port == 8080
    assert DevServer(tmp_path, port=5055).port == 5055
    (tmp_path / "quire.yaml").write_text("port: 9000\nhost: 0.0.0.0\n", encoding="utf-8")
    server = DevServer(tmp_path)
    assert (server.host, server.port) == ("0.0.0.0", 9000)


def test_change_handler_skips_output(tmp_path):
    server = DevServer(tmp_path)
    calls = []
    server.rebuild = lambda: calls.append("rebuild")
    handler = _ChangeHandler(server)

    handler.on_any_event(DummyEvent(str(server.output_dir / "index.html")))
    handler.on_any_event(DummyEvent(str(tmp_path / "html.staging" / "index.html")))
    handler.on_any_event(DummyEvent(str(tmp_path / "resources" / "posts"), is_directory=True))
    assert calls == []

    handler.on_any_event(DummyEvent(str(tmp_path / "resources" / "posts" / "2023-01-01-a.md")))
    assert calls == ["rebuild"]


def test_build_uses_atomic_swap(monkeypatch, tmp_path):
    called = {}

    def fake_build(root, config=None, atomic=None, output_dir_override=None):
        called["atomic"] = atomic

    monkeypatch.setattr("quire.server.build_site", fake_build)
    assert DevServer(tmp_path).build() is True
    assert called["atomic"] is True


def test_build_logs_failures(monkeypatch, tmp_path, caplog):
    def failing_build(root, config=None, atomic=None, output_dir_override=None):
        raise BuildFailed([BuildError(tmp_path / "a.md", "Malformed metadata header")])

    monkeypatch.setattr("quire.server.build_site", failing_build)
    server = DevServer(tmp_path)
    assert server.build() is False
    assert "Malformed metadata header" in caplog.text

    def misconfigured(root, config=None, atomic=None, output_dir_override=None):
        raise ConfigurationError("Template not found: x.html")

    monkeypatch.setattr("quire.server.build_site", misconfigured)
    assert server.build() is False
    assert "Template not found: x.html" in caplog.text


def test_build_logs_template_syntax_errors(project, posts_dir, caplog):
    (project / "resources" / "templates" / "broken.jinja").write_text("{% if %}", encoding="utf-8")
    write_unit(posts_dir, "2023-01-01-a.md", title="A", template="broken.jinja")
    assert DevServer(project).build() is False
    assert "Template broken.jinja: line 1" in caplog.text


def test_rebuild_guard(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    calls = []
    monkeypatch.setattr("quire.server.build_site", lambda *args, **kwargs: calls.append("built"))
    server.quiet_period = 0.0

    snapshots = [("a",), ("a",), ("b",)]
    server.snapshot = lambda: snapshots.pop(0) if snapshots else ("b",)

    assert server.rebuild() is True
    with server._build_lock:
        assert server.rebuild() is False  # a build is already running
    assert server.rebuild() is False  # content unchanged
    assert server.rebuild() is True
    assert calls == ["built", "built"]


def test_rebuild_drops_events_in_quiet_period(monkeypatch, tmp_path):
    server = DevServer(tmp_path)
    calls = []
    monkeypatch.setattr("quire.server.build_site", lambda *args, **kwargs: calls.append("built"))
    server.quiet_period = 0.0
    ticks = iter(range(10))
    server.snapshot = lambda: (next(ticks),)
    assert server.rebuild() is True
    server.quiet_period = 60.0
    assert server.rebuild() is False
    assert calls == ["built"]


def test_content_snapshot(tmp_path):
    content = tmp_path / "resources"
    assert content_snapshot(content) is None
    write_unit(content / "posts", "2023-01-01-a.md", title="A")
    first = content_snapshot(content)
    assert [entry[0] for entry in first] == ["posts/2023-01-01-a.md"]
    write_unit(content / "pages", "about.md", title="About")
    assert content_snapshot(content) != first
    assert DevServer(tmp_path).snapshot() == content_snapshot(content)


@pytest.fixture
def served_site(tmp_path):
    site = tmp_path / "html"
    (site / "2023" / "01" / "01" / "a").mkdir(parents=True)
    (site / "2023" / "01" / "01" / "a" / "index.html").write_text("<p>post</p>", encoding="utf-8")
    (site / "empty").mkdir()
    handler = functools.partial(_SiteHandler, directory=str(site))
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def test_site_handler_serves_directory_index(served_site):
    with urllib.request.urlopen(f"{served_site}/2023/01/01/a/") as response:
        assert response.status == 200
        assert response.read() == b"<p>post</p>"
        assert response.headers["Cache-Control"] == "no-store"


@pytest.mark.parametrize("path", ["/missing.html", "/empty/"])
def test_site_handler_returns_404(served_site, path):
    with pytest.raises(urllib.error.HTTPError) as excinfo:
        urllib.request.urlopen(f"{served_site}{path}")
    assert excinfo.value.code == 404
