import subprocess

from click.testing import CliRunner

from conftest import write_unit
from quire import __version__
from quire.cli import cli


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_build(monkeypatch, project, posts_dir):
    write_unit(posts_dir, "2023-01-01-a.md", title="A")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 1 posts and 0 pages into" in result.output
    assert (project / "html" / "2023" / "01" / "01" / "a" / "index.html").exists()


def test_cli_build_tmp(monkeypatch, project, posts_dir):
    write_unit(posts_dir, "2023-01-01-a.md", title="A")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["-v", "build", "--tmp"], catch_exceptions=False)
    assert result.exit_code == 0
    assert (project / "html" / "index.html").exists()
    assert not (project / "html.staging").exists()


def test_cli_build_reports_unit_failures(monkeypatch, project, posts_dir):
    write_unit(posts_dir, "hello.md", title="Hello")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "File: resources/posts/hello.md" in result.output.replace("\\", "/")
    assert "Error: Bad post filename hello.md" in result.output


def test_cli_build_reports_configuration_errors(monkeypatch, project):
    (project / "quire.yaml").write_text("posts_per_page: 0\n", encoding="utf-8")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Configuration error: 'posts_per_page' must be a positive integer" in result.output


def test_cli_build_reports_template_syntax_errors(monkeypatch, project, posts_dir):
    (project / "resources" / "templates" / "broken.jinja").write_text("{% if %}", encoding="utf-8")
    write_unit(posts_dir, "2023-01-01-a.md", title="A", template="broken.jinja")
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "Configuration error: Template broken.jinja: line 1" in result.output


def test_cli_serve_and_watch(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, port=None):
            called["root"] = root
            called["port"] = port

        def start(self, serve=True):
            called["serve"] = serve

    monkeypatch.setattr("quire.server.DevServer", DummyServer)
    runner = CliRunner()

    result = runner.invoke(cli, ["serve", "--port", "5050"], catch_exceptions=False)
    assert result.exit_code == 0
    assert called["root"].resolve() == tmp_path.resolve()
    assert (called["port"], called["serve"]) == (5050, True)

    result = runner.invoke(cli, ["watch"], catch_exceptions=False)
    assert result.exit_code == 0
    assert (called["port"], called["serve"]) == (None, False)


def test_cli_deploy(monkeypatch, tmp_path):
    (tmp_path / "quire.yaml").write_text(
        "deploy_user: me\ndeploy_host: example.com\ndeploy_dir: /var/www\n", encoding="utf-8"
    )
    monkeypatch.chdir(tmp_path)
    calls = []

    def fake_run(cmd, capture_output, text):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, "sent", "")

    monkeypatch.setattr("quire.cli.shutil.which", lambda cmd: "/usr/bin/rsync")
    monkeypatch.setattr("quire.cli.subprocess.run", fake_run)

    result = CliRunner().invoke(cli, ["deploy"], catch_exceptions=False)
    assert result.exit_code == 0
    cmd = calls[0]
    assert cmd[:6] == ["/usr/bin/rsync", "-avz", "--delete", "--checksum", "-e", "ssh"]
    assert cmd[6].endswith("html/")
    assert cmd[7] == "me@example.com:/var/www"
    assert "Deployed" in result.output


def test_cli_deploy_failures(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["deploy"])
    assert result.exit_code == 1
    assert "Set deploy_host and deploy_dir" in result.output

    (tmp_path / "quire.yaml").write_text(
        "deploy_host: example.com\ndeploy_dir: /var/www\n", encoding="utf-8"
    )
    monkeypatch.setattr("quire.cli.shutil.which", lambda cmd: None)
    result = runner.invoke(cli, ["deploy"])
    assert result.exit_code == 1
    assert "rsync executable not found" in result.output

    monkeypatch.setattr("quire.cli.shutil.which", lambda cmd: "/usr/bin/rsync")
    monkeypatch.setattr(
        "quire.cli.subprocess.run",
        lambda cmd, capture_output, text: subprocess.CompletedProcess(cmd, 23, "", "partial transfer"),
    )
    result = runner.invoke(cli, ["deploy"])
    assert result.exit_code == 1
    assert "rsync failed: partial transfer" in result.output


def test_module_main_entrypoint():
    from quire.__main__ import main

    assert callable(main)
