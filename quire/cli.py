"""Command-line interface for Quire.

This module defines the CLI commands using the Click framework. Commands run
against the project in the current directory.

Commands:
- build: Build the site into the output directory.
- watch: Rebuild the site whenever content changes.
- serve: Run the development server with rebuild-on-change.
- deploy: Upload the output directory with rsync.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import click

from . import __version__
from .log import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="quire")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output")
def cli(verbose: bool):
    """Quire static blog compiler."""
    configure_logging(verbose)


def _echo_failure(project_root: Path, source, message: str) -> None:
    if isinstance(source, Path):
        try:
            source = source.relative_to(project_root)
        except ValueError:
            pass
    click.echo(click.style(f"  File: {source}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)


@cli.command()
@click.option("--tmp", is_flag=True,
              help="Build into a staging directory and swap it in on success")
def build(tmp: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildFailed, build_site
    from .config import ConfigurationError

    try:
        result = build_site(project_root, atomic=True if tmp else None)
    except ConfigurationError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  Configuration error: {exc}", fg="white"), err=True)
        raise SystemExit(1) from None
    except BuildFailed as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        for error in exc.errors:
            _echo_failure(project_root, error.source_path, error.message)
        raise SystemExit(1) from None
    click.echo(
        f"Built {result.posts} posts and {result.pages} pages into {result.output_dir}"
    )


@cli.command()
def watch():
    """Rebuild the site whenever content changes."""
    from .server import DevServer

    DevServer(Path.cwd()).start(serve=False)


@cli.command()
@click.option("--port", type=int, required=False,
              help="Port to run the dev server (overrides quire.yaml)")
def serve(port: int | None):
    """Run dev server with rebuild-on-change."""
    from .server import DevServer

    DevServer(Path.cwd(), port=port).start()


@cli.command()
def deploy():
    """Upload the output directory with rsync."""
    from .config import ConfigurationError, load_config

    try:
        config = load_config(Path.cwd())
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from None
    if not (config.deploy_host and config.deploy_dir):
        raise click.ClickException("Set deploy_host and deploy_dir in quire.yaml to deploy.")
    rsync = shutil.which(config.rsync)
    if not rsync:
        raise click.ClickException(f"rsync executable not found: {config.rsync}")
    remote = f"{config.deploy_host}:{config.deploy_dir}"
    if config.deploy_user:
        remote = f"{config.deploy_user}@{remote}"
    source = f"{config.output_dir.as_posix().rstrip('/')}/"
    completed = subprocess.run(
        [rsync, "-avz", "--delete", "--checksum", "-e", "ssh", source, remote],
        capture_output=True,
        text=True,
    )
    if completed.returncode != 0:
        raise click.ClickException(f"rsync failed: {completed.stderr.strip()}")
    click.echo(f"Deployed {config.output_dir} to {remote}")


def main():
    """Entry point for the CLI application."""
    cli()
