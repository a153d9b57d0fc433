"""CLI interface for multispa.

Command-line tool for serving and building multi-page apps.
"""

import logging
import sys
from pathlib import Path

import click

from multispa.config import Config


@click.group()
def cli() -> None:
    """multispa - multi-page apps with single-page ergonomics."""


def _load_config(
    config_path: Path | None,
    root: Path | None,
    pages_root: str | None,
    *,
    out_dir: Path | None = None,
    host: str | None = None,
    port: int | None = None,
    live_reload_enabled: bool | None = None,
) -> Config:
    """Load config and apply CLI overrides, exiting on invalid config."""
    try:
        config = Config.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if root is not None and out_dir is None and config.config_path is None:
        out_dir = root / "dist"

    return config.with_overrides(
        root_dir=root,
        pages_root=pages_root,
        out_dir=out_dir,
        host=host,
        port=port,
        live_reload_enabled=live_reload_enabled,
    )


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover multispa.toml)",
)
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Project root directory (overrides config)",
)
@click.option(
    "--pages-root",
    default=None,
    help="Pages directory relative to the project root (overrides config)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--live-reload/--no-live-reload",
    default=None,
    help="Enable/disable live reload (overrides config, default: enabled)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (log request rewrites)",
)
def serve(
    config_path: Path | None,
    root: Path | None,
    pages_root: str | None,
    host: str | None,
    port: int | None,
    live_reload: bool | None,
    verbose: bool,
) -> None:
    """Start the development server."""
    from multispa.server import run_server

    _setup_logging(verbose)
    config = _load_config(
        config_path,
        root,
        pages_root,
        host=host,
        port=port,
        live_reload_enabled=live_reload,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Project root: {config.pages.root_dir}")
    click.echo(f"Pages root: {config.pages.pages_root}")
    if config.redirects:
        click.echo(f"Redirects: {len(config.redirects)}")
    if config.live_reload.enabled:
        click.echo("Live reload: enabled")
    else:
        click.echo("Live reload: disabled")

    try:
        run_server(config)
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover multispa.toml)",
)
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, path_type=Path, file_okay=False),
    default=None,
    help="Project root directory (overrides config)",
)
@click.option(
    "--pages-root",
    default=None,
    help="Pages directory relative to the project root (overrides config)",
)
@click.option(
    "--out-dir",
    "-o",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Output directory (overrides config)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output (list discovered entries)",
)
def build(
    config_path: Path | None,
    root: Path | None,
    pages_root: str | None,
    out_dir: Path | None,
    verbose: bool,
) -> None:
    """Build every page for production."""
    from multispa.build import build as run_build
    from multispa.server import load_transforms

    _setup_logging(verbose)
    config = _load_config(config_path, root, pages_root, out_dir=out_dir)

    try:
        results = run_build(config, transforms=load_transforms(config))
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    for result in results:
        click.echo(f"[{result.environment}] {result.out_dir}")
        for name in result.files:
            click.echo(f"  -> {name}")

    click.echo(click.style("\nBuild complete!", fg="green", bold=True))


if __name__ == "__main__":
    cli()
