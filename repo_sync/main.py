"""
repo-sync — CLI Entry Point

Usage:
    repo-sync pull [REPO]
    repo-sync status [REPO] [--json]
    repo-sync push [REPO] [--force]
    repo-sync clean [REPO]
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from typing import Optional

import click

from . import __version__
from .cli.sync import clean, pull, push, status
from .logging_config import setup_logging


@click.group()
@click.version_option(__version__, prog_name="repo-sync")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Path to config file (default: ~/.repo-sync/config.yaml)",
)
@click.option("--workers", type=click.IntRange(min=1), help="Repositories to process concurrently")
@click.option("--debug", is_flag=True, help="Verbose logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], workers: Optional[int], debug: bool) -> None:
    """repo-sync — Sync public repositories to private mirrors."""
    setup_logging(level="DEBUG" if debug else None)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["workers"] = workers


cli.add_command(pull)
cli.add_command(status)
cli.add_command(push)
cli.add_command(clean)


if __name__ == "__main__":
    cli()
