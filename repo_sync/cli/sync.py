"""
CLI sync commands — pull, status, push, and clean.

Usage:
    repo-sync pull [REPO]
    repo-sync status [REPO] [--json] [--pull]
    repo-sync push [REPO] [--force] [--yes] [--pull]
    repo-sync clean [REPO]
"""

from __future__ import annotations

import json
from typing import List, Optional, Tuple

import click

from ..config.loader import find_repo
from ..config.models import RepoConfig
from ..mirror.manager import SyncManager
from ..validation import ConfigurationError


def _load(ctx: click.Context, repo_name: Optional[str]) -> Tuple[SyncManager, List[RepoConfig]]:
    """Build the manager and select the repos a command applies to."""
    try:
        manager = SyncManager.from_config_file(ctx.obj.get("config_path"), workers=ctx.obj.get("workers"))
    except ConfigurationError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        raise SystemExit(1)

    if not repo_name:
        return manager, list(manager.config.repos)

    repo = find_repo(manager.config, repo_name)
    if repo is None:
        click.secho(f"Error: Repository '{repo_name}' not found in config", fg="red", err=True)
        click.echo(f"Available repos: {', '.join(manager.config.repo_names)}", err=True)
        raise SystemExit(1)
    return manager, [repo]


@click.command("pull")
@click.argument("repo_name", required=False)
@click.pass_context
def pull(ctx: click.Context, repo_name: Optional[str]) -> None:
    """Clone or fetch public repositories into local mirrors."""
    manager, repos = _load(ctx, repo_name)
    click.echo(f"Pulling {len(repos)} repo(s)...\n")

    succeeded = failed = 0
    for repo, result in manager.iter_all(manager.pull, repos):
        click.echo(f"{repo.name}:")
        if result.success:
            click.secho(f"  ✓ {'Cloned' if result.is_new else 'Updated'}\n", fg="green")
            succeeded += 1
        else:
            click.secho(f"  ✗ {result.error}\n", fg="red", err=True)
            failed += 1

    click.echo(f"Pull complete: {succeeded} succeeded, {failed} failed")
    if failed:
        raise SystemExit(1)


@click.command("status")
@click.argument("repo_name", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--pull", "pull_first", is_flag=True, help="Pull from public before comparing")
@click.pass_context
def status(ctx: click.Context, repo_name: Optional[str], as_json: bool, pull_first: bool) -> None:
    """Compare every branch and tag against the private mirror."""
    from ..mirror.report import format_status, status_to_dict

    manager, repos = _load(ctx, repo_name)

    results = []
    failed = 0
    for _, result in manager.iter_all(manager.status, repos, pull_first=pull_first):
        if result.failed:
            failed += 1
        if as_json:
            results.append(status_to_dict(result))
        else:
            click.echo(format_status(result))

    if as_json:
        click.echo(json.dumps(results, indent=2))

    if failed:
        raise SystemExit(1)


@click.command("push")
@click.argument("repo_name", required=False)
@click.option("--force", is_flag=True, help="Skip the divergence check")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option("--pull", "pull_first", is_flag=True, help="Pull from public before pushing")
@click.pass_context
def push(ctx: click.Context, repo_name: Optional[str], force: bool, yes: bool, pull_first: bool) -> None:
    """Push local mirrors to their private remotes.

    A repository is only pushed when no branch or tag on private is
    behind or diverged from public. --force skips that check.
    """
    manager, repos = _load(ctx, repo_name)

    if force and not yes:
        click.secho("⚠️  --force skips the divergence check:", fg="yellow", bold=True)
        click.echo("  - Commits that exist only on private will be overwritten")
        if not click.confirm("Continue?"):
            click.echo("Cancelled.")
            return

    click.echo(f"Pushing {len(repos)} repo(s)...\n")

    pushed = skipped = failed = 0
    for repo, result in manager.iter_all(manager.push, repos, force=force, pull_first=pull_first):
        click.echo(f"{repo.name}:")
        if not result.success:
            click.secho(f"  ✗ {result.error}\n", fg="red", err=True)
            failed += 1
        elif result.pushed:
            click.secho("  ✓ Pushed\n", fg="green")
            pushed += 1
        else:
            click.echo("  - Already up to date\n")
            skipped += 1

    click.echo(f"Push complete: {pushed} pushed, {skipped} skipped, {failed} failed")
    if failed:
        raise SystemExit(1)


@click.command("clean")
@click.argument("repo_name", required=False)
@click.pass_context
def clean(ctx: click.Context, repo_name: Optional[str]) -> None:
    """Remove local mirrors."""
    manager, repos = _load(ctx, repo_name)
    click.echo(f"Cleaning {len(repos)} repo(s)...\n")

    for repo in repos:
        click.echo(f"{repo.name}: cleaning...")
        if manager.clean(repo):
            click.secho("  ✓ Removed\n", fg="green")
        else:
            click.echo("  - Nothing to remove\n")

    click.echo("Clean complete")
