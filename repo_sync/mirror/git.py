"""
Git Transport — Clone, fetch, and push the local mirror.

Every call shells out to the ``git`` executable. Transport operations
return a ``GitResult`` so the manager can report a failed clone or push
per repository; ``run_git_checked`` raises ``GitCommandError`` for
callers that cannot continue without the output.

Layout of a local mirror (bare, created with ``git clone --mirror``):

    refs/heads/*                      public branches (source side)
    refs/tags/*                       public tags (source side)
    refs/remotes/<remote>/heads/*     destination branches, after fetch
    refs/remotes/<remote>/tags/*      destination tags, after fetch
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)

GIT_TIMEOUT = 30
TRANSPORT_TIMEOUT = 600

# Remote name the private destination is registered under
DEST_REMOTE = "private"

PUSH_REFSPECS = ("+refs/heads/*:refs/heads/*", "+refs/tags/*:refs/tags/*")


@dataclass
class GitResult:
    """Outcome of a git operation."""

    success: bool
    output: str = ""
    error: Optional[str] = None


class GitCommandError(Exception):
    """Raised when a git command exits non-zero or times out."""

    def __init__(self, args: Sequence[str], returncode: Optional[int], stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit status {returncode}"
        super().__init__(f"git {' '.join(self.args_list)} failed: {detail}")


def run_git(
    repo: Optional[Path],
    *args: str,
    timeout: int = GIT_TIMEOUT,
) -> subprocess.CompletedProcess:
    """Run a git command in the repo directory."""
    cmd = ["git"] + list(args)
    return subprocess.run(
        cmd,
        cwd=str(repo) if repo else None,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def run_git_checked(repo: Optional[Path], *args: str, timeout: int = GIT_TIMEOUT) -> str:
    """Run a git command and return stripped stdout, raising on failure."""
    try:
        result = run_git(repo, *args, timeout=timeout)
    except subprocess.TimeoutExpired:
        raise GitCommandError(args, None, f"timed out after {timeout}s")
    if result.returncode != 0:
        raise GitCommandError(args, result.returncode, result.stderr)
    return result.stdout.strip()


def exec_git(repo: Optional[Path], *args: str, timeout: int = GIT_TIMEOUT) -> GitResult:
    """Run a git command and wrap the outcome in a ``GitResult``."""
    try:
        result = run_git(repo, *args, timeout=timeout)
    except subprocess.TimeoutExpired:
        return GitResult(False, error=f"git {args[0]} timed out after {timeout}s")
    except OSError as e:
        return GitResult(False, error=f"Could not run git: {e}")

    if result.returncode == 0:
        return GitResult(True, output=result.stdout.strip())
    error = result.stderr.strip() or result.stdout.strip() or f"exit status {result.returncode}"
    return GitResult(False, error=error)


# ─── Mirror lifecycle ──────────────────────────────────────


def repo_exists(repo_path: Path) -> bool:
    """True if ``repo_path`` is an existing git repository."""
    if not repo_path.exists():
        return False
    return exec_git(repo_path, "rev-parse", "--git-dir").success


def get_mirror_time(repo_path: Path) -> Optional[datetime]:
    """Modification time of the mirror directory (last clone/fetch)."""
    if not repo_path.exists():
        return None
    return datetime.fromtimestamp(repo_path.stat().st_mtime)


def clone_mirror(public_url: str, target_path: Path, timeout: int = TRANSPORT_TIMEOUT) -> GitResult:
    target_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info(f"[git] Cloning {public_url} → {target_path}")
    return exec_git(None, "clone", "--mirror", public_url, str(target_path), timeout=timeout)


def fetch_origin(repo_path: Path, timeout: int = TRANSPORT_TIMEOUT) -> GitResult:
    logger.info(f"[git] Fetching origin into {repo_path.name}")
    result = exec_git(repo_path, "fetch", "--prune", "origin", timeout=timeout)
    if result.success:
        # Mark the mirror as refreshed; mtime doubles as the pulled-at time
        repo_path.touch()
    return result


def ensure_remote(repo_path: Path, name: str, url: str) -> GitResult:
    """Add the remote, or update its URL when it changed."""
    existing = exec_git(repo_path, "remote", "get-url", name)
    if existing.success:
        if existing.output != url:
            logger.info(f"[git] Updating remote URL for {name}")
            return exec_git(repo_path, "remote", "set-url", name, url)
        return GitResult(True)

    logger.info(f"[git] Adding remote: {name}")
    return exec_git(repo_path, "remote", "add", name, url)


def tracking_prefix(remote: str) -> str:
    return f"refs/remotes/{remote}"


def fetch_destination(repo_path: Path, remote: str = DEST_REMOTE, timeout: int = TRANSPORT_TIMEOUT) -> GitResult:
    """
    Fetch the destination's branches and tags into its tracking namespace.

    Uses explicit refspecs and ``--no-tags`` so destination tags never
    land in ``refs/tags`` and get mistaken for source tags.
    """
    prefix = tracking_prefix(remote)
    logger.info(f"[git] Fetching refs from {remote}")
    return exec_git(
        repo_path,
        "fetch",
        "--prune",
        "--no-tags",
        remote,
        f"+refs/heads/*:{prefix}/heads/*",
        f"+refs/tags/*:{prefix}/tags/*",
        timeout=timeout,
    )


def remote_is_empty(repo_path: Path, remote: str = DEST_REMOTE, timeout: int = TRANSPORT_TIMEOUT) -> bool:
    """True when the remote is reachable and advertises no branches or tags."""
    result = exec_git(repo_path, "ls-remote", "--heads", "--tags", remote, timeout=timeout)
    return result.success and not result.output


def clear_tracking_refs(repo_path: Path, remote: str = DEST_REMOTE) -> GitResult:
    """Drop every tracking ref recorded for ``remote``."""
    listed = exec_git(repo_path, "for-each-ref", "--format=%(refname)", tracking_prefix(remote))
    if not listed.success:
        return listed
    for refname in listed.output.splitlines():
        deleted = exec_git(repo_path, "update-ref", "-d", refname)
        if not deleted.success:
            return deleted
    return GitResult(True)


def push_mirror(
    repo_path: Path,
    remote: str = DEST_REMOTE,
    prune: bool = False,
    timeout: int = TRANSPORT_TIMEOUT,
) -> GitResult:
    """
    Push every branch and tag to the destination in one atomic update.

    With ``prune`` the destination also loses refs deleted upstream.
    """
    args: List[str] = ["push", "--atomic", "--force"]
    if prune:
        args.append("--prune")
    args.append(remote)
    args.extend(PUSH_REFSPECS)

    logger.info(f"[git] Pushing {repo_path.name} to {remote} (prune={prune})")
    return exec_git(repo_path, *args, timeout=timeout)


def get_default_branch(repo_path: Path) -> str:
    """Branch HEAD points at, falling back to main then master."""
    head = exec_git(repo_path, "symbolic-ref", "HEAD")
    if head.success and head.output.startswith("refs/heads/"):
        return head.output[len("refs/heads/"):]
    if exec_git(repo_path, "show-ref", "--verify", "--quiet", "refs/heads/main").success:
        return "main"
    return "master"
