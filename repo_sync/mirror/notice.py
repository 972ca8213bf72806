"""
Source Notice — Prepend a "mirrored from" notice to the mirror's README.

Used for repositories with ``mark_source: true``. The notice is a commit
on top of the public history, so the destination necessarily diverges
from the public repo and pushes for these repositories skip the
divergence gate.
"""

from __future__ import annotations

import logging
import re
import tempfile
from pathlib import Path
from typing import Optional

from .git import GitResult, exec_git

logger = logging.getLogger(__name__)

NOTICE_START = "<!-- repo-sync-source-notice -->"
NOTICE_END = "<!-- end-repo-sync-source-notice -->"
NOTICE_PATTERN = re.compile(re.escape(NOTICE_START) + r".*?" + re.escape(NOTICE_END) + r"\n*", re.DOTALL)

README_NAMES = (
    "README.md",
    "readme.md",
    "README.MD",
    "README",
    "readme",
    "README.txt",
    "readme.txt",
)

COMMIT_MESSAGE = "Add source repository notice"
COMMIT_IDENTITY = ("user.name=repo-sync", "user.email=repo-sync@localhost")


def render_notice(content: str, public_url: str) -> str:
    """Return ``content`` with exactly one notice block at the top."""
    body = NOTICE_PATTERN.sub("", content, count=1)
    notice = (
        f"{NOTICE_START}\n"
        "> **📦 Mirrored Repository**\n"
        ">\n"
        f"> This repository is automatically mirrored from [{public_url}]({public_url}).\n"
        "> Do not commit directly to this repository.\n"
        f"{NOTICE_END}\n"
        "\n"
    )
    return notice + body


def find_readme(worktree: Path) -> Optional[Path]:
    for name in README_NAMES:
        path = worktree / name
        if path.is_file():
            return path
    return None


def add_source_notice(mirror_path: Path, public_url: str, branch: str) -> GitResult:
    """
    Commit the notice onto ``branch`` of the bare mirror.

    Works in a throwaway clone which is always removed.
    """
    with tempfile.TemporaryDirectory(prefix="repo-sync-") as tmp:
        worktree = Path(tmp) / "work"

        cloned = exec_git(
            None, "clone", "--branch", branch, "--single-branch", str(mirror_path), str(worktree)
        )
        if not cloned.success:
            return GitResult(False, error=f"Failed to clone to temp: {cloned.error}")

        readme = find_readme(worktree) or worktree / "README.md"
        try:
            # Non-UTF-8 bytes round-trip unchanged
            current = readme.read_text(encoding="utf-8", errors="surrogateescape") if readme.exists() else ""
            updated = render_notice(current, public_url)
            if updated == current:
                return GitResult(True, output="Source notice already present")
            readme.write_text(updated, encoding="utf-8", errors="surrogateescape")
        except OSError as e:
            return GitResult(False, error=f"Failed to update {readme.name}: {e}")

        added = exec_git(worktree, "add", readme.name)
        if not added.success:
            return GitResult(False, error=f"Failed to stage {readme.name}: {added.error}")

        identity = [arg for pair in COMMIT_IDENTITY for arg in ("-c", pair)]
        committed = exec_git(worktree, *identity, "commit", "-m", COMMIT_MESSAGE)
        if not committed.success:
            return GitResult(False, error=f"Failed to commit: {committed.error}")

        pushed = exec_git(worktree, "push", "origin", branch)
        if not pushed.success:
            return GitResult(False, error=f"Failed to push to bare repo: {pushed.error}")

    logger.info(f"[notice] Added source notice to {mirror_path.name}:{branch}")
    return GitResult(True, output="Source notice added")
