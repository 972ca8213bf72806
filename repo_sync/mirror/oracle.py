"""
Ancestry Oracle — Commit graph queries used by the classifier.

The classifier only needs two questions answered, so it depends on the
``AncestryOracle`` protocol rather than on git. ``GitAncestryOracle``
answers them from a local repository; tests substitute an in-memory
graph.

A query that cannot be answered (unknown object, corrupt repo, timeout)
raises ``OracleError``. It is never reported as "not an ancestor".
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

from .git import GIT_TIMEOUT, run_git

logger = logging.getLogger(__name__)


class OracleError(Exception):
    """Raised when an ancestry or count query cannot be answered."""


class AncestryOracle(Protocol):
    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """True if ``ancestor`` is reachable from ``descendant``."""
        ...

    def count_exclusive(self, base: str, tip: str) -> int:
        """Number of commits reachable from ``tip`` but not from ``base``."""
        ...


class GitAncestryOracle:
    """Answers ancestry queries with ``git merge-base`` and ``git rev-list``."""

    def __init__(self, repo_path: Path, timeout: int = GIT_TIMEOUT):
        self.repo_path = Path(repo_path)
        self.timeout = timeout

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        try:
            return run_git(self.repo_path, *args, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            raise OracleError(f"git {args[0]} timed out after {self.timeout}s")
        except OSError as e:
            raise OracleError(f"Could not run git: {e}")

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        result = self._run("merge-base", "--is-ancestor", ancestor, descendant)
        # 0 = ancestor, 1 = not an ancestor, anything else = git error
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise OracleError(
            f"Cannot tell whether {ancestor[:12]} is an ancestor of {descendant[:12]}: "
            f"{result.stderr.strip() or f'exit status {result.returncode}'}"
        )

    def count_exclusive(self, base: str, tip: str) -> int:
        result = self._run("rev-list", "--count", f"{base}..{tip}")
        if result.returncode != 0:
            raise OracleError(
                f"Cannot count commits in {base[:12]}..{tip[:12]}: "
                f"{result.stderr.strip() or f'exit status {result.returncode}'}"
            )
        try:
            return int(result.stdout.strip())
        except ValueError:
            raise OracleError(f"Unexpected rev-list output: {result.stdout.strip()!r}")
