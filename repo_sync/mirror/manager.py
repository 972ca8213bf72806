"""
Sync Manager — Orchestrates pull, status, push, and clean per repository.

This is the main entry point for mirror operations. Each repository runs
as a strict pipeline:

    clone/fetch public → fetch private → read inventories
        → classify → aggregate → (push)

The destination fetch always completes before its inventory is read.
Repositories share nothing except the cache root, so ``iter_all`` may
run several pipelines at once on a bounded thread pool.

## Usage from other modules:

    from repo_sync.mirror.manager import SyncManager

    manager = SyncManager.from_config_file()
    for repo, result in manager.iter_all(manager.status, manager.config.repos):
        print(format_status(result))
"""

from __future__ import annotations

import logging
import shutil
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional, Tuple, TypeVar

from ..config.loader import ensure_cache_dir, get_repo_path, load_config
from ..config.models import RepoConfig, SyncConfig
from . import git, inventory, notice
from .classifier import ComparisonError, classify, partition_by_kind
from .oracle import AncestryOracle, GitAncestryOracle
from .refs import RefComparison, RefStatus
from .verdict import SyncVerdict, aggregate

logger = logging.getLogger(__name__)

T = TypeVar("T")

NOT_PULLED = "Not pulled yet. Run 'repo-sync pull' first."

OracleFactory = Callable[[Path, int], AncestryOracle]


@dataclass
class PullResult:
    success: bool
    repo_path: Path
    is_new: bool
    error: Optional[str] = None


@dataclass
class RepoStatus:
    """Everything known about one repository after a status pass."""

    name: str
    public_url: str
    private_url: str
    pulled: bool = False
    pulled_at: Optional[datetime] = None
    branches: List[RefComparison] = field(default_factory=list)
    tags: List[RefComparison] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def records(self) -> List[RefComparison]:
        return self.branches + self.tags


@dataclass
class StatusResult:
    status: RepoStatus
    verdict: SyncVerdict
    errors: List[str] = field(default_factory=list)

    @property
    def can_push(self) -> bool:
        return self.status.error is None and self.verdict.can_push

    @property
    def has_changes(self) -> bool:
        return self.verdict.has_changes

    @property
    def failed(self) -> bool:
        return self.status.error is not None


@dataclass
class PushResult:
    success: bool
    pushed: bool
    error: Optional[str] = None


class SyncManager:
    """
    Runs mirror operations for configured repositories.

    Transport side effects live here; classification and aggregation are
    pure calls into ``classifier`` and ``verdict``.
    """

    def __init__(
        self,
        config: SyncConfig,
        oracle_factory: OracleFactory = GitAncestryOracle,
        workers: Optional[int] = None,
    ):
        self.config = config
        self.oracle_factory = oracle_factory
        self.workers = workers or config.workers

    @classmethod
    def from_config_file(cls, config_path: Optional[str] = None, workers: Optional[int] = None) -> "SyncManager":
        return cls(load_config(config_path), workers=workers)

    def repo_path(self, repo: RepoConfig) -> Path:
        return get_repo_path(self.config, repo.name)

    def _log(self, repo: RepoConfig, level: int, message: str) -> None:
        logger.log(level, f"[{repo.name}] {message}", extra={"repo": repo.name})

    # ─── Pull ───────────────────────────────────────────────

    def pull(self, repo: RepoConfig) -> PullResult:
        """Clone the public repo as a mirror, or fetch it if already cloned."""
        ensure_cache_dir(self.config)
        repo_path = self.repo_path(repo)
        exists = git.repo_exists(repo_path)
        timeout = self.config.transport_timeout

        if exists:
            self._log(repo, logging.INFO, f"Fetching updates from {repo.public}...")
            result = git.fetch_origin(repo_path, timeout=timeout)
            if not result.success:
                return PullResult(False, repo_path, False, f"Failed to fetch: {result.error}")
        else:
            if repo_path.exists():
                # Leftover from an interrupted clone
                shutil.rmtree(repo_path)
            self._log(repo, logging.INFO, f"Cloning from {repo.public}...")
            result = git.clone_mirror(repo.public, repo_path, timeout=timeout)
            if not result.success:
                return PullResult(False, repo_path, True, f"Failed to clone: {result.error}")

        remote = git.ensure_remote(repo_path, git.DEST_REMOTE, repo.private)
        if not remote.success:
            return PullResult(
                False, repo_path, not exists, f"Failed to add private remote: {remote.error}"
            )

        return PullResult(True, repo_path, not exists)

    # ─── Status ─────────────────────────────────────────────

    def _failed_status(self, status: RepoStatus, error: str) -> StatusResult:
        status.error = error
        self._log_failure(status.name, error)
        return StatusResult(
            status=status,
            verdict=SyncVerdict(can_push=False, has_changes=False),
            errors=[error],
        )

    def _log_failure(self, name: str, error: str) -> None:
        logger.error(f"[{name}] {error}", extra={"repo": name})

    def _fetch_destination(self, repo: RepoConfig, repo_path: Path) -> Optional[str]:
        """Refresh the destination's tracking refs. Returns an error message on failure."""
        timeout = self.config.transport_timeout
        self._log(repo, logging.INFO, "Fetching refs from private remote...")
        fetched = git.fetch_destination(repo_path, timeout=timeout)
        if fetched.success:
            return None

        if git.remote_is_empty(repo_path, timeout=timeout):
            self._log(repo, logging.INFO, "Private remote is empty")
            cleared = git.clear_tracking_refs(repo_path)
            return None if cleared.success else f"Could not reset private refs: {cleared.error}"

        return f"Could not fetch from private: {fetched.error}"

    def status(self, repo: RepoConfig, pull_first: bool = False) -> StatusResult:
        """Fetch the destination and classify every ref against it."""
        repo_path = self.repo_path(repo)
        status = RepoStatus(name=repo.name, public_url=repo.public, private_url=repo.private)

        if pull_first:
            pulled = self.pull(repo)
            if not pulled.success:
                return self._failed_status(status, pulled.error or "Pull failed")

        if not git.repo_exists(repo_path):
            status.error = NOT_PULLED
            return StatusResult(
                status=status,
                verdict=SyncVerdict(can_push=False, has_changes=False),
                errors=["Not pulled yet"],
            )

        status.pulled = True
        status.pulled_at = git.get_mirror_time(repo_path)

        fetch_error = self._fetch_destination(repo, repo_path)
        if fetch_error:
            return self._failed_status(status, fetch_error)

        timeout = self.config.git_timeout
        try:
            source_refs = inventory.list_local_refs(repo_path, timeout=timeout)
            dest_refs = inventory.list_remote_refs(repo_path, git.DEST_REMOTE, timeout=timeout)
        except git.GitCommandError as e:
            return self._failed_status(status, f"Could not list refs: {e}")

        try:
            records = classify(source_refs, dest_refs, self.oracle_factory(repo_path, timeout))
        except ComparisonError as e:
            return self._failed_status(
                status,
                f"Could not compare {e.ref}: {e.cause}. "
                "Run 'repo-sync pull' to re-fetch and try again.",
            )

        status.branches, status.tags = partition_by_kind(records)
        verdict = aggregate(records)

        for reason in verdict.blocking_reasons:
            self._log(repo, logging.WARNING, reason)

        return StatusResult(status=status, verdict=verdict, errors=list(verdict.blocking_reasons))

    # ─── Push ───────────────────────────────────────────────

    def push(self, repo: RepoConfig, force: bool = False, pull_first: bool = False) -> PushResult:
        """
        Push all branches and tags to the private remote.

        Refused when any ref is behind or diverged, unless ``force`` is set
        or the repo uses ``mark_source`` (whose notice commit diverges by
        construction). A status with nothing to push is a successful no-op;
        without ``prune``, refs deleted upstream alone are nothing to push.
        """
        repo_path = self.repo_path(repo)

        if pull_first:
            pulled = self.pull(repo)
            if not pulled.success:
                return PushResult(False, False, pulled.error)

        if not git.repo_exists(repo_path):
            return PushResult(False, False, NOT_PULLED)

        if force or repo.mark_source:
            reason = "--force" if force else "mark_source"
            self._log(repo, logging.WARNING, f"Skipping divergence check ({reason})")
        else:
            result = self.status(repo)
            if result.failed:
                return PushResult(False, False, result.status.error)
            if not result.can_push:
                return PushResult(False, False, "; ".join(result.errors))
            missing = [r for r in result.status.records if r.status is RefStatus.MISSING]
            if missing and not repo.prune:
                self._log(
                    repo,
                    logging.INFO,
                    f"{len(missing)} ref(s) deleted from public stay on private; set prune: true to remove them",
                )
            # Without prune, refs deleted upstream give the push nothing to do
            pushable = {RefStatus.AHEAD, RefStatus.NEW}
            if repo.prune:
                pushable.add(RefStatus.MISSING)
            if not any(r.status in pushable for r in result.status.records):
                self._log(repo, logging.INFO, "Already up to date")
                return PushResult(True, False)

        if repo.mark_source:
            self._log(repo, logging.INFO, "Adding source notice to README...")
            branch = git.get_default_branch(repo_path)
            added = notice.add_source_notice(repo_path, repo.public, branch)
            if not added.success:
                return PushResult(False, False, f"Failed to add source notice: {added.error}")

        self._log(repo, logging.INFO, f"Pushing to {repo.private}...")
        pushed = git.push_mirror(
            repo_path,
            git.DEST_REMOTE,
            prune=repo.prune,
            timeout=self.config.transport_timeout,
        )
        if not pushed.success:
            self._log_failure(repo.name, f"Push failed: {pushed.error}")
            return PushResult(False, False, f"Failed to push: {pushed.error}")

        return PushResult(True, True)

    # ─── Clean ──────────────────────────────────────────────

    def clean(self, repo: RepoConfig) -> bool:
        """Remove the local mirror. Returns True if something was removed."""
        repo_path = self.repo_path(repo)
        if not repo_path.exists():
            return False
        shutil.rmtree(repo_path)
        self._log(repo, logging.INFO, f"Removed {repo_path}")
        return True

    # ─── Fan-out ────────────────────────────────────────────

    def iter_all(
        self,
        operation: Callable[..., T],
        repos: List[RepoConfig],
        **kwargs: Any,
    ) -> Iterator[Tuple[RepoConfig, T]]:
        """
        Run ``operation`` for each repo, yielding results in config order.

        With more than one worker the pipelines run on a bounded thread
        pool; each repository's own steps stay sequential.
        """
        if self.workers <= 1 or len(repos) <= 1:
            for repo in repos:
                yield repo, operation(repo, **kwargs)
            return

        max_workers = min(self.workers, len(repos))
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="repo-sync") as pool:
            futures = [(repo, pool.submit(operation, repo, **kwargs)) for repo in repos]
            for repo, future in futures:
                yield repo, future.result()

    def run_all(self, operation: Callable[..., T], repos: List[RepoConfig], **kwargs: Any) -> List[T]:
        return [result for _, result in self.iter_all(operation, repos, **kwargs)]
