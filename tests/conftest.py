"""
Shared fixtures for repo-sync tests.

Provides an in-memory commit graph that stands in for git when testing
the classifier, and a temporary config home so nothing touches
``~/.repo-sync``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Set

import pytest

from repo_sync.mirror.oracle import OracleError


class GraphOracle:
    """
    Ancestry oracle over a dict of commit → parent commits.

    Records every query so tests can assert on what was asked.
    """

    def __init__(self, parents: Dict[str, List[str]]):
        self.parents = parents
        self.calls: List[tuple] = []

    def _reachable(self, commit: str) -> Set[str]:
        if commit not in self.parents:
            raise OracleError(f"unknown commit {commit}")
        seen: Set[str] = set()
        stack = [commit]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.parents.get(current, []))
        return seen

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        self.calls.append(("is_ancestor", ancestor, descendant))
        self._reachable(ancestor)
        return ancestor in self._reachable(descendant)

    def count_exclusive(self, base: str, tip: str) -> int:
        self.calls.append(("count_exclusive", base, tip))
        return len(self._reachable(tip) - self._reachable(base))


def linear_history(*commits: str) -> Dict[str, List[str]]:
    """Build a single-parent chain: each commit's parent is the one before it."""
    graph: Dict[str, List[str]] = {}
    previous = None
    for commit in commits:
        graph[commit] = [previous] if previous else []
        previous = commit
    return graph


@pytest.fixture
def graph() -> Dict[str, List[str]]:
    """
    Commit graph used across classifier tests.

        A0 ── A1 ── A2 ── A3        main line
               └─── B1 ── B2        side branch off A1
        X0                          unrelated root
    """
    g = linear_history("A0", "A1", "A2", "A3")
    g.update({"B1": ["A1"], "B2": ["B1"], "X0": []})
    return g


@pytest.fixture
def oracle(graph) -> GraphOracle:
    return GraphOracle(graph)


@pytest.fixture
def sync_home(tmp_path: Path, monkeypatch) -> Path:
    """Point REPO_SYNC_HOME at a temp dir."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("REPO_SYNC_HOME", str(home))
    monkeypatch.delenv("REPO_SYNC_CONFIG", raising=False)
    return home


SAMPLE_CONFIG = """\
repos:
  - name: alpha
    public: https://example.com/org/alpha.git
    private: git@private.example.com:vendor/alpha.git
  - name: beta
    public: https://example.com/org/beta.git
    private: git@private.example.com:vendor/beta.git
    markSource: true
    prune: true
workers: 2
"""


@pytest.fixture
def config_file(sync_home: Path) -> Path:
    """A valid two-repo config at the default location."""
    path = sync_home / "config.yaml"
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path
