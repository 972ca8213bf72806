"""
Ref Inventory — List branches and tags on either side of a mirror.

Both functions read the local mirror only; fetching is the caller's job
and must complete before the inventory is read.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .git import DEST_REMOTE, GIT_TIMEOUT, run_git_checked, tracking_prefix
from .refs import Inventory, RefKind, qualify

logger = logging.getLogger(__name__)

# Annotated tags also report the commit they point at (%(*objectname))
REF_FORMAT = "--format=%(refname) %(objectname) %(*objectname)"


def _read_refs(repo_path: Path, prefix: str, timeout: int) -> Inventory:
    """
    Map ``<namespace>/<name>`` → commit id for every ref under ``prefix``.

    ``prefix`` is a ref directory holding ``heads/`` and ``tags/``
    (``refs`` for the source, ``refs/remotes/<remote>`` for the destination).
    """
    inventory: Inventory = {}
    for kind in (RefKind.BRANCH, RefKind.TAG):
        base = f"{prefix}/{kind.namespace}/"
        output = run_git_checked(repo_path, "for-each-ref", REF_FORMAT, base, timeout=timeout)
        for line in output.splitlines():
            fields = line.split()
            if len(fields) < 2 or not fields[0].startswith(base):
                continue
            refname, commit = fields[0], fields[-1]
            inventory[qualify(kind, refname[len(base):])] = commit
    return inventory


def list_local_refs(repo_path: Path, timeout: int = GIT_TIMEOUT) -> Inventory:
    """Source inventory: the mirror's own branches and tags."""
    refs = _read_refs(repo_path, "refs", timeout)
    logger.debug(f"[inventory] {repo_path.name}: {len(refs)} source refs")
    return refs


def list_remote_refs(repo_path: Path, remote: str = DEST_REMOTE, timeout: int = GIT_TIMEOUT) -> Inventory:
    """Destination inventory: refs fetched from ``remote`` into its tracking namespace."""
    refs = _read_refs(repo_path, tracking_prefix(remote), timeout)
    logger.debug(f"[inventory] {repo_path.name}: {len(refs)} refs on {remote}")
    return refs
