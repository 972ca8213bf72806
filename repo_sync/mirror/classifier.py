"""
Ref Classifier — Compare a source inventory against a destination inventory.

For every ref name on either side, exactly one outcome:

    source only                     → new
    destination only                → missing
    same object id                  → same
    destination is an ancestor      → ahead  (count = commits dest..source)
    source is an ancestor           → behind (count = commits source..dest)
    neither                         → diverged

The classifier is a pure function of its inputs; it performs no fetches.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from .oracle import AncestryOracle, OracleError
from .refs import (
    Ahead,
    Behind,
    Diverged,
    Inventory,
    Missing,
    New,
    Outcome,
    RefComparison,
    RefKind,
    Same,
    parse_qualified,
)

logger = logging.getLogger(__name__)


class ComparisonError(Exception):
    """An ancestry query failed, so a ref could not be classified."""

    def __init__(self, ref: str, cause: OracleError):
        self.ref = ref
        self.cause = cause
        super().__init__(f"{ref}: {cause}")


def _relate(source_commit: str, dest_commit: str, oracle: AncestryOracle) -> Outcome:
    if oracle.is_ancestor(dest_commit, source_commit):
        return Ahead(oracle.count_exclusive(dest_commit, source_commit))
    if oracle.is_ancestor(source_commit, dest_commit):
        return Behind(oracle.count_exclusive(source_commit, dest_commit))
    return Diverged()


def classify(
    source: Inventory,
    dest: Inventory,
    oracle: AncestryOracle,
) -> List[RefComparison]:
    """
    Classify every ref in ``source`` and ``dest``.

    Source refs come first in inventory order, followed by refs that
    only exist on the destination.

    Raises:
        ComparisonError: If the oracle cannot answer for some ref
    """
    records: List[RefComparison] = []

    for qualified, source_commit in source.items():
        kind, name = parse_qualified(qualified)
        dest_commit = dest.get(qualified)

        if dest_commit is None:
            outcome: Outcome = New()
        elif dest_commit == source_commit:
            outcome = Same()
        else:
            try:
                outcome = _relate(source_commit, dest_commit, oracle)
            except OracleError as e:
                raise ComparisonError(qualified, e) from e

        records.append(RefComparison(name, kind, source_commit, dest_commit, outcome))

    for qualified, dest_commit in dest.items():
        if qualified in source:
            continue
        kind, name = parse_qualified(qualified)
        records.append(RefComparison(name, kind, None, dest_commit, Missing()))

    logger.debug(f"[classify] {len(records)} refs classified")
    return records


def partition_by_kind(records: List[RefComparison]) -> Tuple[List[RefComparison], List[RefComparison]]:
    """Split records into (branches, tags), keeping their order."""
    branches = [r for r in records if r.kind is RefKind.BRANCH]
    tags = [r for r in records if r.kind is RefKind.TAG]
    return branches, tags
