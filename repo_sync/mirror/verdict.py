"""
Sync Verdict — Decide whether a mirror push is safe and worthwhile.

    can_push     no ref is behind or diverged
    has_changes  some ref is ahead, new, or missing

Blocking reasons are reported once per condition, not once per ref.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .refs import RefComparison, RefStatus

BEHIND_REASON = "Private has commits not in public - this shouldn't happen"
DIVERGED_REASON = "Refs have diverged - manual intervention may be needed"

CHANGE_STATUSES = frozenset({RefStatus.AHEAD, RefStatus.NEW, RefStatus.MISSING})


@dataclass(frozen=True)
class SyncVerdict:
    """Push eligibility for one repository."""

    can_push: bool
    has_changes: bool
    blocking_reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "can_push": self.can_push,
            "has_changes": self.has_changes,
            "blocking_reasons": list(self.blocking_reasons),
        }


def aggregate(records: Iterable[RefComparison]) -> SyncVerdict:
    """Reduce classification records to a verdict."""
    statuses = {r.status for r in records}

    reasons: List[str] = []
    if RefStatus.BEHIND in statuses:
        reasons.append(BEHIND_REASON)
    if RefStatus.DIVERGED in statuses:
        reasons.append(DIVERGED_REASON)

    return SyncVerdict(
        can_push=not reasons,
        has_changes=bool(statuses & CHANGE_STATUSES),
        blocking_reasons=reasons,
    )
