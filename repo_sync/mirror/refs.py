"""
Ref Models — Reference identities, inventories, and comparison records.

An inventory maps a qualified ref name (``heads/<branch>`` or
``tags/<tag>``) to the object id it points at. Comparing two inventories
yields one ``RefComparison`` per name, each holding exactly one outcome:

    Same, Ahead(count), Behind(count), Diverged, New, Missing

Only ``Ahead`` and ``Behind`` carry a commit count, so an ahead record
without a count cannot be built.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Optional, Tuple, Union

# Qualified ref name → object id, in git's sorted order
Inventory = Dict[str, str]

SHORT_SHA_LENGTH = 7
NO_COMMIT = "-" * SHORT_SHA_LENGTH


class RefKind(str, Enum):
    """Kind of reference."""
    BRANCH = "branch"
    TAG = "tag"

    @property
    def namespace(self) -> str:
        """Prefix used in qualified names and under ``refs/``."""
        return "heads" if self is RefKind.BRANCH else "tags"

    @classmethod
    def from_namespace(cls, namespace: str) -> "RefKind":
        if namespace == "heads":
            return cls.BRANCH
        if namespace == "tags":
            return cls.TAG
        raise ValueError(f"Unknown ref namespace: {namespace!r}")


class RefStatus(str, Enum):
    """Relationship of the source ref to the destination ref."""
    SAME = "same"           # Identical commit
    AHEAD = "ahead"         # Destination can be fast-forwarded
    BEHIND = "behind"       # Destination has commits the source lacks
    DIVERGED = "diverged"   # Neither is an ancestor of the other
    NEW = "new"             # Only on the source
    MISSING = "missing"     # Only on the destination (deleted upstream)


def qualify(kind: RefKind, name: str) -> str:
    """Build a qualified ref name, e.g. ``heads/main``."""
    return f"{kind.namespace}/{name}"


def parse_qualified(qualified: str) -> Tuple[RefKind, str]:
    """
    Split a qualified ref name into (kind, short name).

    Short names keep any further slashes: ``heads/feature/x`` is the
    branch ``feature/x``.
    """
    namespace, sep, name = qualified.partition("/")
    if not sep or not name:
        raise ValueError(f"Not a qualified ref name: {qualified!r}")
    return RefKind.from_namespace(namespace), name


def short_sha(sha: Optional[str]) -> str:
    return sha[:SHORT_SHA_LENGTH] if sha else NO_COMMIT


# --- Outcomes ---


@dataclass(frozen=True)
class Same:
    status: ClassVar[RefStatus] = RefStatus.SAME


@dataclass(frozen=True)
class Ahead:
    """Source is ``count`` commits ahead of the destination."""

    count: int
    status: ClassVar[RefStatus] = RefStatus.AHEAD

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"Commit count must be non-negative, got {self.count}")


@dataclass(frozen=True)
class Behind:
    """Destination is ``count`` commits ahead of the source."""

    count: int
    status: ClassVar[RefStatus] = RefStatus.BEHIND

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"Commit count must be non-negative, got {self.count}")


@dataclass(frozen=True)
class Diverged:
    status: ClassVar[RefStatus] = RefStatus.DIVERGED


@dataclass(frozen=True)
class New:
    status: ClassVar[RefStatus] = RefStatus.NEW


@dataclass(frozen=True)
class Missing:
    status: ClassVar[RefStatus] = RefStatus.MISSING


Outcome = Union[Same, Ahead, Behind, Diverged, New, Missing]


@dataclass(frozen=True)
class RefComparison:
    """Classification of one ref name across source and destination."""

    name: str
    kind: RefKind
    source_commit: Optional[str]
    dest_commit: Optional[str]
    outcome: Outcome

    def __post_init__(self):
        if isinstance(self.outcome, New):
            if self.source_commit is None or self.dest_commit is not None:
                raise ValueError(f"{self.qualified_name}: 'new' needs a source commit only")
        elif isinstance(self.outcome, Missing):
            if self.source_commit is not None or self.dest_commit is None:
                raise ValueError(f"{self.qualified_name}: 'missing' needs a destination commit only")
        elif self.source_commit is None or self.dest_commit is None:
            raise ValueError(
                f"{self.qualified_name}: '{self.status.value}' needs both commits"
            )

    @property
    def status(self) -> RefStatus:
        return self.outcome.status

    @property
    def qualified_name(self) -> str:
        return qualify(self.kind, self.name)

    @property
    def ahead_count(self) -> Optional[int]:
        return self.outcome.count if isinstance(self.outcome, Ahead) else None

    @property
    def behind_count(self) -> Optional[int]:
        return self.outcome.count if isinstance(self.outcome, Behind) else None

    def to_dict(self) -> Dict:
        """Plain dict for JSON output."""
        data = {
            "name": self.name,
            "kind": self.kind.value,
            "status": self.status.value,
            "source_commit": self.source_commit,
            "dest_commit": self.dest_commit,
        }
        if self.ahead_count is not None:
            data["ahead_count"] = self.ahead_count
        if self.behind_count is not None:
            data["behind_count"] = self.behind_count
        return data
