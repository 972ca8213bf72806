"""
Status Report — Render status results for the terminal or as JSON.
"""

from __future__ import annotations

from typing import Dict, List

from .manager import NOT_PULLED, StatusResult
from .refs import RefComparison, RefStatus, short_sha

WARNING_MARK = "⚠️"


def format_ref_comparison(ref: RefComparison) -> str:
    """One indented line describing a single ref."""
    src = short_sha(ref.source_commit)
    dest = short_sha(ref.dest_commit)

    if ref.status is RefStatus.SAME:
        return f"  {ref.name}: {src} (up to date)"
    if ref.status is RefStatus.AHEAD:
        return f"  {ref.name}: {dest} → {src} (+{ref.ahead_count} commits)"
    if ref.status is RefStatus.BEHIND:
        return f"  {ref.name}: {src} ← {dest} (private is {ref.behind_count} ahead!) {WARNING_MARK}"
    if ref.status is RefStatus.NEW:
        return f"  {ref.name}: {src} (new)"
    if ref.status is RefStatus.MISSING:
        return f"  {ref.name}: deleted from public (was {dest})"
    return f"  {ref.name}: {src} ≠ {dest} (diverged!) {WARNING_MARK}"


def format_status(result: StatusResult) -> str:
    """Multi-line status block for one repository."""
    s = result.status
    lines: List[str] = [
        f"\n{s.name}",
        f"  Public:  {s.public_url}",
        f"  Private: {s.private_url}",
    ]

    if not s.pulled:
        lines.append("  Status:  Not pulled yet")
        if s.error and s.error != NOT_PULLED:
            lines.append(f"  Error:   {s.error}")
        return "\n".join(lines)

    if s.pulled_at:
        lines.append(f"  Pulled:  {s.pulled_at.strftime('%Y-%m-%d %H:%M:%S')}")

    changed_branches = [b for b in s.branches if b.status is not RefStatus.SAME]
    changed_tags = [t for t in s.tags if t.status is not RefStatus.SAME]

    if s.error is None and not changed_branches and not changed_tags:
        lines.append("  Status:  Up to date ✓")
    else:
        if changed_branches:
            lines.append("  Branches:")
            lines.extend(format_ref_comparison(b) for b in changed_branches)
        if changed_tags:
            lines.append("  Tags:")
            lines.extend(format_ref_comparison(t) for t in changed_tags)

    if result.errors:
        lines.append("  Errors:")
        for error in result.errors:
            lines.append(f"    {WARNING_MARK}  {error}")

    return "\n".join(lines)


def status_to_dict(result: StatusResult) -> Dict:
    """JSON-ready view of a status result."""
    s = result.status
    return {
        "name": s.name,
        "public_url": s.public_url,
        "private_url": s.private_url,
        "pulled": s.pulled,
        "pulled_at": s.pulled_at.isoformat() if s.pulled_at else None,
        "error": s.error,
        "branches": [b.to_dict() for b in s.branches],
        "tags": [t.to_dict() for t in s.tags],
        "can_push": result.can_push,
        "has_changes": result.has_changes,
        "errors": list(result.errors),
    }
