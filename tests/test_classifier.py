"""
Tests for the ref classifier.

All ancestry queries go to the in-memory GraphOracle from conftest, so no
git repositories are involved.
"""

from __future__ import annotations

import pytest

from repo_sync.mirror.classifier import ComparisonError, classify, partition_by_kind
from repo_sync.mirror.refs import Ahead, Behind, Diverged, Missing, New, RefKind, RefStatus, Same
from repo_sync.mirror.verdict import aggregate


def _by_name(records):
    return {r.qualified_name: r for r in records}


class TestBasicOutcomes:
    """One test per status."""

    def test_same(self, oracle):
        """Identical commit → same, without consulting the oracle."""
        records = classify({"heads/main": "A2"}, {"heads/main": "A2"}, oracle)

        assert len(records) == 1
        assert records[0].status is RefStatus.SAME
        assert records[0].outcome == Same()
        assert oracle.calls == []

    def test_ahead(self, oracle):
        """Destination is an ancestor of source → ahead with exclusive count."""
        records = classify({"heads/main": "A3"}, {"heads/main": "A1"}, oracle)

        record = records[0]
        assert record.status is RefStatus.AHEAD
        assert record.ahead_count == 2
        assert record.behind_count is None
        assert record.source_commit == "A3"
        assert record.dest_commit == "A1"

    def test_behind(self, oracle):
        """Source is an ancestor of destination → behind."""
        records = classify({"heads/main": "A1"}, {"heads/main": "A3"}, oracle)

        record = records[0]
        assert record.status is RefStatus.BEHIND
        assert record.behind_count == 2
        assert record.ahead_count is None

    def test_diverged(self, oracle):
        """Side branch vs main line → diverged."""
        records = classify({"heads/main": "A3"}, {"heads/main": "B2"}, oracle)

        assert records[0].status is RefStatus.DIVERGED
        assert records[0].ahead_count is None
        assert records[0].behind_count is None

    def test_unrelated_histories_are_diverged(self, oracle):
        """Commits with no common ancestor → diverged, not an error."""
        records = classify({"heads/main": "A3"}, {"heads/main": "X0"}, oracle)

        assert records[0].outcome == Diverged()

    def test_new(self, oracle):
        """Only on source → new."""
        records = classify({"heads/feature": "B2"}, {}, oracle)

        assert records[0].status is RefStatus.NEW
        assert records[0].dest_commit is None

    def test_missing(self, oracle):
        """Only on destination → missing."""
        records = classify({}, {"tags/v1": "A0"}, oracle)

        record = records[0]
        assert record.status is RefStatus.MISSING
        assert record.kind is RefKind.TAG
        assert record.name == "v1"
        assert record.source_commit is None
        assert record.dest_commit == "A0"


class TestProperties:
    """Properties that hold for any pair of inventories."""

    @pytest.mark.parametrize("refs", [
        {},
        {"heads/main": "A3"},
        {"heads/main": "A3", "heads/side": "B2", "tags/v1": "A0", "tags/v2": "X0"},
    ])
    def test_identical_inventories_are_all_same(self, oracle, refs):
        """Identical inventories → all same, pushable, nothing to do."""
        records = classify(refs, dict(refs), oracle)
        verdict = aggregate(records)

        assert all(r.status is RefStatus.SAME for r in records)
        assert len(records) == len(refs)
        assert verdict.can_push is True
        assert verdict.has_changes is False

    @pytest.mark.parametrize("dest,src,expected", [
        ("A0", "A1", 1),
        ("A0", "A3", 3),
        ("A1", "B2", 2),
        ("A2", "A3", 1),
    ])
    def test_ahead_count_and_swap_symmetry(self, oracle, dest, src, expected):
        """Ahead count = commits between them; swapping gives behind with the same count."""
        forward = classify({"heads/x": src}, {"heads/x": dest}, oracle)[0]
        swapped = classify({"heads/x": dest}, {"heads/x": src}, oracle)[0]

        assert forward.outcome == Ahead(expected)
        assert swapped.outcome == Behind(expected)
        assert forward.ahead_count >= 1

    @pytest.mark.parametrize("a,b", [("A3", "B2"), ("B1", "A2"), ("X0", "A0"), ("B2", "X0")])
    def test_non_ancestor_pairs_diverge_and_block(self, oracle, a, b):
        """Mutually non-ancestor commits → diverged and can_push false."""
        records = classify({"heads/x": a}, {"heads/x": b}, oracle)

        assert records[0].status is RefStatus.DIVERGED
        assert aggregate(records).can_push is False

    def test_every_name_gets_exactly_one_record(self, oracle):
        """The union of names is covered once each."""
        source = {"heads/main": "A3", "heads/side": "B1", "tags/v1": "A0"}
        dest = {"heads/main": "A1", "heads/old": "A0", "tags/v1": "A0", "tags/v0": "X0"}

        records = classify(source, dest, oracle)
        names = [r.qualified_name for r in records]

        assert sorted(names) == sorted(set(source) | set(dest))
        assert len(names) == len(set(names))

    def test_classification_is_idempotent(self, oracle):
        """Classifying unchanged inventories twice yields the same records."""
        source = {"heads/main": "A3", "heads/side": "B2", "tags/v1": "A0"}
        dest = {"heads/main": "A1", "heads/side": "A3", "tags/gone": "X0"}

        assert classify(source, dest, oracle) == classify(source, dest, oracle)

    def test_adding_then_removing_destination_ref_is_idempotent(self, oracle):
        """A destination-only ref added then removed leaves the result unchanged."""
        source = {"heads/main": "A3"}
        dest = {"heads/main": "A2"}
        before = classify(source, dest, oracle)

        with_extra = dict(dest, **{"tags/tmp": "X0"})
        assert _by_name(classify(source, with_extra, oracle))["tags/tmp"].status is RefStatus.MISSING

        assert classify(source, dict(dest), oracle) == before


class TestScenarios:
    """Concrete end-to-end scenarios."""

    def test_main_two_commits_ahead(self, oracle):
        """heads/main = A3 vs A1 two commits back → ahead 2, pushable with changes."""
        records = classify({"heads/main": "A3"}, {"heads/main": "A1"}, oracle)
        verdict = aggregate(records)

        assert records[0].name == "main"
        assert records[0].outcome == Ahead(2)
        assert verdict.can_push is True
        assert verdict.has_changes is True

    def test_tag_deleted_upstream(self, oracle):
        """tags/v1 only on destination → missing; changes but still pushable."""
        records = classify({}, {"tags/v1": "X0"}, oracle)
        verdict = aggregate(records)

        assert records[0].name == "v1"
        assert records[0].outcome == Missing()
        assert verdict.has_changes is True
        assert verdict.can_push is True

    def test_one_diverged_among_many_same(self, oracle):
        """A single diverged ref blocks with exactly one reason."""
        source = {f"heads/b{i}": "A3" for i in range(10)}
        source["heads/main"] = "A3"
        dest = dict(source)
        dest["heads/main"] = "B2"

        verdict = aggregate(classify(source, dest, oracle))

        assert verdict.can_push is False
        assert len(verdict.blocking_reasons) == 1
        assert "diverged" in verdict.blocking_reasons[0]


class TestOracleFailures:
    """An unanswerable query is an error, never a divergence."""

    def test_unknown_commit_raises(self, oracle):
        with pytest.raises(ComparisonError) as exc_info:
            classify({"heads/main": "A3"}, {"heads/main": "deadbeef"}, oracle)

        assert exc_info.value.ref == "heads/main"
        assert "deadbeef" in str(exc_info.value)

    def test_failure_is_not_reported_as_diverged(self, oracle):
        """No partial record list comes back on failure."""
        result = None
        with pytest.raises(ComparisonError):
            result = classify(
                {"heads/ok": "A3", "heads/bad": "A3"},
                {"heads/ok": "A1", "heads/bad": "nope"},
                oracle,
            )
        assert result is None


class TestOrderingAndPartition:
    """Record order and branch/tag grouping."""

    def test_source_order_then_missing(self, oracle):
        source = {"heads/a": "A3", "heads/b": "A2", "tags/t": "A0"}
        dest = {"heads/z": "A0", "heads/a": "A3"}

        names = [r.qualified_name for r in classify(source, dest, oracle)]

        assert names == ["heads/a", "heads/b", "tags/t", "heads/z"]

    def test_partition_by_kind(self, oracle):
        records = classify(
            {"heads/main": "A3", "tags/v1": "A1", "heads/dev": "B2"},
            {"tags/v0": "A0"},
            oracle,
        )

        branches, tags = partition_by_kind(records)

        assert [b.name for b in branches] == ["main", "dev"]
        assert [t.name for t in tags] == ["v1", "v0"]

    def test_branch_names_with_slashes(self, oracle):
        """Only the first path component is the namespace."""
        records = classify({"heads/feature/login": "B2"}, {}, oracle)

        assert records[0].kind is RefKind.BRANCH
        assert records[0].name == "feature/login"
        assert records[0].outcome == New()
