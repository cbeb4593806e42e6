#!/usr/bin/env python3
"""
Unit tests for the level convergence engine.

Run with:
    python -m pytest tests/test_convergence.py -v

Or standalone:
    python tests/test_convergence.py
"""

import sys
from pathlib import Path

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from desk.core.levels import cluster_levels, dominant_type, group_levels
from desk.core.models import ComputedLevel, ConvergenceCluster, LevelType, OHLCInput, level_type_for
from desk.pivots import compute_levels, formula_ids


def make_levels(values: list[float], labels: list[str] | None = None, formulas: list[str] | None = None) -> list[ComputedLevel]:
    """Helper to create levels from a list of values."""
    labels = labels or ["S1"] * len(values)
    formulas = formulas or [f"F{i}" for i in range(len(values))]
    return [
        ComputedLevel(formula=formula, label=label, value=value, type=level_type_for(label))
        for value, label, formula in zip(values, labels, formulas)
    ]


class TestGrouping:
    """Tests for greedy first-member grouping."""

    def test_zero_tolerance_exact_matches_only(self):
        """Test tolerance 0 only groups identical values."""
        clusters = cluster_levels(make_levels([100.00, 100.00, 100.01]), tolerance=0, threshold=2)
        assert len(clusters) == 1
        assert clusters[0].count == 2
        assert clusters[0].value == pytest.approx(100.0)

    def test_compares_with_first_member_only(self):
        """Test a level near a later member but far from the first starts a new group."""
        groups = group_levels(make_levels([100.0, 100.4, 100.8]), tolerance=0.5)
        assert [[level.value for level in group] for group in groups] == [[100.0, 100.4], [100.8]]

    def test_first_member_quirk_in_clusters(self):
        """Test the greedy grouping shows up in the reported clusters."""
        levels = make_levels([100.0, 100.4, 100.8])

        pairs = cluster_levels(levels, tolerance=0.5, threshold=2)
        assert len(pairs) == 1
        assert pairs[0].value == pytest.approx(100.2)

        singles = cluster_levels(levels, tolerance=0.5, threshold=1)
        assert [c.count for c in singles] == [1, 2]
        assert singles[0].value == pytest.approx(100.8)

    def test_boundary_is_inclusive(self):
        """Test a difference equal to the tolerance joins the group."""
        clusters = cluster_levels(make_levels([100.0, 100.5]), tolerance=0.5, threshold=2)
        assert len(clusters) == 1

    def test_joins_first_matching_group(self):
        """Test a level within tolerance of two groups joins the earlier one."""
        groups = group_levels(make_levels([100.0, 101.0, 100.5]), tolerance=0.5)
        assert [level.value for level in groups[0]] == [100.0, 100.5]
        assert [level.value for level in groups[1]] == [101.0]


class TestClusterSummary:
    """Tests for per-cluster statistics."""

    def test_mean_labels_formulas(self):
        """Test value is the mean and labels/formulas are sorted and distinct."""
        levels = make_levels(
            [100.0, 100.2, 100.4],
            labels=["S1", "R1", "S1"],
            formulas=["STANDARD PIVOT", "CLASSIC STANDARD", "STANDARD PIVOT"],
        )
        clusters = cluster_levels(levels, tolerance=0.5, threshold=3)
        cluster = clusters[0]
        assert cluster.value == pytest.approx(100.2)
        assert cluster.count == 3
        assert cluster.labels == ["R1", "S1"]
        assert cluster.formulas == ["CLASSIC STANDARD", "STANDARD PIVOT"]
        assert cluster.type == LevelType.SUPPORT

    def test_dominant_type_tie_goes_to_first_seen(self):
        """Test ties resolve to the type that reached the maximum first."""
        assert dominant_type(make_levels([1, 1], labels=["R1", "S1"])) == LevelType.RESISTANCE
        assert dominant_type(make_levels([1, 1], labels=["S1", "R1"])) == LevelType.SUPPORT

    def test_dominant_type_majority(self):
        """Test the majority type wins regardless of order."""
        group = make_levels([1, 1, 1], labels=["PP", "R1", "R2"])
        assert dominant_type(group) == LevelType.RESISTANCE

    def test_sorted_highest_first(self):
        """Test clusters are sorted by value descending."""
        levels = make_levels([90.0, 110.0, 100.0, 90.1, 110.1, 100.1])
        clusters = cluster_levels(levels, tolerance=0.5, threshold=2)
        values = [c.value for c in clusters]
        assert values == sorted(values, reverse=True)
        assert len(clusters) == 3

    def test_formula_summary(self):
        """Test contributor list truncation."""
        cluster = ConvergenceCluster(
            value=100.0, count=5, labels=["S1"], formulas=["A", "B", "C", "D", "E"]
        )
        assert cluster.formula_summary() == "A, B, C +2 more"
        assert cluster.formula_summary(limit=5) == "A, B, C, D, E"
        assert cluster.label_summary() == "S1"


class TestEdgeCases:
    """Tests for empty input, thresholds and purity."""

    def test_empty_levels(self):
        """Test no levels gives no clusters."""
        assert cluster_levels([], tolerance=0.5, threshold=1) == []

    def test_threshold_above_level_count(self):
        """Test a threshold larger than the number of levels gives no clusters."""
        assert cluster_levels(make_levels([100.0, 100.0]), tolerance=0.5, threshold=3) == []

    def test_invalid_settings(self):
        """Test negative tolerance and zero threshold are rejected."""
        levels = make_levels([100.0])
        with pytest.raises(ValueError):
            cluster_levels(levels, tolerance=-0.1, threshold=1)
        with pytest.raises(ValueError):
            cluster_levels(levels, tolerance=0.5, threshold=0)

    def test_idempotent_and_pure(self):
        """Test repeated runs agree and the input is untouched."""
        levels = compute_levels(OHLCInput(100, 90, 95, 95, 92), formula_ids()).levels
        snapshot = list(levels)

        first = cluster_levels(levels, tolerance=0.5, threshold=3)
        second = cluster_levels(levels, tolerance=0.5, threshold=3)
        assert first == second
        assert levels == snapshot

    def test_every_member_counted(self):
        """Test one formula can contribute several members to a cluster."""
        levels = make_levels([95.0, 95.0], labels=["PP", "S1"], formulas=["MIDPOINT PIVOT"] * 2)
        clusters = cluster_levels(levels, tolerance=0, threshold=2)
        assert clusters[0].count == 2
        assert clusters[0].formulas == ["MIDPOINT PIVOT"]


def run_tests():
    """Run all tests and report results."""
    return pytest.main([__file__, "-v"]) == 0


if __name__ == "__main__":
    success = run_tests()
    sys.exit(0 if success else 1)
