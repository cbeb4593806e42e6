"""
Level Convergence Engine.

Finds price levels where several independently computed pivot formulas
agree. Levels within a tolerance of each other are grouped, and groups
holding at least `threshold` levels are reported as convergence clusters.

Key Concepts:
- Tolerance: maximum absolute price difference for two levels to be
  treated as the same level
- Threshold: minimum number of member levels a cluster needs
- Dominant type: the majority role (pivot/support/resistance) of the
  members

Known limitation:
    Grouping is greedy and single-pass. A level is compared only with the
    FIRST member of each existing group, in group creation order, and joins
    the first group that is close enough. A level can therefore sit within
    tolerance of a later member of a group and still start a new group,
    e.g. [100.0, 100.4, 100.8] at tolerance 0.5 yields [100.0, 100.4] and
    [100.8]. Results also depend on input order.
"""

from collections.abc import Sequence

from desk.core.models import ComputedLevel, ConvergenceCluster, LevelType


def group_levels(levels: Sequence[ComputedLevel], tolerance: float) -> list[list[ComputedLevel]]:
    """
    Group levels by proximity to each group's first member.

    Args:
        levels: Levels in evaluation order
        tolerance: Maximum absolute difference to join a group

    Returns:
        Groups in creation order, members in input order
    """
    groups: list[list[ComputedLevel]] = []
    for level in levels:
        for group in groups:
            if abs(group[0].value - level.value) <= tolerance:
                group.append(level)
                break
        else:
            groups.append([level])
    return groups


def dominant_type(group: Sequence[ComputedLevel]) -> LevelType:
    """
    Majority level type of a group.

    Counts are taken in first-seen order and only a strictly larger count
    replaces the current leader, so ties go to the type seen first.
    """
    counts: dict[LevelType, int] = {}
    for level in group:
        counts[level.type] = counts.get(level.type, 0) + 1

    common = group[0].type
    max_count = 0
    for level_type, count in counts.items():
        if count > max_count:
            max_count = count
            common = level_type
    return common


def summarize_group(group: Sequence[ComputedLevel]) -> ConvergenceCluster:
    """Build the cluster record for one non-empty group."""
    return ConvergenceCluster(
        value=sum(level.value for level in group) / len(group),
        count=len(group),
        labels=sorted({level.label for level in group}),
        formulas=sorted({level.formula for level in group}),
        type=dominant_type(group),
    )


def cluster_levels(
    levels: Sequence[ComputedLevel],
    tolerance: float,
    threshold: int,
) -> list[ConvergenceCluster]:
    """
    Detect convergence clusters among computed levels.

    Args:
        levels: Levels from the last calculation, in evaluation order
        tolerance: Price half-width defining "close enough" (>= 0)
        threshold: Minimum number of levels per reported cluster (>= 1)

    Returns:
        Clusters sorted by value, highest first. Empty when there are no
        levels or no group reaches the threshold.
    """
    if tolerance < 0:
        raise ValueError("tolerance must be non-negative")
    if threshold < 1:
        raise ValueError("threshold must be at least 1")

    clusters = [
        summarize_group(group)
        for group in group_levels(levels, tolerance)
        if len(group) >= threshold
    ]
    clusters.sort(key=lambda c: c.value, reverse=True)
    return clusters
