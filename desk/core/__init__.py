"""
Core desk logic.

Modules:
- config: Desk configuration and thresholds
- models: Data classes for OHLC inputs, computed levels and clusters
- levels: Level convergence engine
- hold: Press-and-hold repeater for increment buttons
- desk_core: Command interface over the persisted desk state
"""

from desk.core.config import DEFAULT_CONFIG, ClockZone, DeskConfig
from desk.core.hold import HoldRepeater
from desk.core.levels import cluster_levels, dominant_type, group_levels
from desk.core.models import (
    ComputedLevel,
    ConvergenceCluster,
    LevelType,
    OHLCInput,
    level_type_for,
    round_half_up,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ClockZone",
    "ComputedLevel",
    "ConvergenceCluster",
    "DeskConfig",
    "HoldRepeater",
    "LevelType",
    "OHLCInput",
    "cluster_levels",
    "dominant_type",
    "group_levels",
    "level_type_for",
    "round_half_up",
]
