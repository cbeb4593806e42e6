"""
Desk State Manager

Persists the desk (flow totals, history, journal, parameters, formula
selection, convergence settings, OHLC inputs and the last computed
levels) to a key-value store so the desk resumes where it left off.

State is stored under three fixed keys:
    <prefix>state          - Flow Analyzer state
    <prefix>pivot_state    - Pivot Calculator state
    <prefix>current_tool   - Last active tool
"""

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Literal

from desk.core.config import DEFAULT_CONFIG, DeskConfig
from desk.core.models import ComputedLevel
from desk.flow.models import FlowState
from desk.state.store import KeyValueStore

logger = logging.getLogger(__name__)

Tool = Literal["analyzer", "pivot"]
TOOLS: tuple[str, ...] = ("analyzer", "pivot")

INPUT_FIELDS: tuple[str, ...] = ("high", "low", "close", "today_open", "yesterday_open")


def blank_inputs() -> dict[str, str]:
    return {name: "" for name in INPUT_FIELDS}


@dataclass
class PivotState:
    """
    Persisted Pivot Calculator state.

    `levels` is the full level list of the last successful calculation;
    it is replaced, never merged, on every recalculation. `inputs` holds
    the raw field text so half-typed values survive a restart.
    """

    selected_formulas: list[str] = field(default_factory=list)  # Ordered, unique
    tolerance: float = DEFAULT_CONFIG.default_tolerance
    convergence_threshold: int = DEFAULT_CONFIG.default_convergence_threshold
    levels: list[ComputedLevel] = field(default_factory=list)
    inputs: dict[str, str] = field(default_factory=blank_inputs)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "selected_formulas": list(self.selected_formulas),
            "tolerance": self.tolerance,
            "convergence_threshold": self.convergence_threshold,
            "levels": [level.to_dict() for level in self.levels],
            "inputs": dict(self.inputs),
        }

    @classmethod
    def from_dict(cls, data: dict, config: DeskConfig = DEFAULT_CONFIG) -> "PivotState":
        """
        Create from dictionary.

        Raises:
            ValueError: If tolerance or threshold are out of range
        """
        tolerance = float(data.get("tolerance", config.default_tolerance))
        threshold = int(data.get("convergence_threshold", config.default_convergence_threshold))
        if not math.isfinite(tolerance) or tolerance < 0:
            raise ValueError(f"Stored tolerance {tolerance} is invalid")
        if threshold < 1:
            raise ValueError(f"Stored convergence threshold {threshold} is invalid")

        selected: list[str] = []
        for formula_id in data.get("selected_formulas", list(config.default_formulas)):
            if str(formula_id) not in selected:
                selected.append(str(formula_id))

        inputs = blank_inputs()
        for name, raw in (data.get("inputs") or {}).items():
            if name in inputs and raw is not None:
                inputs[name] = str(raw)

        return cls(
            selected_formulas=selected,
            tolerance=tolerance,
            convergence_threshold=threshold,
            levels=[ComputedLevel.from_dict(level) for level in data.get("levels", [])],
            inputs=inputs,
        )


@dataclass
class DeskState:
    """Complete desk state that gets persisted."""

    flow: FlowState = field(default_factory=FlowState)
    pivot: PivotState = field(default_factory=PivotState)
    current_tool: str = "analyzer"


class DeskStateManager:
    """
    Manages persistence of desk state.

    Reads never fail: a missing key gives the documented defaults and a
    corrupt value gives defaults for that key (with a warning), so one bad
    entry does not wipe the rest of the desk.
    """

    def __init__(self, store: KeyValueStore, config: DeskConfig | None = None):
        self.store = store
        self.config = config or DEFAULT_CONFIG
        prefix = self.config.storage_prefix
        self.flow_key = f"{prefix}state"
        self.pivot_key = f"{prefix}pivot_state"
        self.tool_key = f"{prefix}current_tool"

    @property
    def has_saved_state(self) -> bool:
        """Check if any desk state has been saved."""
        return any(
            self.store.get(key) is not None
            for key in (self.flow_key, self.pivot_key, self.tool_key)
        )

    def create_initial_state(self) -> DeskState:
        """
        Create a fresh desk state.

        Returns:
            A new DeskState with the default formula selection and settings
        """
        return DeskState(
            flow=FlowState(),
            pivot=PivotState(
                selected_formulas=list(self.config.default_formulas),
                tolerance=self.config.default_tolerance,
                convergence_threshold=self.config.default_convergence_threshold,
            ),
            current_tool="analyzer",
        )

    def _read_json(self, key: str) -> dict | None:
        raw = self.store.get(key)
        if raw is None:
            return None
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def load_state(self) -> DeskState:
        """
        Load desk state from the store.

        Returns:
            DeskState, with defaults for anything missing or unreadable
        """
        state = self.create_initial_state()

        try:
            flow_data = self._read_json(self.flow_key)
            if flow_data is not None:
                state.flow = FlowState.from_dict(flow_data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Could not load flow state, using defaults: {e}")

        try:
            pivot_data = self._read_json(self.pivot_key)
            if pivot_data is not None:
                state.pivot = PivotState.from_dict(pivot_data, self.config)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Could not load pivot state, using defaults: {e}")

        tool = self.store.get(self.tool_key)
        if tool in TOOLS:
            state.current_tool = tool
        elif tool is not None:
            logger.warning(f"Ignoring unknown saved tool '{tool}'")

        return state

    def save_state(self, state: DeskState) -> None:
        """
        Save desk state to the store.

        Args:
            state: The desk state to save
        """
        self.store.set(self.flow_key, json.dumps(state.flow.to_dict()))
        self.store.set(self.pivot_key, json.dumps(state.pivot.to_dict()))
        self.store.set(self.tool_key, state.current_tool)

    def clear_state(self) -> None:
        """Remove saved state (for reset functionality)."""
        self.store.clear()
