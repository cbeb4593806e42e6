"""
Desk Core - the single command interface to the desk state.

Used by BOTH front ends:
- DeskDashboard (Textual TUI)
- run_cli (one-shot command line)

Architecture:
    UI event → DeskCore command → state mutation → persist → re-render

    DeskCore handles:
    - Formula selection (the Selection Set)
    - Raw OHLC inputs and pivot recalculation
    - Convergence settings and re-clustering
    - Tool switching and full reset
    - The Flow Analyzer (its changes persist through the same store)

Every command either completes and persists, or raises ValueError before
touching any state.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from desk.core.config import DEFAULT_CONFIG, DeskConfig
from desk.core.levels import cluster_levels
from desk.core.models import ComputedLevel, ConvergenceCluster, OHLCInput
from desk.flow.analyzer import FlowAnalyzer
from desk.pivots.catalog import compute_levels, formula_ids, get_formula, group_levels_by_formula
from desk.state.state_manager import INPUT_FIELDS, TOOLS, DeskState, DeskStateManager
from desk.state.store import KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


@dataclass
class PivotReport:
    """Everything the pivot views show after a calculation."""

    results: dict[str, dict[str, float]]  # Formula name -> label -> value
    levels: list[ComputedLevel]
    clusters: list[ConvergenceCluster]
    skipped: list[str] = field(default_factory=list)  # Not-applicable formula ids


class DeskCore:
    """
    Owns the desk state and exposes every command the UI can issue.

    Convergence clusters are never stored: they are derived from the
    retained levels and the current tolerance/threshold on demand, so
    changing either setting re-clusters without re-evaluating formulas.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        config: DeskConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or DEFAULT_CONFIG
        self.state_manager = DeskStateManager(store if store is not None else MemoryStore(), self.config)
        self.state: DeskState = self.state_manager.load_state()
        self._drop_unknown_formulas()
        self.flow = FlowAnalyzer(self.state.flow, self.config, on_change=self.save, clock=clock)

        logger.info(
            f"Desk loaded: {len(self.state.pivot.selected_formulas)} formulas selected, "
            f"{len(self.state.pivot.levels)} stored levels, tool={self.state.current_tool}"
        )

    def _drop_unknown_formulas(self) -> None:
        known = set(formula_ids())
        selected = self.state.pivot.selected_formulas
        unknown = [formula_id for formula_id in selected if formula_id not in known]
        if unknown:
            logger.warning(f"Dropping unknown formulas from saved selection: {unknown}")
            self.state.pivot.selected_formulas = [f for f in selected if f in known]

    def save(self) -> None:
        """Persist the whole desk."""
        self.state_manager.save_state(self.state)

    def flush(self) -> None:
        """Final save before exit."""
        self.save()
        logger.debug("Desk state flushed")

    # =========================================================
    # Formula selection
    # =========================================================

    @property
    def selected_formulas(self) -> list[str]:
        return list(self.state.pivot.selected_formulas)

    def is_selected(self, formula_id: str) -> bool:
        return formula_id in self.state.pivot.selected_formulas

    def toggle_formula(self, formula_id: str) -> bool:
        """
        Flip one formula in or out of the selection.

        Returns:
            True if the formula is now selected

        Raises:
            ValueError: If the formula id is unknown
        """
        get_formula(formula_id)
        selected = self.state.pivot.selected_formulas
        if formula_id in selected:
            selected.remove(formula_id)
            now_selected = False
        else:
            selected.append(formula_id)
            now_selected = True
        self.save()
        return now_selected

    def select_all_formulas(self) -> None:
        self.state.pivot.selected_formulas = formula_ids()
        self.save()

    def clear_all_formulas(self) -> None:
        self.state.pivot.selected_formulas = []
        self.save()

    # =========================================================
    # Inputs and calculation
    # =========================================================

    @property
    def inputs(self) -> dict[str, str]:
        """Raw input field text."""
        return dict(self.state.pivot.inputs)

    def set_input(self, name: str, raw: str | float | None) -> None:
        """
        Store raw text for one OHLC field (validated on recalculate).

        Raises:
            ValueError: If the field name is unknown
        """
        if name not in INPUT_FIELDS:
            raise ValueError(f"Unknown input field '{name}'. Available: {', '.join(INPUT_FIELDS)}")
        self.state.pivot.inputs[name] = "" if raw is None else str(raw).strip()
        self.save()

    def recalculate(self) -> PivotReport:
        """
        Evaluate the selected formulas on the current inputs.

        The stored levels are replaced (not merged) with the new ones.

        Raises:
            ValueError: If inputs are invalid or no formula is selected.
                Stored levels are left untouched.
        """
        ohlc = OHLCInput.parse(**self.state.pivot.inputs)
        if not self.state.pivot.selected_formulas:
            raise ValueError("Please select at least one formula.")

        computation = compute_levels(ohlc, self.state.pivot.selected_formulas, self.config.level_precision)
        self.state.pivot.levels = list(computation.levels)
        self.save()

        clusters = self.clusters()
        logger.info(
            f"Recalculated H={ohlc.high} L={ohlc.low} C={ohlc.close}: "
            f"{len(computation.levels)} levels, {len(clusters)} clusters"
        )
        return PivotReport(
            results={name: values for name, values in computation.results.values()},
            levels=list(computation.levels),
            clusters=clusters,
            skipped=list(computation.skipped),
        )

    @property
    def has_levels(self) -> bool:
        return bool(self.state.pivot.levels)

    @property
    def levels(self) -> list[ComputedLevel]:
        return list(self.state.pivot.levels)

    def individual_results(self) -> dict[str, dict[str, float]]:
        """Per-formula levels from the last calculation, keyed by formula name."""
        return group_levels_by_formula(self.state.pivot.levels)

    # =========================================================
    # Convergence settings
    # =========================================================

    @property
    def tolerance(self) -> float:
        return self.state.pivot.tolerance

    @property
    def convergence_threshold(self) -> int:
        return self.state.pivot.convergence_threshold

    def clusters(self) -> list[ConvergenceCluster]:
        """Convergence clusters for the stored levels and current settings."""
        return cluster_levels(
            self.state.pivot.levels,
            self.state.pivot.tolerance,
            self.state.pivot.convergence_threshold,
        )

    def set_tolerance(self, raw: str | float) -> list[ConvergenceCluster]:
        """
        Change the convergence tolerance and re-cluster the stored levels.

        Raises:
            ValueError: If the value is not a non-negative number
        """
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError("Tolerance must be a non-negative number.") from None
        if not math.isfinite(value) or value < 0:
            raise ValueError("Tolerance must be a non-negative number.")

        self.state.pivot.tolerance = value
        self.save()
        return self.clusters()

    def set_convergence_threshold(self, raw: str | int) -> list[ConvergenceCluster]:
        """
        Change the minimum cluster size and re-cluster the stored levels.

        Raises:
            ValueError: If the value is not an integer >= 1
        """
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError("Convergence threshold must be a whole number of at least 1.") from None
        if not value.is_integer() or value < 1:
            raise ValueError("Convergence threshold must be a whole number of at least 1.")

        self.state.pivot.convergence_threshold = int(value)
        self.save()
        return self.clusters()

    # =========================================================
    # Tools and reset
    # =========================================================

    @property
    def current_tool(self) -> str:
        return self.state.current_tool

    def switch_tool(self, tool: str) -> None:
        """
        Raises:
            ValueError: If the tool name is unknown
        """
        if tool not in TOOLS:
            raise ValueError(f"Unknown tool '{tool}'. Available: {', '.join(TOOLS)}")
        self.state.current_tool = tool
        self.save()

    def clear_all_data(self) -> None:
        """
        Full reset: empty flow data, blank inputs, no levels, default
        selection, tolerance and threshold. The active tool is kept.
        """
        tool = self.state.current_tool
        self.state_manager.clear_state()
        self.state = self.state_manager.create_initial_state()
        self.state.current_tool = tool

        self.flow.state = self.state.flow
        self.flow.reset_pending()
        self.save()
        logger.info("All desk data cleared")
