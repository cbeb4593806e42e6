"""
UI components for the desk dashboard.

Reusable Textual widgets for the flow analyzer and pivot calculator.
"""

from desk.ui.components.clock_bar import ClockBar
from desk.ui.components.convergence_panel import ConvergencePanel
from desk.ui.components.flow_panel import FlowPanel, HoldButton
from desk.ui.components.formula_panel import FormulaPanel, PivotInputs
from desk.ui.components.journal_panel import JournalPanel
from desk.ui.components.levels_panel import LevelsPanel

__all__ = [
    "ClockBar",
    "ConvergencePanel",
    "FlowPanel",
    "FormulaPanel",
    "HoldButton",
    "JournalPanel",
    "LevelsPanel",
    "PivotInputs",
]
