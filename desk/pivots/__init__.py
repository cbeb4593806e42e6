"""
Pivot Calculator.

Built-in pivot point formulas and the catalog that evaluates them
into Computed Levels for the convergence engine.
"""

from desk.pivots.catalog import (
    PivotComputation,
    compute_levels,
    evaluate,
    formula_ids,
    get_formula,
    group_levels_by_formula,
    list_formulas,
    normalize_levels,
)
from desk.pivots.formulas import FORMULAS, FormulaDefinition, FormulaResult

__all__ = [
    "FORMULAS",
    "FormulaDefinition",
    "FormulaResult",
    "PivotComputation",
    "compute_levels",
    "evaluate",
    "formula_ids",
    "get_formula",
    "group_levels_by_formula",
    "list_formulas",
    "normalize_levels",
]
