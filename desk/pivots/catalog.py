"""
Formula Catalog.

Registry access to the built-in pivot formulas, plus the normalization
step that turns raw formula output into Computed Levels:

    OHLCInput + selected ids → evaluate each formula → drop non-finite
    values → round → tag type → ComputedLevel list

Usage:
    from desk.pivots import compute_levels, list_formulas

    inputs = OHLCInput(high=100, low=90, close=95)
    computation = compute_levels(inputs, ["formula0", "formula1"])
    computation.levels  # [ComputedLevel(formula="CLASSIC PIVOT (EXTENDED)", label="PP", ...), ...]
"""

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from desk.core.config import DEFAULT_CONFIG
from desk.core.models import ComputedLevel, OHLCInput, level_type_for, round_half_up
from desk.pivots.formulas import FORMULAS, FormulaDefinition, FormulaResult

logger = logging.getLogger(__name__)

# Registry of all formulas by id
_FORMULAS: dict[str, FormulaDefinition] = {formula.id: formula for formula in FORMULAS}


def get_formula(formula_id: str) -> FormulaDefinition:
    """
    Get a built-in formula by id.

    Raises:
        ValueError: If the formula id is unknown
    """
    if formula_id not in _FORMULAS:
        available = ", ".join(_FORMULAS.keys())
        raise ValueError(f"Unknown formula '{formula_id}'. Available: {available}")
    return _FORMULAS[formula_id]


def list_formulas() -> list[FormulaDefinition]:
    """All built-in formulas in display order."""
    return list(FORMULAS)


def formula_ids() -> list[str]:
    """Ids of all built-in formulas in display order."""
    return [formula.id for formula in FORMULAS]


def evaluate(
    formula_id: str,
    high: float,
    low: float,
    close: float,
    today_open: float | None = None,
    yesterday_open: float | None = None,
) -> FormulaResult:
    """
    Evaluate one formula on raw inputs.

    Values are returned unrounded and may include nan/inf; use
    `compute_levels` for the filtered, rounded level list.
    """
    return get_formula(formula_id).calculate(high, low, close, today_open, yesterday_open)


@dataclass
class PivotComputation:
    """
    Output of one calculation run.

    `results` maps formula id to its display name and the emitted
    (finite, rounded) label -> value mapping. Formulas that were not
    applicable are absent. `levels` is the flat list fed to the
    convergence engine.
    """

    results: dict[str, tuple[str, dict[str, float]]] = field(default_factory=dict)
    levels: list[ComputedLevel] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # Not-applicable formula ids


def normalize_levels(
    formula: FormulaDefinition,
    result: FormulaResult,
    precision: int = DEFAULT_CONFIG.level_precision,
) -> list[ComputedLevel]:
    """Drop non-finite values, round, and tag each label with its type."""
    levels: list[ComputedLevel] = []
    for label, value in result.levels.items():
        if not math.isfinite(value):
            logger.debug(f"{formula.name} {label} is not finite, skipped")
            continue
        levels.append(
            ComputedLevel(
                formula=formula.name,
                label=label,
                value=round_half_up(value, precision),
                type=level_type_for(label),
            )
        )
    return levels


def compute_levels(
    inputs: OHLCInput,
    selected_ids: Iterable[str],
    precision: int = DEFAULT_CONFIG.level_precision,
) -> PivotComputation:
    """
    Evaluate every selected formula, in catalog order.

    Args:
        inputs: Validated OHLC inputs
        selected_ids: Ids of the active formulas (unknown ids are ignored)
        precision: Decimal places to round levels to

    Returns:
        PivotComputation with per-formula results and the flat level list
    """
    selected = set(selected_ids)
    computation = PivotComputation()

    for formula in FORMULAS:
        if formula.id not in selected:
            continue
        result = formula.calculate(
            inputs.high, inputs.low, inputs.close, inputs.today_open, inputs.yesterday_open
        )
        if not result.applicable:
            computation.skipped.append(formula.id)
            continue

        levels = normalize_levels(formula, result, precision)
        computation.results[formula.id] = (formula.name, {lvl.label: lvl.value for lvl in levels})
        computation.levels.extend(levels)

    logger.info(
        f"Computed {len(computation.levels)} levels from {len(computation.results)} formulas "
        f"({len(computation.skipped)} not applicable)"
    )
    return computation


def group_levels_by_formula(levels: Sequence[ComputedLevel]) -> dict[str, dict[str, float]]:
    """
    Rebuild per-formula results from a stored level list.

    Keyed by formula display name, in first-seen order.
    """
    grouped: dict[str, dict[str, float]] = {}
    for level in levels:
        grouped.setdefault(level.formula, {})[level.label] = level.value
    return grouped
