"""
Pivot Formula Definitions.

Each formula turns the prior session's High/Low/Close (plus optional
Today's Open and Yesterday's Open) into a set of labelled price levels:
PP for the pivot, R* for resistance and S* for support.

Formulas are pure closed-form arithmetic. They never raise for valid
inputs: divisions by zero and square roots of negatives produce nan/inf,
which the catalog filters out before levels reach the convergence engine.
A formula that needs an optional open that was not provided returns
`FormulaResult.not_applicable()` instead of computing a degenerate value.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class FormulaResult:
    """
    Tagged result of one formula evaluation.

    Either carries an ordered label -> value mapping, or marks the
    formula as not applicable to the given inputs.
    """

    applicable: bool
    levels: dict[str, float] = field(default_factory=dict)

    @classmethod
    def of(cls, levels: dict[str, float]) -> "FormulaResult":
        return cls(applicable=True, levels=levels)

    @classmethod
    def not_applicable(cls) -> "FormulaResult":
        return cls(applicable=False)


FormulaFn = Callable[[float, float, float, float | None, float | None], FormulaResult]


@dataclass(frozen=True)
class FormulaDefinition:
    """A built-in pivot formula."""

    id: str  # Stable selection key
    name: str
    description: str
    calculate: FormulaFn


def _div(numerator: float, denominator: float) -> float:
    """Float division that yields inf/nan instead of raising."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _sqrt(value: float) -> float:
    """Square root that yields nan for negative input instead of raising."""
    if value < 0 or math.isnan(value):
        return math.nan
    return math.sqrt(value)


def _typical_pivot(h: float, lo: float, c: float) -> float:
    return (h + lo + c) / 3


# =============================================================================
# Classic family
# =============================================================================


def classic_extended(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    r1 = (pp * 2) - lo
    r2 = pp + (h - lo)
    r3 = 2 * pp + (h - (2 * lo))
    r4 = 3 * pp + (h - (3 * lo))
    s1 = (pp * 2) - h
    s2 = pp - (h - lo)
    s3 = (2 * pp) - ((2 * h) - lo)
    s4 = (3 * pp) - ((3 * h) - lo)
    return FormulaResult.of({
        "PP": pp,
        "R0.5": (r1 + pp) / 2, "R1": r1, "R1.5": (r1 + r2) / 2, "R2": r2,
        "R2.5": (r2 + r3) / 2, "R3": r3, "R3.5": (r3 + r4) / 2, "R4": r4,
        "S0.5": (s1 + pp) / 2, "S1": s1, "S1.5": (s1 + s2) / 2, "S2": s2,
        "S2.5": (s2 + s3) / 2, "S3": s3, "S3.5": (s3 + s4) / 2, "S4": s4,
    })


def standard(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    return FormulaResult.of({
        "PP": pp,
        "R1": (pp * 2) - lo, "R2": pp + (h - lo), "R3": h + (h - lo), "R4": pp + 3 * (h - lo),
        "S1": (pp * 2) - h, "S2": pp - (h - lo), "S3": (2 * pp) - h - (h - lo), "S4": pp - 3 * (h - lo),
    })


def _classic_ladder(pp: float, h: float, lo: float) -> dict[str, float]:
    """R1-R4 / S1-S4 ladder shared by the open-weighted pivots."""
    return {
        "R1": (pp * 2) - lo,
        "R2": pp + (h - lo),
        "R3": 2 * pp + (h - (2 * lo)),
        "R4": 3 * pp + (h - (3 * lo)),
        "S1": (pp * 2) - h,
        "S2": pp - (h - lo),
        "S3": (2 * pp) - ((2 * h) - lo),
        "S4": (3 * pp) - ((3 * h) - lo),
    }


def four_point(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    if today_open is None:
        return FormulaResult.not_applicable()
    pp = (h + lo + c + today_open) / 4
    return FormulaResult.of({"PP": pp, **_classic_ladder(pp, h, lo)})


def double_open(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    # Falls back to yesterday's close when today's open is unknown
    current_open = today_open if today_open is not None else c
    pp = (h + lo + current_open + current_open) / 4
    ladder = _classic_ladder(pp, h, lo)
    del ladder["R4"]
    return FormulaResult.of({"PP": pp, **ladder})


def linear(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    rng = h - lo
    return FormulaResult.of({
        "PP": pp,
        "R1": (pp * 2) - lo, "R2": pp + rng, "R3": pp + 2 * rng, "R4": pp + 3 * rng,
        "S1": (pp * 2) - h, "S2": pp - rng, "S3": pp - 2 * rng, "S4": pp - 3 * rng,
    })


def complex_range(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    span = (h - lo) * 1.1
    return FormulaResult.of({
        "PP": pp,
        "R0.5": c + span / 18, "R1": c + span / 12, "R1.5": c + span / 9,
        "R2": c + span / 6, "R2.5": c + span / 5, "R3": c + span / 4,
        "R3.5": c + span / 3, "R4": c + span / 2, "R4.5": c + span / 1.33,
        "R5": _div(h, lo) * c,
        "S0.5": c - span / 18, "S1": c - span / 12, "S1.5": c - span / 9,
        "S2": c - span / 6, "S2.5": c - span / 5, "S3": c - span / 4,
        "S3.5": c - span / 3, "S4": c - span / 2, "S4.5": c - span / 1.33,
    })


def conditional(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    if yesterday_open is None:
        return FormulaResult.not_applicable()
    if c < yesterday_open:
        x = h + lo + lo + c
    elif c > yesterday_open:
        x = h + h + lo + c
    else:
        x = h + lo + c + c
    return FormulaResult.of({"PP": x / 4, "R1": x / 2, "S1": x / 2})


def classic_standard(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    r1 = 2 * pp - lo
    s1 = 2 * pp - h
    return FormulaResult.of({
        "PP": pp,
        "R1": r1, "R2": pp + (r1 - s1), "R3": h + 2 * (pp - lo),
        "S1": s1, "S2": pp - (r1 - s1), "S3": lo - 2 * (h - pp),
    })


def square_root(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    step = _sqrt(_sqrt(pp))
    return FormulaResult.of({
        "PP": pp,
        "R1": pp + step, "R2": pp + 2 * step, "R3": pp + 3 * step,
        "S1": pp - step, "S2": pp - 2 * step, "S3": pp - 3 * step,
    })


def progressive(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    r1 = (2 * pp) - lo
    r2 = pp + (h - lo)
    r3 = r1 + (h - lo)
    s1 = (2 * pp) - h
    s2 = pp - (h - lo)
    s3 = s1 - (h - lo)
    return FormulaResult.of({
        "PP": pp,
        "R1": r1, "R2": r2, "R3": r3, "R4": r3 + (r2 - r1),
        "S1": s1, "S2": s2, "S3": s3, "S4": s3 - (s2 - s1),
    })


def advanced_resistance(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    r1 = 2 * pp - lo
    s1 = 2 * pp - h
    r2 = pp - (h - lo) + r1
    r3 = pp - (h - lo) + r2
    return FormulaResult.of({
        "PP": pp,
        "R1": r1, "R2": r2, "R3": r3,
        "S1": s1, "S2": pp - (r1 - s1), "S3": pp - (r2 - s1),
    })


def midpoint(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    s1 = (h + lo) / 2
    return FormulaResult.of({"PP": pp, "R1": (pp - s1) + pp, "S1": s1})


def seventy_five_pct(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    return FormulaResult.of({"PP": pp, "R1": pp + (h - lo) * 0.75, "S1": pp - (h - lo) * 0.75})


def double_open_weighted(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    if today_open is None:
        return FormulaResult.not_applicable()
    pp = (h + lo + 2 * today_open) / 4
    return FormulaResult.of({"PP": pp, "R1": pp + 2 * (h - lo), "S1": pp - 2 * (h - lo)})


def absolute_midpoint(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    diff = abs((h + lo) / 2 - pp)
    return FormulaResult.of({"PP": pp, "R1": pp + diff, "S1": pp - diff})


def prior_range_extension(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    s1 = (h + lo) / 2
    rng = h - lo
    return FormulaResult.of({
        "PP": pp,
        "R1": pp + (pp - s1), "R2": h + rng * 0.25, "R3": h + rng * 0.5,
        "R4": h + rng * 0.75, "R5": h + rng,
        "S1": s1, "S2": lo - rng * 0.25, "S3": lo - rng * 0.5,
        "S4": lo - rng * 0.75, "S5": lo - rng,
    })


def pivot_high_low(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    rng = h - lo
    offset = pp - (h + lo) / 2
    # R1 is built from the high and S1 from the low (mirrored vs classic)
    r1 = 2 * pp - h
    s1 = 2 * pp - lo
    r2 = 2 * pp + (r1 - s1)
    s2 = 2 * pp - (r1 - s1)
    r3 = r1 + rng
    s3 = s1 - rng
    return FormulaResult.of({
        "PP": pp, "PP-HIGH": pp + offset, "PP-LOW": pp - offset,
        "R1": r1, "R2": r2, "R3": r3, "R4": r3 + (r2 - r1),
        "S1": s1, "S2": s2, "S3": s3, "S4": s3 - (s2 - s1),
    })


# =============================================================================
# Ratio family (offsets are ratio * daily range from the pivot)
# =============================================================================


def _ratio_ladder(pp: float, rng: float, resistance: dict[str, float], support: dict[str, float]) -> dict[str, float]:
    levels = {"PP": pp}
    levels.update({label: pp + ratio * rng for label, ratio in resistance.items()})
    levels.update({label: pp - ratio * rng for label, ratio in support.items()})
    return levels


def _symmetric_ratio_formula(labels: dict[str, float]) -> FormulaFn:
    """Formula whose R and S ladders use the same ratios (R1 ~ S1, ...)."""

    def calculate(h, lo, c, today_open, yesterday_open) -> FormulaResult:
        pp = _typical_pivot(h, lo, c)
        resistance = {f"R{name}": ratio for name, ratio in labels.items()}
        support = {f"S{name}": ratio for name, ratio in labels.items()}
        return FormulaResult.of(_ratio_ladder(pp, h - lo, resistance, support))

    return calculate


fibonacci = _symmetric_ratio_formula({"1": 0.5, "2": 0.618, "3": 1.0})

fibonacci_extended = _symmetric_ratio_formula({
    "0.5": 0.5, "1": 0.618, "1.5": 1.0, "2": 1.272, "2.5": 1.618, "3": 2.0, "4": 2.618,
})

fibonacci_range = _symmetric_ratio_formula({"1": 0.5, "1.5": 0.618, "2": 1.0, "2.5": 1.382})

extended_fibonacci = _symmetric_ratio_formula({
    "1": 0.5, "2": 0.618, "3": 1.0, "4": 1.382, "5": 1.618, "6": 2.0, "7": 2.618,
})

enhanced_fibonacci = _symmetric_ratio_formula({
    "1": 0.382, "2": 0.618, "3": 0.786, "4": 1.0, "5": 1.382, "6": 1.618, "7": 2.0,
})


def golden_ratio(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    pp = _typical_pivot(h, lo, c)
    rng = h - lo
    r1, r2, r3 = pp + 0.382 * rng, pp + 0.618 * rng, pp + 1.0 * rng
    s1, s2, s3 = pp - 0.382 * rng, pp - 0.618 * rng, pp - 1.0 * rng
    return FormulaResult.of({
        "PP": pp,
        "R0.5": (r1 + pp) / 2, "R1": r1, "R1.5": (r1 + r2) / 2, "R2": r2, "R2.5": (r3 + r2) / 2, "R3": r3,
        "S0.5": (s1 + pp) / 2, "S1": s1, "S1.5": (s1 + s2) / 2, "S2": s2, "S2.5": (s3 + s2) / 2, "S3": s3,
    })


def pivotz(h, lo, c, today_open, yesterday_open) -> FormulaResult:
    # Asymmetric multipliers: S4 and S6 differ from R4 and R6
    return FormulaResult.of(_ratio_ladder(
        c,
        h - lo,
        {"R1": 0.0916, "R2": 0.183, "R3": 0.275, "R4": 0.555, "R5": 0.8244, "R6": 1.0076},
        {"S1": 0.0916, "S2": 0.183, "S3": 0.275, "S4": 0.55, "S5": 0.8244, "S6": 1.0992},
    ))


# =============================================================================
# Catalog table (display order)
# =============================================================================

FORMULAS: tuple[FormulaDefinition, ...] = (
    FormulaDefinition("formula0", "CLASSIC PIVOT (EXTENDED)",
                      "Classic pivot with half levels (R0.5, R1, R1.5, etc.)", classic_extended),
    FormulaDefinition("formula1", "STANDARD PIVOT", "Traditional pivot point formula", standard),
    FormulaDefinition("formula2", "FOUR POINT PIVOT", "Uses yesterday's OHLC + today's open", four_point),
    FormulaDefinition("formula3", "DOUBLE OPEN PIVOT", "Uses current open twice in calculation", double_open),
    FormulaDefinition("formula4", "LINEAR PIVOT", "Linear progression pivot levels", linear),
    FormulaDefinition("formula5", "COMPLEX RANGE PIVOT",
                      "Complex calculation with range multipliers", complex_range),
    FormulaDefinition("formula6", "CONDITIONAL PIVOT",
                      "Changes calculation based on close vs open relationship", conditional),
    FormulaDefinition("formula7", "FIBONACCI PIVOT", "Uses Fibonacci ratios for level calculation", fibonacci),
    FormulaDefinition("formula8", "CLASSIC STANDARD", "Classic standard pivot calculation", classic_standard),
    FormulaDefinition("formula9", "SQUARE ROOT PIVOT", "Uses square root calculations for levels", square_root),
    FormulaDefinition("formula10", "PROGRESSIVE PIVOT", "Progressive calculation method", progressive),
    FormulaDefinition("formula11", "FIBONACCI EXTENDED",
                      "Extended Fibonacci ratios for pivot calculation", fibonacci_extended),
    FormulaDefinition("formula12", "GOLDEN RATIO PIVOT", "Golden ratio based pivot calculations", golden_ratio),
    FormulaDefinition("formula13", "ADVANCED RESISTANCE PIVOT",
                      "Advanced resistance calculation method", advanced_resistance),
    FormulaDefinition("formula14", "FIBONACCI RANGE PIVOT", "Fibonacci ratios with daily range", fibonacci_range),
    FormulaDefinition("formula15", "MIDPOINT PIVOT", "Midpoint based calculation", midpoint),
    FormulaDefinition("formula17", "75% PIVOT", "75% range pivot calculation", seventy_five_pct),
    FormulaDefinition("formula18", "DOUBLE OPEN WEIGHTED",
                      "Weighted with double today's open", double_open_weighted),
    FormulaDefinition("formula19", "ABSOLUTE MIDPOINT", "Absolute midpoint difference", absolute_midpoint),
    FormulaDefinition("formula22", "EXTENDED FIBONACCI", "Extended Fibonacci levels", extended_fibonacci),
    FormulaDefinition("formula24", "PRIOR RANGE EXTENSION", "Prior range extension method", prior_range_extension),
    FormulaDefinition("formula25", "ENHANCED FIBONACCI",
                      "Enhanced Fibonacci with 0.786 level", enhanced_fibonacci),
    FormulaDefinition("formula27", "PIVOT POINT HIGH/LOW",
                      "Pivot point high and low calculation", pivot_high_low),
    FormulaDefinition("pivotz", "PIVOTZ ALGORITHM", "Special algorithm with precise multipliers", pivotz),
)
