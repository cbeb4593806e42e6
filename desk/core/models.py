"""
Core data models for the desk.

Contains dataclasses for:
- OHLC inputs of the prior session
- Computed price levels and their type
- Convergence clusters reported by the level engine
"""

import math
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Context, Decimal
from enum import Enum


class LevelType(Enum):
    """Role of a price level relative to the pivot."""
    PIVOT = "pivot"
    RESISTANCE = "resistance"
    SUPPORT = "support"


def level_type_for(label: str) -> LevelType:
    """
    Derive the level type from its label.

    "PP" is the pivot, anything starting with "R" is resistance and
    everything else (S1, PP-HIGH, PP-LOW, ...) is support.
    """
    if label == "PP":
        return LevelType.PIVOT
    if label.startswith("R"):
        return LevelType.RESISTANCE
    return LevelType.SUPPORT


def round_half_up(value: float, places: int) -> float:
    """
    Round to a fixed number of decimals, ties away from zero.

    Works on the exact binary value, so 100.125 rounds to 100.13 and
    0.25 to 0.3 where the built-in round() would give 100.12 and 0.2.
    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    # Enough digits for any double (up to ~1.8e308) plus the decimals
    context = Context(prec=330 + places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP, context=context))


def _parse_number(raw: str | float | int | None, name: str, required: bool) -> float | None:
    """Parse a user-typed number; blank optional fields become None."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        if required:
            raise ValueError(f"Please enter a valid number for {name}.")
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Please enter a valid number for {name}.") from None
    if not math.isfinite(value):
        raise ValueError(f"Please enter a valid number for {name}.")
    return value


@dataclass(frozen=True)
class OHLCInput:
    """
    Prior-session prices the pivot formulas are computed from.

    Today's open and yesterday's open are optional. A missing value is
    None, never zero, so formulas that need it can report themselves
    as not applicable.
    """

    high: float
    low: float
    close: float
    today_open: float | None = None
    yesterday_open: float | None = None

    def __post_init__(self) -> None:
        """Validate inputs."""
        if self.high < self.low:
            raise ValueError("High value cannot be less than Low value.")

    @property
    def range(self) -> float:
        """Daily range (high - low)."""
        return self.high - self.low

    @classmethod
    def parse(
        cls,
        high: str | float | None,
        low: str | float | None,
        close: str | float | None,
        today_open: str | float | None = None,
        yesterday_open: str | float | None = None,
    ) -> "OHLCInput":
        """
        Build inputs from raw field values as typed in the UI.

        Raises:
            ValueError: If a required field is missing or non-numeric,
                an optional field is non-numeric, or high < low.
        """
        return cls(
            high=_parse_number(high, "High", required=True),
            low=_parse_number(low, "Low", required=True),
            close=_parse_number(close, "Close", required=True),
            today_open=_parse_number(today_open, "Today's Open", required=False),
            yesterday_open=_parse_number(yesterday_open, "Yesterday's Open", required=False),
        )


@dataclass(frozen=True)
class ComputedLevel:
    """One price level produced by one formula."""

    formula: str  # Formula display name
    label: str  # PP, R1, S2.5, ...
    value: float  # Rounded to the configured precision
    type: LevelType

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "formula": self.formula,
            "label": self.label,
            "value": self.value,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComputedLevel":
        """Create from dictionary."""
        label = str(data["label"])
        value = float(data["value"])
        if not math.isfinite(value):
            raise ValueError(f"Stored level {label} is not finite")
        level_type = LevelType(data["type"]) if "type" in data else level_type_for(label)
        return cls(
            formula=str(data["formula"]),
            label=label,
            value=value,
            type=level_type,
        )


@dataclass(frozen=True)
class ConvergenceCluster:
    """
    A group of levels from one or more formulas that land close together.

    The value is the mean of all member levels; count includes every
    member, so one formula can contribute more than once.
    """

    value: float
    count: int
    labels: list[str] = field(default_factory=list)
    formulas: list[str] = field(default_factory=list)
    type: LevelType = LevelType.SUPPORT

    def formula_summary(self, limit: int = 3) -> str:
        """Short contributor list, e.g. "A, B, C +2 more"."""
        shown = ", ".join(self.formulas[:limit])
        extra = len(self.formulas) - limit
        if extra > 0:
            return f"{shown} +{extra} more"
        return shown

    def label_summary(self) -> str:
        """Contributing labels joined for display, e.g. "R1/S2"."""
        return "/".join(self.labels)
