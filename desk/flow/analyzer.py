"""
Flow Analyzer workflow.

Tracks pending buy/sell flow as the user taps it in, and folds it into
the running totals on submit:

    record_action / set_pending (undoable) → submit → totals + verdict
    → history line + detailed entry (for notes) → persist

Also owns the notes search, custom confluence parameters and the trading
journal that sit next to the analyzer.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from desk.core.config import DEFAULT_CONFIG, DeskConfig
from desk.core.models import round_half_up
from desk.flow.models import CustomParameter, FlowState, HistoryEntry, JournalEntry
from desk.flow.sentiment import FlowAnalysis, analyze_flow

logger = logging.getLogger(__name__)

Side = Literal["buy", "sell"]
NoteField = Literal["note_title", "note"]


@dataclass(frozen=True)
class PendingAction:
    """One undoable change to the pending flow."""

    side: Side
    kind: Literal["step", "input"]
    change: float = 0.0  # For steps
    original: float = 0.0  # For typed input: value before the edit


def _to_float(raw: str | float | int | None) -> float | None:
    """Parse a typed number; blank, non-numeric and non-finite input give None."""
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


class FlowAnalyzer:
    """
    Flow Analyzer commands over a FlowState.

    Every change to persisted state calls `on_change`, so the owner can
    save. Pending flow and the undo stack are kept in memory only.
    """

    def __init__(
        self,
        state: FlowState,
        config: DeskConfig | None = None,
        on_change: Callable[[], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.state = state
        self.config = config or DEFAULT_CONFIG
        self._on_change = on_change
        self._clock = clock

        self.pending_buy = 0.0
        self.pending_sell = 0.0
        self.undo_stack: list[PendingAction] = []
        self._last_id = 0

    # =========================================================
    # Pending flow
    # =========================================================

    def _round_flow(self, value: float) -> float:
        return max(0.0, round_half_up(value, self.config.flow_precision))

    def _get_pending(self, side: Side) -> float:
        return self.pending_buy if side == "buy" else self.pending_sell

    def _set_pending_value(self, side: Side, value: float) -> None:
        if side == "buy":
            self.pending_buy = value
        else:
            self.pending_sell = value

    @staticmethod
    def _check_side(side: str) -> None:
        if side not in ("buy", "sell"):
            raise ValueError(f"Unknown side '{side}'. Use 'buy' or 'sell'")

    def record_action(self, side: Side, change: float | None = None) -> None:
        """Add (or with a negative change, deduct) pending flow on one side."""
        self._check_side(side)
        step = self.config.flow_step if change is None else change
        self._set_pending_value(side, self._round_flow(self._get_pending(side) + step))
        self.undo_stack.append(PendingAction(side=side, kind="step", change=step))

    def set_pending(self, side: Side, raw: str | float | None) -> None:
        """Set pending flow from typed input (non-numeric counts as 0)."""
        self._check_side(side)
        value = _to_float(raw)
        if value is None:
            value = 0.0
        original = self._get_pending(side)
        self._set_pending_value(side, self._round_flow(value))
        self.undo_stack.append(PendingAction(side=side, kind="input", original=original))

    def undo_last_action(self) -> bool:
        """Revert the most recent pending change. Returns False if nothing to undo."""
        if not self.undo_stack:
            return False
        action = self.undo_stack.pop()
        if action.kind == "step":
            self._set_pending_value(
                action.side, self._round_flow(self._get_pending(action.side) - action.change)
            )
        else:
            self._set_pending_value(action.side, action.original)
        return True

    def reset_pending(self) -> None:
        """Drop pending flow without submitting it."""
        self.pending_buy = 0.0
        self.pending_sell = 0.0
        self.undo_stack.clear()

    # =========================================================
    # Totals and history
    # =========================================================

    def analysis(self) -> FlowAnalysis:
        """Verdict for the current running totals."""
        return analyze_flow(
            self.state.buy_count,
            self.state.sell_count,
            self.config.retracement_max_pct,
            self.config.strong_min_pct,
        )

    def _next_id(self) -> int:
        # Millisecond timestamps, bumped so rapid submissions stay unique
        existing = [entry.id for entry in self.state.history_with_notes]
        existing += [entry.id for entry in self.state.journal_entries]
        candidate = int(time.time() * 1000)
        self._last_id = max(candidate, self._last_id + 1, max(existing, default=0) + 1)
        return self._last_id

    def _timestamp(self) -> str:
        return self._clock().strftime("%Y-%m-%d %H:%M:%S")

    def submit(self) -> HistoryEntry:
        """
        Fold pending flow into the totals and record the new verdict.

        Raises:
            ValueError: If there is no pending flow to submit
        """
        if self.pending_buy == 0 and self.pending_sell == 0:
            raise ValueError("Please add some Buy or Sell flow before submitting.")

        self.state.buy_count = round_half_up(self.state.buy_count + self.pending_buy, self.config.flow_precision)
        self.state.sell_count = round_half_up(self.state.sell_count + self.pending_sell, self.config.flow_precision)
        analysis = self.analysis()

        entry = HistoryEntry(
            id=self._next_id(),
            timestamp=self._timestamp(),
            conclusion=analysis.sentiment.value,
            buy_count=self.state.buy_count,
            sell_count=self.state.sell_count,
            percentage=analysis.percentage,
        )
        limit = self.config.history_limit
        self.state.history_list.insert(0, entry.summary_line())
        del self.state.history_list[limit:]
        self.state.history_with_notes.insert(0, entry)
        del self.state.history_with_notes[limit:]

        logger.info(
            f"Submitted flow +{self.pending_buy:.1f}/+{self.pending_sell:.1f} → "
            f"{analysis.sentiment.value} ({analysis.percentage:.2f}%)"
        )
        self.reset_pending()
        self._changed()
        return entry

    def clear_history(self) -> None:
        """Remove history lines and detailed entries (totals are kept)."""
        self.state.history_list.clear()
        self.state.history_with_notes.clear()
        self._changed()

    def update_note_field(self, entry_id: int, field: NoteField, value: str) -> bool:
        """Edit the title or note of a detailed entry. Returns False if not found."""
        if field not in ("note_title", "note"):
            raise ValueError(f"Unknown note field '{field}'")
        for entry in self.state.history_with_notes:
            if entry.id == entry_id:
                setattr(entry, field, value)
                self._changed()
                return True
        return False

    def search_entries(self, term: str = "") -> list[HistoryEntry]:
        """Detailed entries matching the term (all entries for an empty term)."""
        if not term:
            return list(self.state.history_with_notes)
        return [entry for entry in self.state.history_with_notes if entry.matches(term)]

    # =========================================================
    # Custom parameters
    # =========================================================

    def add_parameter(self, label: str, raw_value: str | float | None = 1.0) -> CustomParameter:
        """
        Add a confluence parameter.

        Raises:
            ValueError: If the label is empty
        """
        label = label.strip()
        if not label:
            raise ValueError("Parameter label cannot be empty.")
        value = _to_float(raw_value)
        if value is None:
            value = 0.0
        param = CustomParameter(
            id=f"custom-{self._next_id()}",
            label=label,
            value=round_half_up(value, self.config.flow_precision),
        )
        self.state.custom_parameters.append(param)
        self._changed()
        return param

    def remove_parameter(self, param_id: str) -> bool:
        """Remove a parameter by id. Returns False if not found."""
        before = len(self.state.custom_parameters)
        self.state.custom_parameters = [
            param for param in self.state.custom_parameters if param.id != param_id
        ]
        if len(self.state.custom_parameters) == before:
            return False
        self._changed()
        return True

    # =========================================================
    # Trading journal
    # =========================================================

    def log_trade(
        self,
        instrument: str,
        date: str,
        entry_price: str | float | None = None,
        exit_price: str | float | None = None,
        pnl: str | float | None = None,
        notes: str = "",
    ) -> JournalEntry:
        """
        Add a trade to the journal (newest first).

        Raises:
            ValueError: If instrument or date is missing
        """
        instrument = instrument.strip()
        date = date.strip()
        if not instrument or not date:
            raise ValueError("Instrument and Date are required to log a trade.")

        def _price(raw: str | float | None) -> float | None:
            value = _to_float(raw)
            if value is None:
                return None
            return round_half_up(value, 2)

        trade = JournalEntry(
            id=self._next_id(),
            instrument=instrument,
            date=date,
            entry_price=_price(entry_price),
            exit_price=_price(exit_price),
            pnl=_price(pnl),
            notes=notes.strip(),
        )
        self.state.journal_entries.insert(0, trade)
        del self.state.journal_entries[self.config.journal_limit:]
        self._changed()
        return trade

    def clear_journal(self) -> None:
        self.state.journal_entries.clear()
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
