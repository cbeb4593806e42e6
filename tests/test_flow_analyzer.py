#!/usr/bin/env python3
"""
Unit tests for the Flow Analyzer workflow.

Run with:
    python -m pytest tests/test_flow_analyzer.py -v
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from desk.core.config import DeskConfig
from desk.flow.analyzer import FlowAnalyzer
from desk.flow.models import FlowState, HistoryEntry, JournalEntry


def make_analyzer(config: DeskConfig | None = None) -> tuple[FlowAnalyzer, list[int]]:
    """Helper returning an analyzer with a fixed clock and a save counter."""
    saves: list[int] = []
    analyzer = FlowAnalyzer(
        FlowState(),
        config=config,
        on_change=lambda: saves.append(1),
        clock=lambda: datetime(2024, 3, 1, 9, 30, 0),
    )
    return analyzer, saves


class TestPendingFlow:
    """Tests for pending buy/sell entry and undo."""

    def test_record_action_default_step(self):
        """Test the default step is 0.5."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("buy")
        analyzer.record_action("buy")
        analyzer.record_action("sell")
        assert analyzer.pending_buy == 1.0
        assert analyzer.pending_sell == 0.5

    def test_clamped_at_zero(self):
        """Test pending flow never goes negative."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("sell", -0.5)
        assert analyzer.pending_sell == 0.0

    def test_rounded_to_one_decimal(self):
        """Test float drift is rounded away."""
        analyzer, _ = make_analyzer()
        for _ in range(3):
            analyzer.record_action("buy", 0.1)
        assert analyzer.pending_buy == 0.3

    def test_undo_step(self):
        """Test undo reverts the last step."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("buy", 1.0)
        analyzer.record_action("buy", 0.5)
        assert analyzer.undo_last_action()
        assert analyzer.pending_buy == 1.0

    def test_undo_typed_input_restores_previous(self):
        """Test undoing typed input restores the value before the edit."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("sell", 2.0)
        analyzer.set_pending("sell", "7.5")
        assert analyzer.pending_sell == 7.5
        analyzer.undo_last_action()
        assert analyzer.pending_sell == 2.0

    def test_typed_tie_rounds_up(self):
        """Test a typed value on an exact tie rounds away from zero."""
        analyzer, _ = make_analyzer()
        analyzer.set_pending("buy", "0.25")
        assert analyzer.pending_buy == 0.3

    def test_non_numeric_input_counts_as_zero(self):
        """Test junk typed input sets zero."""
        analyzer, _ = make_analyzer()
        analyzer.set_pending("buy", "abc")
        assert analyzer.pending_buy == 0.0

    def test_undo_empty(self):
        """Test undo with nothing to undo."""
        analyzer, _ = make_analyzer()
        assert analyzer.undo_last_action() is False

    def test_unknown_side(self):
        """Test only buy and sell are accepted."""
        analyzer, _ = make_analyzer()
        with pytest.raises(ValueError, match="Unknown side"):
            analyzer.record_action("hold")

    def test_pending_changes_do_not_persist(self):
        """Test pending edits never trigger a save."""
        analyzer, saves = make_analyzer()
        analyzer.record_action("buy")
        analyzer.set_pending("sell", 3)
        analyzer.reset_pending()
        assert saves == []
        assert analyzer.pending_buy == 0.0
        assert analyzer.undo_stack == []


class TestSubmit:
    """Tests for folding pending flow into totals."""

    def test_submit_updates_totals_and_history(self):
        """Test submission adds to totals and records both history forms."""
        analyzer, saves = make_analyzer()
        analyzer.set_pending("buy", 70)
        analyzer.set_pending("sell", 30)
        entry = analyzer.submit()

        assert analyzer.state.buy_count == 70.0
        assert analyzer.state.sell_count == 30.0
        assert entry.conclusion == "NORMAL BUY"
        assert entry.percentage == 40.0
        assert analyzer.state.history_list[0] == (
            "2024-03-01 09:30:00 | NORMAL BUY | BUYS: 70.0 | SELLS: 30.0 | %DIFF: 40.00%"
        )
        assert analyzer.state.history_with_notes[0] is entry
        assert saves == [1]

    def test_submit_clears_pending(self):
        """Test pending flow and undo stack are cleared."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("buy")
        analyzer.submit()
        assert analyzer.pending_buy == 0.0
        assert analyzer.undo_stack == []

    def test_totals_accumulate(self):
        """Test totals are running totals across submissions."""
        analyzer, _ = make_analyzer()
        analyzer.set_pending("buy", 55)
        analyzer.submit()
        analyzer.set_pending("sell", 45)
        entry = analyzer.submit()
        assert entry.conclusion == "BUY RETRACEMENT EXPECTED"
        assert analyzer.analysis().percentage == 10.0

    def test_empty_submit_rejected(self):
        """Test submitting nothing is an error and changes nothing."""
        analyzer, saves = make_analyzer()
        with pytest.raises(ValueError, match="Please add some Buy or Sell flow"):
            analyzer.submit()
        assert analyzer.state.history_list == []
        assert saves == []

    def test_history_capped_newest_first(self):
        """Test history keeps only the newest entries."""
        analyzer, _ = make_analyzer(DeskConfig(history_limit=3))
        for _ in range(5):
            analyzer.record_action("buy")
            analyzer.submit()
        assert len(analyzer.state.history_list) == 3
        assert len(analyzer.state.history_with_notes) == 3
        assert analyzer.state.history_with_notes[0].buy_count == 2.5

    def test_entry_ids_unique(self):
        """Test rapid submissions get distinct ids."""
        analyzer, _ = make_analyzer()
        ids = []
        for _ in range(5):
            analyzer.record_action("sell")
            ids.append(analyzer.submit().id)
        assert len(set(ids)) == 5


class TestNotes:
    """Tests for history notes and search."""

    def test_update_note(self):
        """Test editing a note title and body."""
        analyzer, saves = make_analyzer()
        analyzer.record_action("buy")
        entry = analyzer.submit()

        assert analyzer.update_note_field(entry.id, "note_title", "London open")
        assert analyzer.update_note_field(entry.id, "note", "Absorption at lows")
        assert entry.note_title == "London open"
        assert entry.note == "Absorption at lows"
        assert len(saves) == 3

    def test_update_missing_entry(self):
        """Test editing an unknown entry reports False."""
        analyzer, _ = make_analyzer()
        assert analyzer.update_note_field(12345, "note", "x") is False

    def test_update_unknown_field(self):
        """Test only note fields can be edited."""
        analyzer, _ = make_analyzer()
        with pytest.raises(ValueError):
            analyzer.update_note_field(1, "conclusion", "x")

    def test_search_case_insensitive(self):
        """Test search over title, note, conclusion and timestamp."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("buy")
        first = analyzer.submit()
        analyzer.update_note_field(first.id, "note", "Iceberg on the bid")
        analyzer.record_action("sell", 5)
        analyzer.submit()

        assert [e.id for e in analyzer.search_entries("ICEBERG")] == [first.id]
        assert len(analyzer.search_entries("sell")) == 1
        assert len(analyzer.search_entries("2024-03-01")) == 2
        assert len(analyzer.search_entries("")) == 2

    def test_clear_history_keeps_totals(self):
        """Test clearing history leaves the totals."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("buy")
        analyzer.submit()
        analyzer.clear_history()
        assert analyzer.state.history_list == []
        assert analyzer.state.history_with_notes == []
        assert analyzer.state.buy_count == 0.5


class TestParameters:
    """Tests for custom confluence parameters."""

    def test_defaults(self):
        """Test a fresh state has the default factors."""
        analyzer, _ = make_analyzer()
        ids = [p.id for p in analyzer.state.custom_parameters]
        assert ids == ["btt", "futlevel", "vsa", "vlevel", "wfutlevel", "mtf-confirmation"]

    def test_add_and_remove(self):
        """Test adding then removing a parameter."""
        analyzer, _ = make_analyzer()
        param = analyzer.add_parameter("  Delta divergence ", "0.75")
        assert param.label == "Delta divergence"
        assert param.value == 0.8
        assert param.id.startswith("custom-")
        assert analyzer.remove_parameter(param.id)
        assert analyzer.remove_parameter(param.id) is False

    def test_non_numeric_value(self):
        """Test junk weights become 0."""
        analyzer, _ = make_analyzer()
        assert analyzer.add_parameter("Tape", "heavy").value == 0.0

    def test_weight_tie_rounds_up(self):
        """Test weights on an exact tie round away from zero."""
        analyzer, _ = make_analyzer()
        assert analyzer.add_parameter("Tape", "0.25").value == 0.3

    def test_empty_label_rejected(self):
        """Test a label is required."""
        analyzer, _ = make_analyzer()
        with pytest.raises(ValueError, match="label cannot be empty"):
            analyzer.add_parameter("   ")


class TestJournal:
    """Tests for the trading journal."""

    def test_log_trade(self):
        """Test a logged trade is stored newest first with rounded prices."""
        analyzer, _ = make_analyzer()
        analyzer.log_trade("ES", "2024-03-01", "5100.123", "5110", "500", "breakout")
        trade = analyzer.log_trade("NQ", "2024-03-02", "", None, "-125.5")

        assert analyzer.state.journal_entries[0] is trade
        assert trade.entry_price is None
        assert trade.pnl == -125.5
        assert not trade.is_win
        first = analyzer.state.journal_entries[1]
        assert first.entry_price == 5100.12
        assert first.is_win

    def test_price_tie_rounds_up(self):
        """Test journal prices on an exact half cent round away from zero."""
        analyzer, _ = make_analyzer()
        trade = analyzer.log_trade("ES", "2024-03-01", "5100.125", pnl="-2.125")
        assert trade.entry_price == 5100.13
        assert trade.pnl == -2.13

    def test_required_fields(self):
        """Test instrument and date are required."""
        analyzer, _ = make_analyzer()
        with pytest.raises(ValueError, match="Instrument and Date are required"):
            analyzer.log_trade("", "2024-03-01")
        with pytest.raises(ValueError):
            analyzer.log_trade("ES", " ")

    def test_journal_capped(self):
        """Test the journal keeps only the newest trades."""
        analyzer, _ = make_analyzer(DeskConfig(journal_limit=2))
        for day in range(1, 5):
            analyzer.log_trade("ES", f"2024-03-0{day}")
        assert [t.date for t in analyzer.state.journal_entries] == ["2024-03-04", "2024-03-03"]

    def test_clear_journal(self):
        """Test clearing the journal."""
        analyzer, _ = make_analyzer()
        analyzer.log_trade("ES", "2024-03-01")
        analyzer.clear_journal()
        assert analyzer.state.journal_entries == []


class TestFlowStateSerialization:
    """Tests for FlowState persistence shape."""

    def test_round_trip(self):
        """Test a populated state survives to_dict/from_dict."""
        analyzer, _ = make_analyzer()
        analyzer.record_action("buy", 3)
        entry = analyzer.submit()
        analyzer.update_note_field(entry.id, "note", "n")
        analyzer.log_trade("ES", "2024-03-01", pnl="10")

        restored = FlowState.from_dict(analyzer.state.to_dict())
        assert restored == analyzer.state

    def test_missing_fields_take_defaults(self):
        """Test older payloads without newer fields still load."""
        state = FlowState.from_dict({"buy_count": 2, "sell_count": 1})
        assert state.buy_count == 2.0
        assert state.history_with_notes == []
        assert len(state.custom_parameters) == 6

    def test_entry_from_dict_tolerates_null_notes(self):
        """Test null note fields become empty strings."""
        entry = HistoryEntry.from_dict({
            "id": 1, "timestamp": "t", "conclusion": "NO SIGNAL",
            "buy_count": 0, "sell_count": 0, "percentage": 0, "note": None,
        })
        assert entry.note == ""
        assert entry.note_title == ""

    def test_journal_entry_optional_prices(self):
        """Test journal prices may be absent."""
        trade = JournalEntry.from_dict({"id": 1, "instrument": "ES", "date": "2024-03-01"})
        assert trade.entry_price is None
        assert trade.pnl is None
