#!/usr/bin/env python3
"""
Terminal Dashboard for the Flow & Pivot Desk.

A dark-themed UI with two tools:
- Flow Analyzer: tally buy/sell pressure, read the verdict, keep notes
  and a trading journal
- Pivot Calculator: evaluate pivot formulas on prior-session prices and
  find the levels where several formulas agree

Everything typed is saved to the local store as it changes, so the desk
reopens exactly where it was left.

Run with:
    desk --data-dir data
"""

import logging
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, ContentSwitcher, DataTable, Footer, Input, SelectionList, Static

from desk.core.config import DEFAULT_CONFIG, DeskConfig
from desk.core.desk_core import DeskCore
from desk.core.hold import HoldRepeater
from desk.state.store import JsonFileStore
from desk.ui.clipboard import copy_value, format_level
from desk.ui.components import (
    ClockBar,
    ConvergencePanel,
    FlowPanel,
    FormulaPanel,
    HoldButton,
    JournalPanel,
    LevelsPanel,
    PivotInputs,
)
from desk.ui.components.formula_panel import field_for_input

logger = logging.getLogger("dashboard")


def configure_logging(log_file: str | Path) -> None:
    """File-only logging, the TUI owns the terminal."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file),
        ],
    )


# ============================================================
# Main Dashboard App
# ============================================================
class DeskDashboard(App):
    """Flow analyzer and pivot calculator dashboard."""

    CSS_PATH = "styles/theme.css"
    TITLE = "FLOW & PIVOT DESK"
    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("f1", "show_tool('analyzer')", "Flow"),
        Binding("f2", "show_tool('pivot')", "Pivots"),
        Binding("b", "add_flow('buy')", "Buy +"),
        Binding("s", "add_flow('sell')", "Sell +"),
        Binding("u", "undo", "Undo"),
        Binding("r", "reset_pending", "Reset"),
        Binding("ctrl+s", "submit_flow", "Submit", priority=True),
        Binding("c", "calculate", "Calculate"),
        Binding("ctrl+x", "clear_all", "Clear All"),
    ]

    # Seconds a first ctrl+x stays armed
    CLEAR_CONFIRM_WINDOW = 3.0

    def __init__(self, core: DeskCore):
        super().__init__()
        self.core = core
        self.config = core.config
        self.repeater = HoldRepeater(
            self,
            initial_delay=self.config.hold_initial_delay,
            repeat_rate=self.config.hold_repeat_rate,
        )
        self._clear_armed = False

    def compose(self) -> ComposeResult:
        """Create the dashboard layout."""
        yield Static("FLOW & PIVOT DESK", id="title-bar", classes="title-bar")
        yield ClockBar(self.config.timezone_clocks, id="clock-bar", classes="clock-bar")

        with ContentSwitcher(initial=self.core.current_tool, id="tools"):
            with Horizontal(id="analyzer", classes="tool"):
                yield FlowPanel(id="flow-panel", classes="panel")
                yield JournalPanel(id="journal-panel", classes="panel")

            with Horizontal(id="pivot", classes="tool"):
                with Vertical(classes="pivot-left"):
                    yield PivotInputs(self.core.inputs, id="pivot-inputs", classes="panel")
                    yield FormulaPanel(self.core.selected_formulas, id="formula-panel", classes="panel")
                yield LevelsPanel(self.config.level_precision, id="levels-panel", classes="panel")
                yield ConvergencePanel(
                    self.core.tolerance,
                    self.core.convergence_threshold,
                    self.config.level_precision,
                    id="convergence-panel",
                    classes="panel",
                )

        yield Footer()

    def on_mount(self) -> None:
        """Render the restored state and start the clocks."""
        self.refresh_flow()
        self.refresh_pivot()
        self.update_clocks()
        self.set_interval(1, self.update_clocks)
        logger.info(f"Dashboard started on the {self.core.current_tool} tool")

    # =========================================================
    # Rendering
    # =========================================================

    def update_clocks(self) -> None:
        self.query_one(ClockBar).tick()

    def refresh_pending(self) -> None:
        self.query_one(FlowPanel).update_pending(self.core.flow.pending_buy, self.core.flow.pending_sell)

    def refresh_history(self) -> None:
        term = self.query_one("#note-search", Input).value
        self.query_one(FlowPanel).update_history(self.core.flow.search_entries(term))

    def refresh_flow(self) -> None:
        """Redraw every part of the flow analyzer."""
        panel = self.query_one(FlowPanel)
        panel.update_verdict(self.core.flow.analysis())
        self.refresh_pending()
        self.refresh_history()

        journal = self.query_one(JournalPanel)
        journal.update_parameters(self.core.flow.state.custom_parameters)
        journal.update_journal(self.core.flow.state.journal_entries)

    def refresh_pivot(self) -> None:
        """Redraw level and convergence tables from stored levels."""
        self.query_one(LevelsPanel).update_display(self.core.levels)
        self.query_one(ConvergencePanel).update_display(self.core.clusters(), self.core.has_levels)

    def _guard(self, command, *args):
        """Run a desk command, showing validation errors instead of raising."""
        try:
            return command(*args)
        except ValueError as e:
            self.notify(str(e), severity="error")
            return None

    # =========================================================
    # Flow analyzer events
    # =========================================================

    def _step_flow(self, side: str, change: float) -> None:
        self.core.flow.record_action(side, change)
        self.refresh_pending()

    def on_hold_button_held(self, message: HoldButton.Held) -> None:
        side, direction = (message.button.id or "").split("-")
        change = self.config.flow_step if direction == "plus" else -self.config.flow_step
        self.repeater.start(lambda: self._step_flow(side, change))

    def on_hold_button_released(self, message: HoldButton.Released) -> None:
        self.repeater.stop()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Route button clicks to desk commands."""
        if isinstance(event.button, HoldButton):
            # Press/release drive the repeater instead
            return

        button_id = event.button.id
        if button_id == "flow-submit":
            self.action_submit_flow()
        elif button_id == "flow-undo":
            self.action_undo()
        elif button_id == "flow-reset":
            self.action_reset_pending()
        elif button_id == "history-clear":
            self.core.flow.clear_history()
            self.refresh_flow()
        elif button_id == "param-add":
            self._add_parameter()
        elif button_id == "param-remove":
            self._remove_parameter()
        elif button_id == "journal-log":
            self._log_trade()
        elif button_id == "journal-clear":
            self.core.flow.clear_journal()
            self.refresh_flow()
        elif button_id == "calculate":
            self.action_calculate()
        elif button_id == "formulas-all":
            self.core.select_all_formulas()
            self.query_one(FormulaPanel).sync(self.core.selected_formulas)
        elif button_id == "formulas-none":
            self.core.clear_all_formulas()
            self.query_one(FormulaPanel).sync(self.core.selected_formulas)

    def _add_parameter(self) -> None:
        journal = self.query_one(JournalPanel)
        label, value = journal.read_param_form()
        param = self._guard(self.core.flow.add_parameter, label, value or 1.0)
        if param is not None:
            journal.clear_forms()
            self.refresh_flow()

    def _remove_parameter(self) -> None:
        journal = self.query_one(JournalPanel)
        label, _ = journal.read_param_form()
        match = [
            p for p in self.core.flow.state.custom_parameters
            if p.label.lower() == label.strip().lower()
        ]
        if not match:
            self.notify("Type the label of a parameter to remove it.", severity="warning")
            return
        self.core.flow.remove_parameter(match[0].id)
        journal.clear_forms()
        self.refresh_flow()

    def _log_trade(self) -> None:
        journal = self.query_one(JournalPanel)
        form = journal.read_journal_form()
        trade = self._guard(
            self.core.flow.log_trade,
            form["instrument"],
            form["date"],
            form["entry"],
            form["exit"],
            form["pnl"],
            form["notes"],
        )
        if trade is not None:
            journal.clear_forms()
            self.refresh_flow()
            self.notify("Trade logged", timeout=self.config.copy_notice_seconds)

    def _save_note(self, field: str, value: str) -> None:
        entry_id = self.query_one(FlowPanel).selected_entry_id
        if entry_id is None:
            self.notify("Select a history entry first.", severity="warning")
            return
        self.core.flow.update_note_field(entry_id, field, value)
        self.refresh_history()

    # =========================================================
    # Input events
    # =========================================================

    def on_input_changed(self, event: Input.Changed) -> None:
        field = field_for_input(event.input.id)
        if field is not None:
            self.core.set_input(field, event.value)
        elif event.input.id == "note-search":
            self.refresh_history()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        input_id = event.input.id
        if input_id in ("buy-input", "sell-input"):
            self.core.flow.set_pending(input_id.split("-")[0], event.value)
            self.refresh_pending()
        elif input_id == "tolerance-input":
            if self._guard(self.core.set_tolerance, event.value) is not None:
                self._settings_changed()
        elif input_id == "threshold-input":
            if self._guard(self.core.set_convergence_threshold, event.value) is not None:
                self._settings_changed()
        elif input_id == "note-title-input":
            self._save_note("note_title", event.value)
        elif input_id == "note-input":
            self._save_note("note", event.value)
        elif input_id in ("param-label", "param-value"):
            self._add_parameter()
        elif field_for_input(input_id) is not None:
            self.action_calculate()

    def _settings_changed(self) -> None:
        panel = self.query_one(ConvergencePanel)
        panel.update_settings(self.core.tolerance, self.core.convergence_threshold)
        panel.update_display(self.core.clusters(), self.core.has_levels)

    # =========================================================
    # Pivot calculator events
    # =========================================================

    def on_selection_list_selection_toggled(self, event: SelectionList.SelectionToggled) -> None:
        self._guard(self.core.toggle_formula, event.selection.value)

    def on_selection_list_selection_highlighted(self, event: SelectionList.SelectionHighlighted) -> None:
        self.query_one(FormulaPanel).show_description(event.selection.value)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        table_id = event.data_table.id
        row_key = event.row_key.value

        if table_id == "history-table":
            entry_id = int(row_key) if row_key is not None else None
            match = [e for e in self.core.flow.state.history_with_notes if e.id == entry_id]
            self.query_one(FlowPanel).select_entry(match[0] if match else None)
            return

        if table_id == "levels-table":
            value = self.query_one(LevelsPanel).value_for(row_key)
        elif table_id == "convergence-table":
            value = self.query_one(ConvergencePanel).value_for(row_key)
        else:
            return
        if value is not None:
            copy_value(self, format_level(value, self.config.level_precision), self.config.copy_notice_seconds)

    # =========================================================
    # Actions
    # =========================================================

    def action_show_tool(self, tool: str) -> None:
        self.core.switch_tool(tool)
        self.query_one("#tools", ContentSwitcher).current = tool

    def action_add_flow(self, side: str) -> None:
        self._step_flow(side, self.config.flow_step)

    def action_undo(self) -> None:
        if not self.core.flow.undo_last_action():
            self.notify("Nothing to undo.", severity="warning")
        self.refresh_pending()

    def action_reset_pending(self) -> None:
        self.core.flow.reset_pending()
        self.refresh_pending()

    def action_submit_flow(self) -> None:
        entry = self._guard(self.core.flow.submit)
        if entry is not None:
            self.refresh_flow()
            self.notify(entry.conclusion, timeout=self.config.copy_notice_seconds)

    def action_calculate(self) -> None:
        report = self._guard(self.core.recalculate)
        if report is None:
            return
        self.refresh_pivot()
        self.notify(
            f"{len(report.levels)} levels from {len(report.results)} formulas, "
            f"{len(report.clusters)} recurring",
            timeout=self.config.copy_notice_seconds,
        )
        if report.skipped:
            self.notify(
                f"Skipped {len(report.skipped)} formulas that need an open price",
                severity="warning",
            )

    def _disarm_clear(self) -> None:
        self._clear_armed = False

    def action_clear_all(self) -> None:
        """Full reset, after a second ctrl+x to confirm."""
        if not self._clear_armed:
            self._clear_armed = True
            self.set_timer(self.CLEAR_CONFIRM_WINDOW, self._disarm_clear)
            self.notify("Press ctrl+x again to clear ALL desk data.", severity="warning")
            return

        self._clear_armed = False
        self.repeater.stop()
        self.core.clear_all_data()
        self.query_one(PivotInputs).set_values(self.core.inputs)
        self.query_one(FormulaPanel).sync(self.core.selected_formulas)
        self.query_one(ConvergencePanel).update_settings(self.core.tolerance, self.core.convergence_threshold)
        self.query_one(FlowPanel).select_entry(None)
        self.refresh_flow()
        self.refresh_pivot()
        self.notify("All desk data cleared.")

    async def action_quit(self) -> None:
        """Save and exit."""
        self.repeater.stop()
        self.core.flush()
        logger.info("Dashboard shutdown complete")
        self.exit()


def run_dashboard(data_dir: str | Path | None = None, config: DeskConfig | None = None) -> None:
    """Open the desk store and run the dashboard until quit."""
    config = config or DEFAULT_CONFIG
    data_path = Path(data_dir or config.data_dir)
    data_path.mkdir(parents=True, exist_ok=True)
    configure_logging(data_path / config.log_file)

    core = DeskCore(JsonFileStore(data_path / config.store_filename), config)
    app = DeskDashboard(core)
    try:
        app.run()
    finally:
        core.flush()


if __name__ == "__main__":
    run_dashboard()
