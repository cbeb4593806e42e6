"""
Flow Analyzer panel component.

Pending buy/sell entry with press-and-hold buttons, the current verdict,
running totals and the submission history with editable notes.
"""

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import Button, DataTable, Input, Static

from desk.flow.models import HistoryEntry
from desk.flow.sentiment import FlowAnalysis

# Theme colors (Rich markup)
COLOR_UP = "#44ffaa"
COLOR_DOWN = "#ff7777"
COLOR_NEUTRAL = "#ffdd55"


def verdict_color(analysis: FlowAnalysis) -> str:
    if analysis.is_bullish:
        return COLOR_UP
    if analysis.is_bearish:
        return COLOR_DOWN
    return COLOR_NEUTRAL


def format_verdict(analysis: FlowAnalysis) -> str:
    """Verdict headline with %DIFF, as Rich markup."""
    color = verdict_color(analysis)
    return (
        f"[bold {color}]{analysis.sentiment.value}[/bold {color}]\n"
        f"[dim]%DIFF[/dim] {analysis.percentage:.2f}%"
    )


def format_totals(analysis: FlowAnalysis) -> str:
    return (
        f"[{COLOR_UP}]BUYS: {analysis.buy:.1f}[/{COLOR_UP}]  │  "
        f"[{COLOR_DOWN}]SELLS: {analysis.sell:.1f}[/{COLOR_DOWN}]  │  "
        f"TOTAL: {analysis.total:.1f}"
    )


class HoldButton(Button):
    """
    Button that reports press and release separately.

    The dashboard drives a HoldRepeater from these messages so the
    action repeats while the mouse button is held down.
    """

    class Held(Message):
        def __init__(self, button: "HoldButton") -> None:
            self.button = button
            super().__init__()

    class Released(Message):
        def __init__(self, button: "HoldButton") -> None:
            self.button = button
            super().__init__()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        self.capture_mouse()
        self.post_message(self.Held(self))

    def on_mouse_up(self, event: events.MouseUp) -> None:
        self.release_mouse()
        self.post_message(self.Released(self))

    def on_leave(self, event: events.Leave) -> None:
        self.post_message(self.Released(self))


class FlowPanel(Container):
    """Panel for tallying flow and reading the verdict."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.selected_entry_id: int | None = None

    def compose(self) -> ComposeResult:
        yield Static("📊 FLOW ANALYZER", classes="panel-title")
        with Horizontal(classes="flow-controls"):
            for side in ("buy", "sell"):
                with Vertical(classes=f"flow-side {side}-side"):
                    yield Static(side.upper(), classes="side-title")
                    with Horizontal(classes="flow-stepper"):
                        yield HoldButton("-", id=f"{side}-minus", classes="hold-button")
                        yield Input(value="0.0", id=f"{side}-input", type="number")
                        yield HoldButton("+", id=f"{side}-plus", classes="hold-button")
        with Horizontal(classes="flow-actions"):
            yield Button("SUBMIT", id="flow-submit", variant="success")
            yield Button("UNDO", id="flow-undo")
            yield Button("RESET", id="flow-reset")
            yield Button("CLEAR HISTORY", id="history-clear", variant="error")
        yield Static("", id="flow-verdict", classes="flow-verdict")
        yield Static("", id="flow-totals", classes="flow-totals")
        yield Static("📜 HISTORY", classes="section-title")
        yield Input(placeholder="Search notes...", id="note-search")
        yield DataTable(id="history-table", cursor_type="row", zebra_stripes=True)
        with Horizontal(classes="note-editor"):
            yield Input(placeholder="Note title (select an entry)", id="note-title-input")
            yield Input(placeholder="Note", id="note-input")

    def on_mount(self) -> None:
        table = self.query_one("#history-table", DataTable)
        table.add_columns("Time", "Verdict", "Buys", "Sells", "%Diff", "Note")

    def update_pending(self, buy: float, sell: float) -> None:
        self.query_one("#buy-input", Input).value = f"{buy:.1f}"
        self.query_one("#sell-input", Input).value = f"{sell:.1f}"

    def update_verdict(self, analysis: FlowAnalysis) -> None:
        self.query_one("#flow-verdict", Static).update(format_verdict(analysis))
        self.query_one("#flow-totals", Static).update(format_totals(analysis))

    def update_history(self, entries: list[HistoryEntry]) -> None:
        """
        Update the history table.

        Args:
            entries: Detailed entries, newest first
        """
        table = self.query_one("#history-table", DataTable)
        table.clear()
        for entry in entries:
            color = COLOR_UP if "BUY" in entry.conclusion else COLOR_DOWN if "SELL" in entry.conclusion else COLOR_NEUTRAL
            note = entry.note_title or entry.note
            table.add_row(
                entry.timestamp,
                Text(entry.conclusion, style=color),
                f"{entry.buy_count:.1f}",
                f"{entry.sell_count:.1f}",
                f"{entry.percentage:.2f}%",
                Text(note, style="dim"),
                key=str(entry.id),
            )

    def select_entry(self, entry: HistoryEntry | None) -> None:
        """Load an entry's notes into the editor."""
        self.selected_entry_id = entry.id if entry else None
        self.query_one("#note-title-input", Input).value = entry.note_title if entry else ""
        self.query_one("#note-input", Input).value = entry.note if entry else ""
