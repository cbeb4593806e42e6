"""
Confluence parameters and trading journal component.

Labels, instruments and notes are typed by the user, so both views are
built from rich Text pieces rather than markup strings.
"""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, ScrollableContainer
from textual.widgets import Button, Input, Static

from desk.flow.models import CustomParameter, JournalEntry

# Theme colors (Rich styles)
COLOR_UP = "#44ffaa"
COLOR_DOWN = "#ff7777"

JOURNAL_FIELDS = ("instrument", "date", "entry", "exit", "pnl", "notes")


def format_parameters(params: list[CustomParameter]) -> Text:
    if not params:
        return Text("No parameters", style="dim")
    text = Text()
    for param in params:
        text.append(f"• {param.label}: ")
        text.append(f"{param.value:.1f}", style="bold")
        if param.sub_text:
            text.append(f" {param.sub_text}", style="dim")
        text.append("\n")
    text.append(f"Total weight: {sum(p.value for p in params):.1f}", style="dim")
    return text


def format_journal(trades: list[JournalEntry]) -> Text:
    if not trades:
        return Text("No trades logged", style="dim")
    lines = []
    for trade in trades:
        line = Text()
        line.append(f"{trade.date} ")
        line.append(trade.instrument, style="bold")
        if trade.entry_price is not None or trade.exit_price is not None:
            entry = "-" if trade.entry_price is None else f"{trade.entry_price:.2f}"
            exit_ = "-" if trade.exit_price is None else f"{trade.exit_price:.2f}"
            line.append(f" {entry} → {exit_}")
        line.append("  ")
        if trade.pnl is None:
            line.append("P&L n/a", style="dim")
        else:
            line.append(f"{trade.pnl:+,.2f}", style=COLOR_UP if trade.is_win else COLOR_DOWN)
        lines.append(line)
        if trade.notes:
            lines.append(Text(f"   {trade.notes}", style="dim"))
    return Text("\n").join(lines)


class JournalPanel(Container):
    """Panel with confluence parameters and the trade journal."""

    def compose(self) -> ComposeResult:
        yield Static("🧩 PARAMETERS", classes="panel-title")
        yield Static("", id="params-content")
        with Horizontal(classes="param-form"):
            yield Input(placeholder="Label", id="param-label")
            yield Input(placeholder="Weight", id="param-value", type="number")
            yield Button("ADD", id="param-add")
            yield Button("REMOVE", id="param-remove")
        yield Static("📒 JOURNAL", classes="panel-title")
        with Horizontal(classes="journal-form"):
            yield Input(placeholder="Instrument", id="journal-instrument")
            yield Input(placeholder="YYYY-MM-DD", id="journal-date")
            yield Input(placeholder="Entry", id="journal-entry", type="number")
            yield Input(placeholder="Exit", id="journal-exit", type="number")
            yield Input(placeholder="P&L", id="journal-pnl", type="number")
        with Horizontal(classes="journal-form"):
            yield Input(placeholder="Notes", id="journal-notes")
            yield Button("LOG TRADE", id="journal-log", variant="primary")
            yield Button("CLEAR", id="journal-clear", variant="error")
        with ScrollableContainer(id="journal-scroll", classes="panel-content"):
            yield Static("", id="journal-content")

    def update_parameters(self, params: list[CustomParameter]) -> None:
        self.query_one("#params-content", Static).update(format_parameters(params))

    def update_journal(self, trades: list[JournalEntry]) -> None:
        self.query_one("#journal-content", Static).update(format_journal(trades))

    def read_param_form(self) -> tuple[str, str]:
        return (
            self.query_one("#param-label", Input).value,
            self.query_one("#param-value", Input).value,
        )

    def read_journal_form(self) -> dict[str, str]:
        return {name: self.query_one(f"#journal-{name}", Input).value for name in JOURNAL_FIELDS}

    def clear_forms(self) -> None:
        for widget_id in ("param-label", "param-value", *(f"journal-{n}" for n in JOURNAL_FIELDS)):
            self.query_one(f"#{widget_id}", Input).value = ""
