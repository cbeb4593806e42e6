"""
Individual levels panel component.

Displays every level from the last calculation grouped by formula.
Selecting a row copies its value.
"""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Static

from desk.core.models import ComputedLevel, LevelType

# Theme colors (Rich styles)
COLOR_RESISTANCE = "#ff7777"
COLOR_SUPPORT = "#44ffaa"
COLOR_PIVOT = "#ffdd55"

TYPE_COLORS = {
    LevelType.RESISTANCE: COLOR_RESISTANCE,
    LevelType.SUPPORT: COLOR_SUPPORT,
    LevelType.PIVOT: COLOR_PIVOT,
}


def level_color(level_type: LevelType) -> str:
    return TYPE_COLORS[level_type]


class LevelsPanel(Container):
    """Panel listing individual formula results."""

    def __init__(self, precision: int = 2, **kwargs):
        super().__init__(**kwargs)
        self.precision = precision
        self._values: dict[str, float] = {}

    def compose(self) -> ComposeResult:
        yield Static("📐 INDIVIDUAL LEVELS", classes="panel-title")
        yield Static("[dim]Enter High, Low and Close, then calculate[/dim]", id="levels-empty")
        yield DataTable(id="levels-table", cursor_type="row", zebra_stripes=True)

    def on_mount(self) -> None:
        table = self.query_one("#levels-table", DataTable)
        table.add_columns("Formula", "Level", "Value")

    def update_display(self, levels: list[ComputedLevel]) -> None:
        """
        Update the level table.

        Args:
            levels: Stored levels in evaluation order
        """
        table = self.query_one("#levels-table", DataTable)
        table.clear()
        self._values.clear()

        previous_formula = None
        for index, level in enumerate(levels):
            key = str(index)
            color = level_color(level.type)
            # Formula name only on its first row
            name = level.formula if level.formula != previous_formula else ""
            previous_formula = level.formula
            table.add_row(
                Text(name, style="bold"),
                Text(level.label, style=color),
                Text(f"{level.value:.{self.precision}f}", style=color, justify="right"),
                key=key,
            )
            self._values[key] = level.value

        empty = self.query_one("#levels-empty", Static)
        empty.display = not levels

    def value_for(self, row_key: str | None) -> float | None:
        """Value behind a selected row."""
        if row_key is None:
            return None
        return self._values.get(row_key)
