"""
Formula selection and OHLC input panel.

Left column of the Pivot Calculator: prior-session prices plus the list
of formulas to evaluate.
"""

from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, Input, Label, SelectionList, Static

from desk.pivots.catalog import list_formulas

INPUT_LABELS = {
    "high": "High",
    "low": "Low",
    "close": "Close",
    "today_open": "Today's Open",
    "yesterday_open": "Yesterday's Open",
}


def input_id(name: str) -> str:
    return f"input-{name.replace('_', '-')}"


def field_for_input(widget_id: str | None) -> str | None:
    """Map an input widget id back to its OHLC field name."""
    for name in INPUT_LABELS:
        if input_id(name) == widget_id:
            return name
    return None


class PivotInputs(Vertical):
    """Prior-session price inputs."""

    def __init__(self, values: dict[str, str], **kwargs):
        super().__init__(**kwargs)
        self.values = values

    def compose(self) -> ComposeResult:
        yield Static("💹 PRIOR SESSION", classes="panel-title")
        for name, label in INPUT_LABELS.items():
            optional = name in ("today_open", "yesterday_open")
            with Horizontal(classes="input-row"):
                yield Label(label, classes="input-label")
                yield Input(
                    value=self.values.get(name, ""),
                    placeholder="optional" if optional else "required",
                    id=input_id(name),
                    type="number",
                )
        yield Button("CALCULATE", id="calculate", variant="primary")

    def set_values(self, values: dict[str, str]) -> None:
        for name in INPUT_LABELS:
            self.query_one(f"#{input_id(name)}", Input).value = values.get(name, "")


class FormulaPanel(Container):
    """Selectable list of pivot formulas."""

    def __init__(self, selected: list[str], **kwargs):
        super().__init__(**kwargs)
        self.selected = set(selected)

    def compose(self) -> ComposeResult:
        yield Static("🧮 FORMULAS", classes="panel-title")
        with Horizontal(classes="formula-buttons"):
            yield Button("Select All", id="formulas-all")
            yield Button("Clear All", id="formulas-none")
        yield SelectionList[str](
            *[
                (formula.name, formula.id, formula.id in self.selected)
                for formula in list_formulas()
            ],
            id="formula-list",
        )
        yield Static("", id="formula-description", classes="formula-description")

    def sync(self, selected: list[str]) -> None:
        """Make the list match the stored selection."""
        self.selected = set(selected)
        selection_list = self.query_one("#formula-list", SelectionList)
        selection_list.deselect_all()
        for formula_id in selected:
            selection_list.select(formula_id)

    def show_description(self, formula_id: str) -> None:
        for formula in list_formulas():
            if formula.id == formula_id:
                self.query_one("#formula-description", Static).update(
                    f"[bold]{formula.name}[/bold]\n[dim]{formula.description}[/dim]"
                )
                return
