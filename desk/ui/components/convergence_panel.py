"""
Convergence panel component.

Displays recurring levels (clusters of levels from several formulas that
land within the tolerance of each other) with the tolerance and
threshold controls.
"""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Input, Label, Static

from desk.core.models import ConvergenceCluster
from desk.ui.components.levels_panel import level_color

NO_CLUSTERS_MESSAGE = (
    "[dim]NO RECURRING LEVELS FOUND\n"
    "TRY LOWERING THE CONVERGENCE THRESHOLD OR TOLERANCE[/dim]"
)


class ConvergencePanel(Container):
    """Panel displaying convergence clusters."""

    def __init__(self, tolerance: float, threshold: int, precision: int = 2, **kwargs):
        super().__init__(**kwargs)
        self.tolerance = tolerance
        self.threshold = threshold
        self.precision = precision
        self._values: dict[str, float] = {}

    def compose(self) -> ComposeResult:
        yield Static("🎯 RECURRING LEVELS", classes="panel-title")
        with Horizontal(classes="convergence-controls"):
            yield Label("Tolerance ±")
            yield Input(value=f"{self.tolerance:.2f}", id="tolerance-input", type="number")
            yield Label("Min formulas")
            yield Input(value=str(self.threshold), id="threshold-input", type="integer")
        yield Static("", id="convergence-summary")
        yield DataTable(id="convergence-table", cursor_type="row", zebra_stripes=True)

    def on_mount(self) -> None:
        table = self.query_one("#convergence-table", DataTable)
        table.add_columns("Value", "Count", "Levels", "Formulas")

    def update_settings(self, tolerance: float, threshold: int) -> None:
        """Reflect accepted settings back into the inputs."""
        self.tolerance = tolerance
        self.threshold = threshold
        self.query_one("#tolerance-input", Input).value = f"{tolerance:.2f}"
        self.query_one("#threshold-input", Input).value = str(threshold)

    def update_display(self, clusters: list[ConvergenceCluster], has_levels: bool) -> None:
        """
        Update the cluster table.

        Args:
            clusters: Clusters sorted highest first
            has_levels: Whether any levels have been calculated yet
        """
        table = self.query_one("#convergence-table", DataTable)
        table.clear()
        self._values.clear()

        for index, cluster in enumerate(clusters):
            key = str(index)
            color = level_color(cluster.type)
            table.add_row(
                Text(f"{cluster.value:.{self.precision}f}", style=f"bold {color}", justify="right"),
                Text(str(cluster.count), justify="right"),
                Text(cluster.label_summary(), style=color),
                Text(cluster.formula_summary(), style="dim"),
                key=key,
            )
            self._values[key] = cluster.value

        summary = self.query_one("#convergence-summary", Static)
        if not has_levels:
            summary.update("[dim]Calculate levels to find where formulas agree[/dim]")
        elif not clusters:
            summary.update(NO_CLUSTERS_MESSAGE)
        else:
            summary.update(
                f"{len(clusters)} recurring levels within ±{self.tolerance:.2f} "
                f"({self.threshold}+ levels each)"
            )

    def value_for(self, row_key: str | None) -> float | None:
        """Value behind a selected row."""
        if row_key is None:
            return None
        return self._values.get(row_key)
