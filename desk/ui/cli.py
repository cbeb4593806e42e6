"""
Command-line interface for the Flow & Pivot Desk.

Handles argument parsing, one-shot calculations printed as tables,
interactive prompts, and launching the dashboard application.
"""

import argparse
import math
from pathlib import Path

import questionary
from questionary import Style
from rich.console import Console
from rich.table import Table

from desk.core.config import DEFAULT_CONFIG, DeskConfig
from desk.core.desk_core import DeskCore, PivotReport
from desk.flow.sentiment import analyze_flow
from desk.pivots.catalog import list_formulas
from desk.state.state_manager import DeskStateManager
from desk.state.store import JsonFileStore, MemoryStore
from desk.ui.components.levels_panel import level_color

# Custom style for questionary prompts
MENU_STYLE = Style(
    [
        ("qmark", "fg:cyan bold"),
        ("question", "fg:white bold"),
        ("answer", "fg:green bold"),
        ("pointer", "fg:cyan bold"),
        ("highlighted", "fg:cyan bold"),
        ("selected", "fg:green"),
    ]
)

console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(description="Flow & Pivot Desk")
    parser.add_argument(
        "--list-formulas", "-l", action="store_true", help="List the pivot formulas and exit"
    )
    parser.add_argument(
        "--levels",
        nargs=3,
        metavar=("HIGH", "LOW", "CLOSE"),
        help="Calculate pivot levels for prior-session high, low and close",
    )
    parser.add_argument("--today-open", type=str, default=None, help="Today's open (optional)")
    parser.add_argument("--yesterday-open", type=str, default=None, help="Yesterday's open (optional)")
    parser.add_argument(
        "--formulas",
        "-f",
        nargs="+",
        default=None,
        help="Formula ids to evaluate, or 'all' (default: formula0 formula1 formula2)",
    )
    parser.add_argument(
        "--tolerance",
        "-t",
        type=str,
        default=None,
        help=f"Convergence tolerance (default: {DEFAULT_CONFIG.default_tolerance:.2f})",
    )
    parser.add_argument(
        "--threshold",
        type=str,
        default=None,
        help=f"Minimum levels per recurring level (default: {DEFAULT_CONFIG.default_convergence_threshold})",
    )
    parser.add_argument(
        "--flow",
        nargs=2,
        type=float,
        metavar=("BUY", "SELL"),
        help="Classify buy/sell pressure and exit",
    )
    parser.add_argument(
        "--prompt", "-p", action="store_true", help="Enter prices and formulas interactively"
    )
    parser.add_argument(
        "--reset", action="store_true", help="Clear all saved desk data and exit"
    )
    parser.add_argument(
        "--data-dir",
        "-d",
        type=str,
        default=None,
        help=f"Directory for saved desk data (default: $DESK_DATA_DIR or {DEFAULT_CONFIG.data_dir})",
    )
    return parser


# ============================================================
# Calculations
# ============================================================


def calculate_levels(
    high: str | float,
    low: str | float,
    close: str | float,
    today_open: str | float | None = None,
    yesterday_open: str | float | None = None,
    formulas: list[str] | None = None,
    tolerance: str | float | None = None,
    threshold: str | int | None = None,
    config: DeskConfig | None = None,
) -> PivotReport:
    """
    One-shot pivot calculation that leaves the saved desk untouched.

    Raises:
        ValueError: On invalid prices, settings or formula ids
    """
    core = DeskCore(MemoryStore(), config)
    for name, raw in (
        ("high", high),
        ("low", low),
        ("close", close),
        ("today_open", today_open),
        ("yesterday_open", yesterday_open),
    ):
        core.set_input(name, raw)

    if formulas is not None:
        if "all" in formulas:
            core.select_all_formulas()
        else:
            core.clear_all_formulas()
            for formula_id in formulas:
                if not core.is_selected(formula_id):
                    core.toggle_formula(formula_id)

    if tolerance is not None:
        core.set_tolerance(tolerance)
    if threshold is not None:
        core.set_convergence_threshold(threshold)
    return core.recalculate()


# ============================================================
# Rendering
# ============================================================


def build_formulas_table() -> Table:
    table = Table(title="Pivot Formulas", header_style="bold cyan")
    table.add_column("Id", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Description")
    for formula in list_formulas():
        table.add_row(formula.id, formula.name, formula.description)
    return table


def build_levels_table(report: PivotReport, precision: int = 2) -> Table:
    table = Table(title="Individual Levels", header_style="bold cyan")
    table.add_column("Formula", style="bold")
    table.add_column("Level")
    table.add_column("Value", justify="right")
    previous = None
    for level in report.levels:
        color = level_color(level.type)
        table.add_row(
            level.formula if level.formula != previous else "",
            f"[{color}]{level.label}[/{color}]",
            f"[{color}]{level.value:.{precision}f}[/{color}]",
        )
        previous = level.formula
    return table


def build_clusters_table(report: PivotReport, precision: int = 2) -> Table:
    table = Table(title="Recurring Levels", header_style="bold cyan")
    table.add_column("Value", justify="right")
    table.add_column("Count", justify="right")
    table.add_column("Levels")
    table.add_column("Formulas", style="dim")
    for cluster in report.clusters:
        color = level_color(cluster.type)
        table.add_row(
            f"[bold {color}]{cluster.value:.{precision}f}[/bold {color}]",
            str(cluster.count),
            f"[{color}]{cluster.label_summary()}[/{color}]",
            cluster.formula_summary(),
        )
    return table


def print_report(report: PivotReport, precision: int = 2) -> None:
    console.print(build_levels_table(report, precision))
    if report.clusters:
        console.print(build_clusters_table(report, precision))
    else:
        console.print("\n[dim]NO RECURRING LEVELS FOUND[/dim]")
        console.print("[dim]TRY LOWERING THE CONVERGENCE THRESHOLD OR TOLERANCE[/dim]")
    if report.skipped:
        console.print(f"\n[yellow]⚠️ Skipped (open price missing): {', '.join(report.skipped)}[/yellow]")


def print_flow(buy: float, sell: float) -> None:
    analysis = analyze_flow(buy, sell)
    color = "green" if analysis.is_bullish else "red" if analysis.is_bearish else "yellow"
    console.print(f"\n📊 BUYS: {analysis.buy:.1f} | SELLS: {analysis.sell:.1f} | %DIFF: {analysis.percentage:.2f}%")
    console.print(f"   [bold {color}]{analysis.sentiment.value}[/bold {color}]\n")


# ============================================================
# Interactive prompt
# ============================================================


def _number_or_message(text: str, required: bool = True) -> bool | str:
    if not text.strip():
        return True if not required else "This field is required"
    try:
        value = float(text)
    except ValueError:
        return "Please enter a number"
    return True if math.isfinite(value) else "Please enter a number"


def prompt_levels(config: DeskConfig | None = None) -> PivotReport | None:
    """Ask for prices and formulas, then calculate. None if cancelled."""
    config = config or DEFAULT_CONFIG
    answers: dict[str, str] = {}
    for name, label, required in (
        ("high", "High:", True),
        ("low", "Low:", True),
        ("close", "Close:", True),
        ("today_open", "Today's open (optional):", False),
        ("yesterday_open", "Yesterday's open (optional):", False),
    ):
        answer = questionary.text(
            label,
            validate=lambda text, required=required: _number_or_message(text, required),
            style=MENU_STYLE,
        ).ask()
        if answer is None:
            return None
        answers[name] = answer

    formulas = questionary.checkbox(
        "Select formulas:",
        choices=[
            questionary.Choice(
                title=f"{formula.name} - {formula.description}",
                value=formula.id,
                checked=formula.id in config.default_formulas,
            )
            for formula in list_formulas()
        ],
        style=MENU_STYLE,
    ).ask()
    if formulas is None:
        return None

    return calculate_levels(**answers, formulas=formulas, config=config)


# ============================================================
# Entry point
# ============================================================


def handle_reset(data_dir: str, config: DeskConfig) -> None:
    """Clear saved desk data."""
    path = Path(data_dir) / config.store_filename
    if not path.exists():
        print(f"\n📂 No saved desk data in {data_dir}/")
        return
    DeskStateManager(JsonFileStore(path), config).clear_state()
    print(f"✓ Cleared saved desk data in {data_dir}/")


def run_cli(argv: list[str] | None = None) -> None:
    """Parse arguments and run the appropriate command or launch the dashboard."""
    parser = create_parser()
    args = parser.parse_args(argv)
    try:
        config = DeskConfig.from_env()
    except ValueError as e:
        print(f"\n❌ {e}")
        return
    data_dir = args.data_dir or config.data_dir

    if args.list_formulas:
        console.print(build_formulas_table())
        return

    if args.reset:
        handle_reset(data_dir, config)
        return

    if args.flow:
        buy, sell = args.flow
        if buy < 0 or sell < 0:
            print("\n❌ Buy and sell pressure cannot be negative.")
            return
        print_flow(buy, sell)
        return

    if args.levels or args.prompt:
        try:
            if args.prompt:
                report = prompt_levels(config)
                if report is None:
                    print("\nCancelled.")
                    return
            else:
                high, low, close = args.levels
                report = calculate_levels(
                    high,
                    low,
                    close,
                    today_open=args.today_open,
                    yesterday_open=args.yesterday_open,
                    formulas=args.formulas,
                    tolerance=args.tolerance,
                    threshold=args.threshold,
                    config=config,
                )
        except ValueError as e:
            print(f"\n❌ {e}")
            return
        print_report(report, config.level_precision)
        return

    # Launch the dashboard
    from desk.ui.dashboard import run_dashboard

    run_dashboard(data_dir, config)


if __name__ == "__main__":
    run_cli()
