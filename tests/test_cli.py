#!/usr/bin/env python3
"""
Tests for the command-line interface and environment config.

Run with:
    python -m pytest tests/test_cli.py -v
"""

import sys
from pathlib import Path

# Add project root to path for standalone execution
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from desk.core.config import DeskConfig
from desk.core.desk_core import DeskCore
from desk.state.store import JsonFileStore
from desk.ui.cli import calculate_levels, create_parser, run_cli

ENV_VARS = ("DESK_DATA_DIR", "DESK_LOG_FILE", "DESK_TOLERANCE", "DESK_THRESHOLD")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate each test from DESK_* variables and stray .env files."""
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        # set-then-delete registers the variable so anything loaded is undone
        monkeypatch.setenv(name, "x")
        monkeypatch.delenv(name)


class TestParser:
    """Tests for argument parsing."""

    def test_levels_and_options(self):
        """Test the one-shot calculation arguments."""
        args = create_parser().parse_args(
            ["--levels", "110", "90", "100", "-f", "formula1", "pivotz", "-t", "0.25", "--threshold", "2"]
        )
        assert args.levels == ["110", "90", "100"]
        assert args.formulas == ["formula1", "pivotz"]
        assert args.tolerance == "0.25"
        assert args.threshold == "2"
        assert args.today_open is None

    def test_defaults(self):
        """Test no arguments means launching the dashboard."""
        args = create_parser().parse_args([])
        assert args.levels is None
        assert args.flow is None
        assert args.data_dir is None
        assert not args.reset


class TestCalculateLevels:
    """Tests for the one-shot calculation helper."""

    def test_selected_formula(self):
        """Test an explicit formula list replaces the default selection."""
        report = calculate_levels("110", "90", "100", formulas=["formula1"], threshold="1", tolerance="0")
        assert list(report.results) == ["STANDARD PIVOT"]
        assert len(report.clusters) == 9

    def test_all_formulas(self):
        """Test 'all' evaluates the whole catalog."""
        report = calculate_levels(110, 90, 100, today_open=101, yesterday_open=99, formulas=["all"])
        assert len(report.results) + len(report.skipped) == 24

    def test_default_selection(self):
        """Test omitting formulas uses the default three."""
        report = calculate_levels(110, 90, 100, today_open=101)
        assert set(report.results) == {"CLASSIC PIVOT (EXTENDED)", "STANDARD PIVOT", "FOUR POINT PIVOT"}

    def test_empty_formula_list(self):
        """Test an explicitly empty selection is an error."""
        with pytest.raises(ValueError, match="select at least one formula"):
            calculate_levels(110, 90, 100, formulas=[])

    def test_unknown_formula(self):
        """Test an unknown formula id is an error."""
        with pytest.raises(ValueError, match="Unknown formula"):
            calculate_levels(110, 90, 100, formulas=["formula99"])


class TestRunCli:
    """Tests for the CLI entry point."""

    def test_flow(self, capsys):
        """Test flow classification output."""
        run_cli(["--flow", "70", "30"])
        out = capsys.readouterr().out
        assert "NORMAL BUY" in out
        assert "40.00%" in out

    def test_negative_flow(self, capsys):
        """Test negative pressure is rejected."""
        run_cli(["--flow", "-1", "3"])
        assert "cannot be negative" in capsys.readouterr().out

    def test_levels(self, capsys):
        """Test a one-shot calculation prints the level table."""
        run_cli(["--levels", "110", "90", "100", "--formulas", "formula1"])
        out = capsys.readouterr().out
        assert "STANDARD PIVOT" in out
        assert "110.00" in out

    def test_levels_error(self, capsys):
        """Test validation errors are printed, not raised."""
        run_cli(["--levels", "80", "90", "100"])
        assert "High value cannot be less than Low value." in capsys.readouterr().out

    def test_list_formulas(self, capsys):
        """Test the formula catalog listing."""
        run_cli(["--list-formulas"])
        out = capsys.readouterr().out
        assert "formula0" in out
        assert "pivotz" in out

    def test_reset_without_data(self, capsys, tmp_path):
        """Test reset with nothing saved."""
        run_cli(["--reset", "--data-dir", str(tmp_path / "empty")])
        assert "No saved desk data" in capsys.readouterr().out

    def test_reset_clears_store(self, capsys, tmp_path):
        """Test reset removes the saved desk."""
        path = tmp_path / "desk_state.json"
        DeskCore(JsonFileStore(path)).flush()
        assert path.exists()

        run_cli(["--reset", "--data-dir", str(tmp_path)])
        assert not path.exists()
        assert "Cleared saved desk data" in capsys.readouterr().out

    def test_bad_env_setting(self, capsys, monkeypatch):
        """Test an invalid environment override is reported."""
        monkeypatch.setenv("DESK_THRESHOLD", "three")
        run_cli(["--flow", "1", "1"])
        assert "Invalid DESK_* setting" in capsys.readouterr().out


class TestConfigFromEnv:
    """Tests for environment-based configuration."""

    def test_defaults(self):
        """Test no variables gives the stock config."""
        assert DeskConfig.from_env() == DeskConfig()

    def test_overrides(self, monkeypatch):
        """Test variables override the defaults."""
        monkeypatch.setenv("DESK_DATA_DIR", "/tmp/desk")
        monkeypatch.setenv("DESK_TOLERANCE", "0.75")
        monkeypatch.setenv("DESK_THRESHOLD", "4")
        config = DeskConfig.from_env()
        assert config.data_dir == "/tmp/desk"
        assert config.default_tolerance == 0.75
        assert config.default_convergence_threshold == 4

    def test_dotenv_file(self, tmp_path):
        """Test values are read from a .env file."""
        env_file = tmp_path / "desk.env"
        env_file.write_text("DESK_LOG_FILE=custom.log\n")
        assert DeskConfig.from_env(str(env_file)).log_file == "custom.log"

    def test_out_of_range(self, monkeypatch):
        """Test overrides still pass config validation."""
        monkeypatch.setenv("DESK_THRESHOLD", "0")
        with pytest.raises(ValueError):
            DeskConfig.from_env()
