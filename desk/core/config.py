"""
Desk configuration and thresholds.

Centralizes all magic numbers and adjustable parameters for easy tuning.
"""

import os
from dataclasses import dataclass, field, replace

from dotenv import load_dotenv


@dataclass(frozen=True)
class ClockZone:
    """A world clock shown in the dashboard clock strip."""

    label: str
    timezone: str


@dataclass
class DeskConfig:
    """Configuration for the flow analyzer and pivot calculator.

    USER-ADJUSTABLE PARAMETERS (persisted with the session state):
    - Convergence: tolerance, convergence threshold
    - Selection: which formulas are active
    """

    # =========================================================
    # Pivot Convergence (USER-ADJUSTABLE)
    # =========================================================

    # Price distance within which two levels count as the same level
    # Range: 0.00 - 5.00 | Higher = bigger clusters, fewer of them
    default_tolerance: float = 0.50

    # Minimum number of levels a cluster needs to be reported
    # Range: 1 - 10 | Lower = more (and weaker) recurring levels
    default_convergence_threshold: int = 3

    # Formulas selected on first run and after a full reset
    default_formulas: tuple[str, ...] = ("formula0", "formula1", "formula2")

    # Decimal places levels are rounded to before clustering and copying
    level_precision: int = 2

    # =========================================================
    # Flow Analyzer
    # =========================================================

    # Step used by the buy/sell shortcut keys
    flow_step: float = 0.5

    # Decimal places pending and total flow are kept at
    flow_precision: int = 1

    # Percentage difference at or below which a pullback is expected
    retracement_max_pct: float = 25.0

    # Percentage difference above which the bias is strong
    strong_min_pct: float = 66.0

    # =========================================================
    # History Limits
    # =========================================================

    # Maximum history lines and detailed (noted) entries kept
    history_limit: int = 30

    # Maximum trades kept in the journal
    journal_limit: int = 50

    # =========================================================
    # Press-and-Hold Buttons
    # =========================================================

    # Seconds before a held button starts repeating
    hold_initial_delay: float = 0.3

    # Seconds between repeats while held
    hold_repeat_rate: float = 0.1

    # =========================================================
    # Display
    # =========================================================

    # Seconds the "COPIED" confirmation stays on screen
    copy_notice_seconds: float = 2.0

    timezone_clocks: tuple[ClockZone, ...] = field(
        default_factory=lambda: (
            ClockZone("IST", "Asia/Kolkata"),
            ClockZone("LDN", "Europe/London"),
            ClockZone("NY", "America/New_York"),
            ClockZone("TYO", "Asia/Tokyo"),
            ClockZone("SYD", "Australia/Sydney"),
            ClockZone("UTC", "UTC"),
        )
    )

    # =========================================================
    # Storage
    # =========================================================

    # Prefix for every key written to the key-value store
    storage_prefix: str = "qfa_"

    # Base directory for the on-disk store
    data_dir: str = "data"

    store_filename: str = "desk_state.json"

    # Dashboard log file (file only, the TUI owns the terminal)
    log_file: str = "desk.log"

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.default_tolerance < 0:
            raise ValueError("default_tolerance must be non-negative")
        if self.default_convergence_threshold < 1:
            raise ValueError("default_convergence_threshold must be at least 1")
        if not 0 <= self.retracement_max_pct <= self.strong_min_pct:
            raise ValueError("retracement_max_pct must be between 0 and strong_min_pct")
        if self.hold_initial_delay < 0 or self.hold_repeat_rate <= 0:
            raise ValueError("hold timings must be positive")

    @classmethod
    def from_env(cls, env_path: str | None = None) -> "DeskConfig":
        """
        Create config from environment variables (and a .env file).

        Looks for:
        - DESK_DATA_DIR (optional, defaults to "data")
        - DESK_LOG_FILE (optional, defaults to "desk.log")
        - DESK_TOLERANCE (optional, default convergence tolerance)
        - DESK_THRESHOLD (optional, default convergence threshold)
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        overrides: dict = {}
        if os.getenv("DESK_DATA_DIR"):
            overrides["data_dir"] = os.environ["DESK_DATA_DIR"]
        if os.getenv("DESK_LOG_FILE"):
            overrides["log_file"] = os.environ["DESK_LOG_FILE"]
        try:
            if os.getenv("DESK_TOLERANCE"):
                overrides["default_tolerance"] = float(os.environ["DESK_TOLERANCE"])
            if os.getenv("DESK_THRESHOLD"):
                overrides["default_convergence_threshold"] = int(os.environ["DESK_THRESHOLD"])
        except ValueError as e:
            raise ValueError(f"Invalid DESK_* setting in environment: {e}") from None
        return replace(cls(), **overrides)


# Default configuration instance
DEFAULT_CONFIG = DeskConfig()
