"""
Flow Analyzer data models.

Contains dataclasses for:
- Submitted history entries (with editable notes)
- Custom confluence parameters
- Trading journal entries
- The persisted flow state as a whole
"""

from dataclasses import asdict, dataclass, field


@dataclass
class HistoryEntry:
    """
    A detailed record of one submission.

    Totals are the running totals right after the submission.
    """

    id: int
    timestamp: str
    conclusion: str
    buy_count: float
    sell_count: float
    percentage: float
    note_title: str = ""
    note: str = ""

    def summary_line(self) -> str:
        """One-line history text shown in the recent history list."""
        return (
            f"{self.timestamp} | {self.conclusion} | BUYS: {self.buy_count:.1f} | "
            f"SELLS: {self.sell_count:.1f} | %DIFF: {self.percentage:.2f}%"
        )

    def matches(self, term: str) -> bool:
        """Case-insensitive search over title, note, conclusion and timestamp."""
        needle = term.lower()
        return any(
            needle in text.lower()
            for text in (self.note_title, self.note, self.conclusion, self.timestamp)
        )

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            id=int(data["id"]),
            timestamp=str(data["timestamp"]),
            conclusion=str(data["conclusion"]),
            buy_count=float(data["buy_count"]),
            sell_count=float(data["sell_count"]),
            percentage=float(data["percentage"]),
            note_title=data.get("note_title") or "",
            note=data.get("note") or "",
        )


@dataclass
class CustomParameter:
    """A user-defined confluence factor with its weight."""

    id: str
    label: str
    value: float
    sub_text: str | None = None  # Hint shown under the label

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CustomParameter":
        return cls(
            id=str(data["id"]),
            label=str(data["label"]),
            value=float(data["value"]),
            sub_text=data.get("sub_text"),
        )


def default_parameters() -> list[CustomParameter]:
    """The confluence factors a fresh desk starts with."""
    return [
        CustomParameter("btt", "BTT", 1.0),
        CustomParameter("futlevel", "FUTLEVEL", 1.0),
        CustomParameter("vsa", "VSA", 1.0, "(0.5 for weak signs)"),
        CustomParameter("vlevel", "VLEVEL", 1.0, "(0.5 for derivations)"),
        CustomParameter("wfutlevel", "WFUTLEVEL", 0.5),
        CustomParameter("mtf-confirmation", "MTF CONFIRMATION", 1.0, "(0.5=Down TF + 0.5=Up TF)"),
    ]


@dataclass
class JournalEntry:
    """A logged trade."""

    id: int
    instrument: str
    date: str  # ISO date (YYYY-MM-DD)
    entry_price: float | None = None
    exit_price: float | None = None
    pnl: float | None = None
    notes: str = ""

    @property
    def is_win(self) -> bool:
        return self.pnl is not None and self.pnl >= 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "JournalEntry":
        def _opt(key: str) -> float | None:
            value = data.get(key)
            return None if value is None else float(value)

        return cls(
            id=int(data["id"]),
            instrument=str(data["instrument"]),
            date=str(data["date"]),
            entry_price=_opt("entry_price"),
            exit_price=_opt("exit_price"),
            pnl=_opt("pnl"),
            notes=data.get("notes") or "",
        )


@dataclass
class FlowState:
    """
    Persisted Flow Analyzer state.

    Pending (not yet submitted) flow is session-only and lives on the
    FlowAnalyzer, not here.
    """

    buy_count: float = 0.0
    sell_count: float = 0.0
    history_list: list[str] = field(default_factory=list)
    history_with_notes: list[HistoryEntry] = field(default_factory=list)
    journal_entries: list[JournalEntry] = field(default_factory=list)
    custom_parameters: list[CustomParameter] = field(default_factory=default_parameters)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "buy_count": self.buy_count,
            "sell_count": self.sell_count,
            "history_list": list(self.history_list),
            "history_with_notes": [entry.to_dict() for entry in self.history_with_notes],
            "journal_entries": [entry.to_dict() for entry in self.journal_entries],
            "custom_parameters": [param.to_dict() for param in self.custom_parameters],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FlowState":
        """Create from dictionary. Missing fields take their defaults."""
        state = cls()
        state.buy_count = float(data.get("buy_count", 0.0))
        state.sell_count = float(data.get("sell_count", 0.0))
        state.history_list = [str(line) for line in data.get("history_list", [])]
        state.history_with_notes = [
            HistoryEntry.from_dict(entry) for entry in data.get("history_with_notes", [])
        ]
        state.journal_entries = [
            JournalEntry.from_dict(entry) for entry in data.get("journal_entries", [])
        ]
        if "custom_parameters" in data:
            state.custom_parameters = [
                CustomParameter.from_dict(param) for param in data["custom_parameters"]
            ]
        return state
