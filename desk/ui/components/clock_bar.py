"""
World clock bar component.

Displays the current time in each configured timezone, refreshed by the
dashboard once a second.
"""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static

from desk.core.config import ClockZone

logger = logging.getLogger(__name__)

MISSING_TIME = "--:--:--"


def resolve_zone(zone: ClockZone) -> ZoneInfo | None:
    """Look up a clock's timezone; None when the tz database lacks it."""
    try:
        return ZoneInfo(zone.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Timezone {zone.timezone} unavailable for {zone.label} clock: {e}")
        return None


def format_clocks(
    zones: tuple[ClockZone, ...],
    now: datetime | None = None,
    resolved: dict[str, ZoneInfo | None] | None = None,
) -> str:
    """
    Render the clock strip.

    Args:
        zones: Clocks to show, in display order
        now: Moment to render (defaults to the current UTC time)
        resolved: Pre-resolved zones by label, to skip repeated lookups

    Returns:
        Rich markup such as "IST 18:30:00  │  UTC 13:00:00"
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    parts = []
    for zone in zones:
        tz = resolved[zone.label] if resolved and zone.label in resolved else resolve_zone(zone)
        time_str = now.astimezone(tz).strftime("%H:%M:%S") if tz is not None else MISSING_TIME
        parts.append(f"[dim]{zone.label}[/dim] [bold]{time_str}[/bold]")
    return "  │  ".join(parts)


class ClockBar(Horizontal):
    """Strip of world clocks."""

    def __init__(self, zones: tuple[ClockZone, ...], **kwargs):
        super().__init__(**kwargs)
        self.zones = zones
        self._resolved = {zone.label: resolve_zone(zone) for zone in zones}

    def compose(self) -> ComposeResult:
        yield Static("", id="clock-content", classes="clock-content")

    def tick(self, now: datetime | None = None) -> None:
        """Redraw all clocks."""
        content = format_clocks(self.zones, now, self._resolved)
        self.query_one("#clock-content", Static).update(content)
