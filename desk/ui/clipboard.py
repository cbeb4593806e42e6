"""
Copy-to-clipboard with a transient confirmation.

Terminal clipboard support (OSC 52) is not universal and a terminal that
ignores it gives no error, so every confirmation carries the copied value.
If the copy cannot even be issued, a longer warning shows the value instead.
"""

import logging

from textual.app import App

from desk.core.config import DEFAULT_CONFIG

logger = logging.getLogger(__name__)


def format_level(value: float, precision: int = DEFAULT_CONFIG.level_precision) -> str:
    """Level text as copied and displayed (fixed decimals)."""
    return f"{value:.{precision}f}"


def copy_value(app: App, text: str, timeout: float = DEFAULT_CONFIG.copy_notice_seconds) -> bool:
    """
    Copy text to the system clipboard and confirm with a short notice.

    Args:
        app: Running Textual app
        text: Text to copy
        timeout: Seconds the confirmation stays visible

    Returns:
        True if the copy was issued, False if the fallback notice was shown
    """
    try:
        app.copy_to_clipboard(text)
    except Exception as e:
        logger.warning(f"Clipboard copy failed: {e}")
        app.notify(f"Copy failed - value: {text}", severity="warning", timeout=max(timeout, 5.0))
        return False

    app.notify(f"COPIED {text}", timeout=timeout)
    logger.debug(f"Copied {text} to clipboard")
    return True
