"""
Desk persistence.

Best-effort local caching of the whole desk in a string key-value store.
"""

from desk.state.state_manager import DeskState, DeskStateManager, PivotState
from desk.state.store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "DeskState",
    "DeskStateManager",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "PivotState",
]
