"""
Flow Analyzer

Turns manually tallied buy/sell pressure into a sentiment verdict, with
submission history, notes, confluence parameters and a trading journal.
"""

from desk.flow.analyzer import FlowAnalyzer, PendingAction
from desk.flow.models import CustomParameter, FlowState, HistoryEntry, JournalEntry
from desk.flow.sentiment import FlowAnalysis, Sentiment, analyze_flow, classify_sentiment

__all__ = [
    "CustomParameter",
    "FlowAnalysis",
    "FlowAnalyzer",
    "FlowState",
    "HistoryEntry",
    "JournalEntry",
    "PendingAction",
    "Sentiment",
    "analyze_flow",
    "classify_sentiment",
]
