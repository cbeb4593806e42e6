"""
Flow Sentiment Classifier.

Maps accumulated buy and sell pressure to a qualitative verdict based on
how lopsided the flow is:

- %DIFF = |buy - sell| / (buy + sell) * 100, rounded to 2 decimals
- %DIFF <= 25  → retracement expected (bias toward the larger side)
- %DIFF > 66   → strong bias
- otherwise    → normal bias

Equal totals are neutral, and no flow at all is "no signal".
"""

from dataclasses import dataclass
from enum import Enum

from desk.core.config import DEFAULT_CONFIG
from desk.core.models import round_half_up


class Sentiment(Enum):
    """Flow verdicts."""
    STRONG_BUY = "STRONG BUY"
    STRONG_SELL = "STRONG SELL"
    BUY_RETRACEMENT = "BUY RETRACEMENT EXPECTED"
    SELL_RETRACEMENT = "SELL RETRACEMENT EXPECTED"
    NORMAL_BUY = "NORMAL BUY"
    NORMAL_SELL = "NORMAL SELL"
    EQUAL = "BOTH ARE EQUAL"
    NO_SIGNAL = "NO SIGNAL"


@dataclass(frozen=True)
class FlowAnalysis:
    """Totals and verdict for the current flow counts."""

    buy: float
    sell: float
    total: float
    difference: float
    percentage: float  # Rounded to 2 decimals
    sentiment: Sentiment

    @property
    def is_bullish(self) -> bool:
        return self.sentiment in (Sentiment.STRONG_BUY, Sentiment.NORMAL_BUY, Sentiment.BUY_RETRACEMENT)

    @property
    def is_bearish(self) -> bool:
        return self.sentiment in (Sentiment.STRONG_SELL, Sentiment.NORMAL_SELL, Sentiment.SELL_RETRACEMENT)


def percentage_difference(buy: float, sell: float) -> float:
    """Absolute difference as a percentage of the total (0 when total is 0)."""
    total = buy + sell
    if not total:
        return 0.0
    return round_half_up(abs(buy - sell) / total * 100, 2)


def analyze_flow(
    buy: float,
    sell: float,
    retracement_max_pct: float = DEFAULT_CONFIG.retracement_max_pct,
    strong_min_pct: float = DEFAULT_CONFIG.strong_min_pct,
) -> FlowAnalysis:
    """
    Classify buy/sell pressure.

    Args:
        buy: Accumulated buy pressure
        sell: Accumulated sell pressure
        retracement_max_pct: %DIFF at or below which a retracement is expected
        strong_min_pct: %DIFF above which the bias is strong

    Returns:
        FlowAnalysis with totals, %DIFF and the verdict
    """
    total = buy + sell
    percentage = percentage_difference(buy, sell)
    buy_side = buy > sell

    if buy == 0 and sell == 0:
        sentiment = Sentiment.NO_SIGNAL
    elif buy == sell:
        sentiment = Sentiment.EQUAL
    elif percentage <= retracement_max_pct:
        sentiment = Sentiment.BUY_RETRACEMENT if buy_side else Sentiment.SELL_RETRACEMENT
    elif percentage > strong_min_pct:
        sentiment = Sentiment.STRONG_BUY if buy_side else Sentiment.STRONG_SELL
    else:
        sentiment = Sentiment.NORMAL_BUY if buy_side else Sentiment.NORMAL_SELL

    return FlowAnalysis(
        buy=buy,
        sell=sell,
        total=total,
        difference=abs(buy - sell),
        percentage=percentage,
        sentiment=sentiment,
    )


def classify_sentiment(buy: float, sell: float) -> Sentiment:
    """Verdict only, with the default thresholds."""
    return analyze_flow(buy, sell).sentiment
