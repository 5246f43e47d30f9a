"""Hedge evaluation and pre-match market filters."""

from crossarb.arbitrage.evaluator import ArbitrageEvaluator, Fees, evaluate
from crossarb.arbitrage.filters import MarketFilters

__all__ = ["ArbitrageEvaluator", "Fees", "MarketFilters", "evaluate"]
