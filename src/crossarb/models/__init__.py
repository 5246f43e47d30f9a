"""Canonical schema - Event, MarketQuote, OrderLeg, Position, TradeResult."""

from crossarb.models.event import Event, MarketQuote
from crossarb.models.position import Position, PositionStatistics, PositionStatus
from crossarb.models.trade import ArbitrageOpportunity, HedgeStrategy, OrderLeg, TradeResult

__all__ = [
    "Event",
    "MarketQuote",
    "OrderLeg",
    "HedgeStrategy",
    "ArbitrageOpportunity",
    "TradeResult",
    "Position",
    "PositionStatus",
    "PositionStatistics",
]
