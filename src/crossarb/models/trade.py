"""OrderLeg, ArbitrageOpportunity, TradeResult."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class HedgeStrategy(str, Enum):
    """The two complementary hedges between venue A and venue B."""

    YES_A_NO_B = "yes_a_no_b"
    NO_A_YES_B = "no_a_yes_b"

    def describe(self, venue_a: str, venue_b: str) -> str:
        if self is HedgeStrategy.YES_A_NO_B:
            return f"Buy Yes on {venue_a} + Buy No on {venue_b}"
        return f"Buy No on {venue_a} + Buy Yes on {venue_b}"


@dataclass(frozen=True)
class OrderLeg:
    """One side of a hedge: a single buy on one venue for one outcome."""

    venue: str
    action: str  # BUY
    outcome: str  # YES / NO
    price: float


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """A qualifying hedge. Produced by the evaluator, consumed by the coordinator."""

    strategy: HedgeStrategy
    leg_a: OrderLeg
    leg_b: OrderLeg
    total_cost: float
    gross_profit: float
    total_fee_rate: float
    net_profit: float
    roi_percent: float

    @property
    def description(self) -> str:
        return self.strategy.describe(self.leg_a.venue, self.leg_b.venue)

    @property
    def legs(self) -> tuple[OrderLeg, OrderLeg]:
        return (self.leg_a, self.leg_b)


@dataclass
class TradeResult:
    """Outcome of one two-leg execution attempt."""

    success: bool
    venue_a: str
    venue_b: str
    order_id_a: str | None = None
    order_id_b: str | None = None
    error: str | None = None

    def order_id_for(self, venue: str) -> str | None:
        if venue == self.venue_a:
            return self.order_id_a
        if venue == self.venue_b:
            return self.order_id_b
        return None
