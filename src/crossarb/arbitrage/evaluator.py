"""Fee-adjusted evaluation of the two cross-venue hedges.

A complementary Yes/No pair always pays exactly $1 on resolution, so buying
Yes on one venue and No on the other locks in 1 - (cost of both legs).
Strategy YES_A_NO_B is checked before NO_A_YES_B and wins whenever it
qualifies, even if the other hedge would be more profitable.
"""

from __future__ import annotations

from dataclasses import dataclass

from crossarb.models import ArbitrageOpportunity, HedgeStrategy, MarketQuote, OrderLeg

DEFAULT_FEE_RATE = 0.01
DEFAULT_MIN_PROFIT_THRESHOLD = 0.02


@dataclass(frozen=True)
class Fees:
    """Per-venue fee rates as a fraction of the $1 payout."""

    venue_a: float = DEFAULT_FEE_RATE
    venue_b: float = DEFAULT_FEE_RATE

    @property
    def total(self) -> float:
        return self.venue_a + self.venue_b


def _opportunity(
    strategy: HedgeStrategy,
    leg_a: OrderLeg,
    leg_b: OrderLeg,
    total_fee_rate: float,
) -> ArbitrageOpportunity:
    cost = leg_a.price + leg_b.price
    gross = 1.0 - cost
    net = gross - total_fee_rate
    return ArbitrageOpportunity(
        strategy=strategy,
        leg_a=leg_a,
        leg_b=leg_b,
        total_cost=cost,
        gross_profit=gross,
        total_fee_rate=total_fee_rate,
        net_profit=net,
        roi_percent=net / cost * 100.0,
    )


def evaluate(
    quote_a: MarketQuote,
    quote_b: MarketQuote,
    fee_rate_a: float = DEFAULT_FEE_RATE,
    fee_rate_b: float = DEFAULT_FEE_RATE,
    min_profit_threshold: float = DEFAULT_MIN_PROFIT_THRESHOLD,
    venue_a: str = "venue_a",
    venue_b: str = "venue_b",
) -> ArbitrageOpportunity | None:
    """Return the first hedge whose gross profit beats fees + threshold, else None."""
    total_fees = fee_rate_a + fee_rate_b
    hurdle = total_fees + min_profit_threshold
    candidates = (
        (
            HedgeStrategy.YES_A_NO_B,
            OrderLeg(venue=venue_a, action="BUY", outcome="YES", price=quote_a.yes),
            OrderLeg(venue=venue_b, action="BUY", outcome="NO", price=quote_b.no),
        ),
        (
            HedgeStrategy.NO_A_YES_B,
            OrderLeg(venue=venue_a, action="BUY", outcome="NO", price=quote_a.no),
            OrderLeg(venue=venue_b, action="BUY", outcome="YES", price=quote_b.yes),
        ),
    )
    for strategy, leg_a, leg_b in candidates:
        if leg_a.price <= 0 or leg_b.price <= 0:
            # No price on one side; nothing to buy
            continue
        gross = 1.0 - (leg_a.price + leg_b.price)
        if gross > hurdle:
            return _opportunity(strategy, leg_a, leg_b, total_fees)
    return None


class ArbitrageEvaluator:
    """evaluate() bound to configured venues, fees and profit threshold."""

    def __init__(
        self,
        min_profit_threshold: float = DEFAULT_MIN_PROFIT_THRESHOLD,
        fees: Fees | None = None,
        venue_a: str = "venue_a",
        venue_b: str = "venue_b",
    ) -> None:
        self.min_profit_threshold = min_profit_threshold
        self.fees = fees or Fees()
        self.venue_a = venue_a
        self.venue_b = venue_b

    def evaluate(self, quote_a: MarketQuote, quote_b: MarketQuote) -> ArbitrageOpportunity | None:
        return evaluate(
            quote_a,
            quote_b,
            fee_rate_a=self.fees.venue_a,
            fee_rate_b=self.fees.venue_b,
            min_profit_threshold=self.min_profit_threshold,
            venue_a=self.venue_a,
            venue_b=self.venue_b,
        )
