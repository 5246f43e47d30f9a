"""Submit both hedge legs concurrently and classify the joint outcome.

Both legs are started before either is awaited and the result is classified
only after both have finished. Leg failures are reported in the TradeResult,
never raised. A filled leg whose counterpart failed is NOT cancelled: it is
recorded in the ledger as an open, unhedged position and the result carries
its order id for manual follow-up. A ledger commit that fails after an
order filled is logged and reported in the result error, never raised. An
optional partial-fill handler is the hook for an unwind strategy; none is
installed by default.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass

import structlog

from crossarb.ledger import PositionLedger
from crossarb.models import ArbitrageOpportunity, Event, OrderLeg, Position, TradeResult
from crossarb.venues.base import VenueClient

log = structlog.get_logger(__name__)

# handler(filled_leg, order_id, result)
PartialFillHandler = Callable[[OrderLeg, str | None, TradeResult], Awaitable[None]]


class ExecutionConfigError(ValueError):
    """The caller asked for an execution that cannot be attempted."""


@dataclass
class _LegOutcome:
    leg: OrderLeg
    event: Event
    order_id: str | None = None
    error: BaseException | None = None

    @property
    def filled(self) -> bool:
        return self.error is None


class ExecutionCoordinator:
    """Places the two legs of an opportunity and commits filled legs to the ledger."""

    def __init__(
        self,
        venues: Mapping[str, VenueClient],
        ledger: PositionLedger,
        partial_fill_handler: PartialFillHandler | None = None,
    ) -> None:
        self.venues = venues
        self.ledger = ledger
        self.partial_fill_handler = partial_fill_handler

    def _validate(self, opportunity: ArbitrageOpportunity, notional_usd: float) -> None:
        if notional_usd <= 0:
            raise ExecutionConfigError(f"notional must be positive, got {notional_usd}")
        for leg in opportunity.legs:
            if leg.venue not in self.venues:
                raise ExecutionConfigError(f"no client registered for venue {leg.venue!r}")
            if not 0 < leg.price <= 1:
                raise ExecutionConfigError(f"leg price out of range on {leg.venue}: {leg.price}")

    async def _place(self, leg: OrderLeg, event: Event, notional_usd: float) -> str | None:
        log.info(
            "leg_placing",
            venue=leg.venue,
            action=leg.action,
            outcome=leg.outcome,
            price=leg.price,
            notional=notional_usd,
        )
        order_id = await self.venues[leg.venue].place_order(event.event_id, leg.outcome, notional_usd, leg.price)
        log.info("leg_placed", venue=leg.venue, order_id=order_id)
        return order_id

    def _record(self, outcome: _LegOutcome, notional_usd: float) -> None:
        leg = outcome.leg
        self.ledger.add(
            Position.open(
                venue=leg.venue,
                event_id=outcome.event.event_id,
                event_title=outcome.event.title,
                outcome=leg.outcome,
                shares=notional_usd / leg.price,
                cost=notional_usd,
                price=leg.price,
                order_id=outcome.order_id,
            )
        )

    async def execute(
        self,
        opportunity: ArbitrageOpportunity,
        event_a: Event,
        event_b: Event,
        notional_usd: float,
    ) -> TradeResult:
        """Run both legs concurrently. Raises only ExecutionConfigError."""
        self._validate(opportunity, notional_usd)
        log.info(
            "arbitrage_executing",
            strategy=opportunity.description,
            net_profit=round(opportunity.net_profit, 4),
            roi_percent=round(opportunity.roi_percent, 2),
        )
        outcomes = [_LegOutcome(opportunity.leg_a, event_a), _LegOutcome(opportunity.leg_b, event_b)]
        results = await asyncio.gather(
            *(self._place(o.leg, o.event, notional_usd) for o in outcomes),
            return_exceptions=True,
        )
        for outcome, res in zip(outcomes, results):
            if isinstance(res, BaseException):
                if isinstance(res, asyncio.CancelledError):
                    raise res
                outcome.error = res
                log.error("leg_failed", venue=outcome.leg.venue, error=str(res))
            else:
                outcome.order_id = res

        leg_a, leg_b = outcomes
        errors = [f"{o.leg.venue}: {o.error}" for o in outcomes if not o.filled]
        result = TradeResult(
            success=not errors,
            venue_a=leg_a.leg.venue,
            venue_b=leg_b.leg.venue,
            order_id_a=leg_a.order_id,
            order_id_b=leg_b.order_id,
        )
        for outcome in outcomes:
            if not outcome.filled:
                continue
            try:
                self._record(outcome, notional_usd)
            except Exception as e:
                # Order is live on the venue; keep the id in the result
                log.error(
                    "ledger_commit_failed",
                    venue=outcome.leg.venue,
                    order_id=outcome.order_id,
                    error=str(e),
                )
                errors.append(f"{outcome.leg.venue}: ledger commit failed: {e}")
        result.error = "; ".join(errors) or None
        if result.success:
            log.info("arbitrage_executed", order_id_a=result.order_id_a, order_id_b=result.order_id_b)
            return result

        log.warning("arbitrage_failed", error=result.error)
        filled = [o for o in outcomes if o.filled]
        if filled:
            unhedged = filled[0]
            log.warning(
                "unhedged_leg",
                venue=unhedged.leg.venue,
                order_id=unhedged.order_id,
                msg="Counterpart leg failed; filled leg was not cancelled.",
            )
            if self.partial_fill_handler is not None:
                try:
                    await self.partial_fill_handler(unhedged.leg, unhedged.order_id, result)
                except Exception as e:
                    log.error("partial_fill_handler_failed", venue=unhedged.leg.venue, error=str(e))
        return result
