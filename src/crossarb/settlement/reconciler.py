"""Settlement sweep: poll each venue for open positions and settle them in the ledger."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping

import structlog

from crossarb.ledger import PositionLedger
from crossarb.models import Position, PositionStatistics
from crossarb.venues.base import VenueClient

log = structlog.get_logger(__name__)


def position_won(outcome: str, resolved_yes: bool) -> bool:
    return (resolved_yes and outcome == "YES") or (not resolved_yes and outcome == "NO")


class SettlementReconciler:
    """Settles open ledger positions once their venue reports a resolution."""

    def __init__(
        self,
        venues: Mapping[str, VenueClient],
        ledger: PositionLedger,
        venue_a: str | None = None,
        venue_b: str | None = None,
    ) -> None:
        self.venues = venues
        self.ledger = ledger
        names = list(venues)
        self.venue_a = venue_a or (names[0] if names else "")
        self.venue_b = venue_b or (names[1] if len(names) > 1 else "")

    async def _check(self, position: Position) -> bool | None:
        client = self.venues.get(position.venue)
        if client is None:
            raise LookupError(f"no client registered for venue {position.venue!r}")
        return await client.check_settlement(position.event_id)

    async def reconcile(self) -> int:
        """One sweep. Returns the number of positions settled by it."""
        snapshot = self.ledger.open_positions()
        if not snapshot:
            return 0
        answers = await asyncio.gather(*(self._check(p) for p in snapshot), return_exceptions=True)
        settled = 0
        for position, answer in zip(snapshot, answers):
            if isinstance(answer, BaseException):
                if isinstance(answer, asyncio.CancelledError):
                    raise answer
                log.warning(
                    "settlement_check_failed",
                    position_id=position.id,
                    venue=position.venue,
                    event_id=position.event_id,
                    error=str(answer),
                )
                continue
            if answer is None:
                continue
            won = position_won(position.outcome, answer)
            payout = position.shares * 1.0 if won else 0.0
            if self.ledger.settle(position.id, won, payout) is not None:
                settled += 1
        log.info("settlement_sweep", checked=len(snapshot), settled=settled)
        return settled

    async def _balance(self, venue: str) -> float:
        client = self.venues.get(venue)
        if client is None:
            return 0.0
        try:
            return float(await client.get_balance())
        except Exception as e:
            log.warning("balance_check_failed", venue=venue, error=str(e))
            return 0.0

    async def balances(self) -> tuple[float, float]:
        balance_a, balance_b = await asyncio.gather(self._balance(self.venue_a), self._balance(self.venue_b))
        log.info(
            "balances",
            venue_a=self.venue_a,
            balance_a=round(balance_a, 2),
            venue_b=self.venue_b,
            balance_b=round(balance_b, 2),
            total=round(balance_a + balance_b, 2),
        )
        return balance_a, balance_b

    def statistics(self) -> PositionStatistics:
        return self.ledger.statistics()
