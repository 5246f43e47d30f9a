"""ArbitrageBot - the scan / execute / reconcile surface driven by the runner or CLI."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog

from crossarb.arbitrage import ArbitrageEvaluator, Fees, MarketFilters
from crossarb.arbitrage.evaluator import DEFAULT_FEE_RATE
from crossarb.config import Settings
from crossarb.execution import ExecutionCoordinator, PartialFillHandler
from crossarb.ledger import PositionLedger
from crossarb.matching import EventMatcher, MatchConfidence
from crossarb.models import ArbitrageOpportunity, Event, MarketQuote, PositionStatistics, TradeResult
from crossarb.settlement import SettlementReconciler
from crossarb.venues import VenueClient, VenueError, VenueQuoteFetcher

log = structlog.get_logger(__name__)

# fetcher(event_id, venue) -> quote
QuoteFetcher = Callable[[str, str], Awaitable[MarketQuote]]
Opportunity = tuple[Event, Event, ArbitrageOpportunity]


class ArbitrageBot:
    """Wires matcher, evaluator, coordinator, ledger and reconciler for one venue pair.

    Venue A is the first leg of every hedge (Yes first under YES_A_NO_B).
    """

    def __init__(
        self,
        venue_a: VenueClient,
        venue_b: VenueClient,
        matcher: EventMatcher | None = None,
        evaluator: ArbitrageEvaluator | None = None,
        filters: MarketFilters | None = None,
        ledger: PositionLedger | None = None,
        partial_fill_handler: PartialFillHandler | None = None,
    ) -> None:
        if venue_a.venue_id == venue_b.venue_id:
            raise ValueError(f"venues must differ, got {venue_a.venue_id!r} twice")
        self.venue_a = venue_a
        self.venue_b = venue_b
        self.venues: dict[str, VenueClient] = {venue_a.venue_id: venue_a, venue_b.venue_id: venue_b}
        self.matcher = matcher or EventMatcher()
        self.evaluator = evaluator or ArbitrageEvaluator(venue_a=venue_a.venue_id, venue_b=venue_b.venue_id)
        self.filters = filters or MarketFilters()
        self.ledger = ledger or PositionLedger()
        self.coordinator = ExecutionCoordinator(self.venues, self.ledger, partial_fill_handler)
        self.reconciler = SettlementReconciler(
            self.venues, self.ledger, venue_a=venue_a.venue_id, venue_b=venue_b.venue_id
        )
        self.quote_fetcher = VenueQuoteFetcher(self.venues)

    @classmethod
    def from_settings(cls, settings: Settings, venue_a: VenueClient, venue_b: VenueClient) -> ArbitrageBot:
        fee_rates = {"kalshi": settings.kalshi_fee_rate, "polymarket": settings.polymarket_fee_rate}
        fees = Fees(
            venue_a=fee_rates.get(venue_a.venue_id, DEFAULT_FEE_RATE),
            venue_b=fee_rates.get(venue_b.venue_id, DEFAULT_FEE_RATE),
        )
        return cls(
            venue_a,
            venue_b,
            matcher=EventMatcher(settings.similarity_threshold),
            evaluator=ArbitrageEvaluator(
                settings.min_profit_threshold, fees, venue_a=venue_a.venue_id, venue_b=venue_b.venue_id
            ),
            filters=MarketFilters(
                settings.categories, settings.max_hours_until_resolution, settings.min_liquidity
            ),
        )

    async def _events(self, client: VenueClient) -> list[Event]:
        try:
            return await client.fetch_events()
        except VenueError as e:
            log.warning("events_fetch_failed", venue=client.venue_id, error=str(e))
            return []

    async def fetch_events(self) -> tuple[list[Event], list[Event]]:
        """Both venues' events, fetched concurrently. A failing venue yields []."""
        events_a, events_b = await asyncio.gather(self._events(self.venue_a), self._events(self.venue_b))
        log.info("events_fetched", count_a=len(events_a), count_b=len(events_b))
        return events_a, events_b

    def match(
        self, events_a: list[Event], events_b: list[Event], now: datetime | None = None
    ) -> list[tuple[Event, Event, MatchConfidence]]:
        """Filter both sides, then match."""
        filtered_a = self.filters.filter_events(events_a, now)
        filtered_b = self.filters.filter_events(events_b, now)
        if not filtered_a or not filtered_b:
            return []
        return self.matcher.find_matches(filtered_a, filtered_b)

    async def scan_for_opportunities(
        self,
        events_a: list[Event],
        events_b: list[Event],
        quote_fetcher: QuoteFetcher | None = None,
        now: datetime | None = None,
    ) -> list[Opportunity]:
        fetch = quote_fetcher or self.quote_fetcher
        matches = self.match(events_a, events_b, now)
        opportunities: list[Opportunity] = []
        for event_a, event_b, confidence in matches:
            quote_a, quote_b = await asyncio.gather(
                fetch(event_a.event_id, self.venue_a.venue_id),
                fetch(event_b.event_id, self.venue_b.venue_id),
            )
            if not (self.filters.has_liquidity(quote_a) and self.filters.has_liquidity(quote_b)):
                continue
            for event, quote in ((event_a, quote_a), (event_b, quote_b)):
                if not quote.is_consistent:
                    log.warning(
                        "quote_inconsistent",
                        venue=event.venue,
                        event_id=event.event_id,
                        yes=quote.yes,
                        no=quote.no,
                    )
            opportunity = self.evaluator.evaluate(quote_a, quote_b)
            if opportunity is not None:
                log.info(
                    "opportunity_found",
                    title=event_a.title,
                    strategy=opportunity.description,
                    net_profit=round(opportunity.net_profit, 4),
                    roi_percent=round(opportunity.roi_percent, 2),
                    match_score=round(confidence.overall_score, 3),
                )
                opportunities.append((event_a, event_b, opportunity))
        log.info("scan_complete", matches=len(matches), opportunities=len(opportunities))
        return opportunities

    async def execute_arbitrage(
        self,
        opportunity: ArbitrageOpportunity,
        event_a: Event,
        event_b: Event,
        notional_usd: float,
    ) -> TradeResult:
        return await self.coordinator.execute(opportunity, event_a, event_b, notional_usd)

    async def reconcile_settlements(self) -> int:
        return await self.reconciler.reconcile()

    def get_statistics(self) -> PositionStatistics:
        return self.reconciler.statistics()

    async def get_balances(self) -> tuple[float, float]:
        return await self.reconciler.balances()

    async def aclose(self) -> None:
        await asyncio.gather(self.venue_a.aclose(), self.venue_b.aclose())
