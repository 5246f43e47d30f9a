"""Abstract venue protocol consumed by the scanner, coordinator and reconciler."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping

import structlog

from crossarb.models import Event, MarketQuote

log = structlog.get_logger(__name__)


class VenueError(Exception):
    """A venue request failed (transport, HTTP status, malformed payload)."""


class VenueOrderError(VenueError):
    """The venue rejected or could not accept an order."""


class VenueClient(ABC):
    """One prediction-market venue. Implement for each exchange."""

    venue_id: str = ""

    @abstractmethod
    async def fetch_events(self) -> list[Event]:
        """Return open events as canonical Event models."""
        ...

    @abstractmethod
    async def fetch_quote(self, event_id: str) -> MarketQuote:
        """Return the current Yes/No quote for an event."""
        ...

    @abstractmethod
    async def place_order(
        self, event_id: str, outcome: str, notional_usd: float, limit_price: float
    ) -> str | None:
        """Buy `outcome` for notional_usd at no worse than limit_price. Return the venue order id."""
        ...

    @abstractmethod
    async def check_settlement(self, event_id: str) -> bool | None:
        """True if resolved Yes, False if resolved No, None while unresolved."""
        ...

    @abstractmethod
    async def get_balance(self) -> float:
        """Available balance in USD."""
        ...

    async def aclose(self) -> None:
        """Release network resources. Optional."""
        pass


class VenueQuoteFetcher:
    """Quote fetcher for the scanner: degrades venue failures to an empty quote."""

    def __init__(self, venues: Mapping[str, VenueClient]) -> None:
        self.venues = venues

    async def __call__(self, event_id: str, venue: str) -> MarketQuote:
        client = self.venues.get(venue)
        if client is None:
            log.warning("quote_unknown_venue", venue=venue, event_id=event_id)
            return MarketQuote.empty()
        try:
            return await client.fetch_quote(event_id)
        except VenueError as e:
            log.warning("quote_fetch_failed", venue=venue, event_id=event_id, error=str(e))
            return MarketQuote.empty()
