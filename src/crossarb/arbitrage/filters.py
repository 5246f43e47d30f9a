"""Category, timeframe and liquidity filters applied around matching."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from crossarb.models import Event, MarketQuote
from crossarb.models.event import as_utc

CRYPTO_KEYWORDS = (
    "bitcoin", "btc", "ethereum", "eth", "crypto", "cryptocurrency",
    "price", "above", "below", "reach", "hit", "surpass",
)
SPORTS_KEYWORDS = (
    "game", "match", "team", "player", "score", "win", "lose",
    "nfl", "nba", "mlb", "soccer", "football", "basketball",
)
KEYWORDS_BY_CATEGORY = {"crypto": CRYPTO_KEYWORDS, "sports": SPORTS_KEYWORDS}

MIN_TIME_TO_RESOLUTION = timedelta(minutes=5)


class MarketFilters:
    """Keeps short-dated events in the configured categories with enough depth."""

    def __init__(
        self,
        categories: list[str] | tuple[str, ...] = ("crypto", "sports"),
        max_hours_until_resolution: float = 24,
        min_liquidity: float = 100.0,
    ) -> None:
        self.categories = [c.lower() for c in categories]
        self.max_hours_until_resolution = max_hours_until_resolution
        self.min_liquidity = min_liquidity

    def is_within_timeframe(self, resolution_date: datetime | None, now: datetime | None = None) -> bool:
        if resolution_date is None:
            return False
        now = as_utc(now) if now else datetime.now(timezone.utc)
        remaining = as_utc(resolution_date) - now
        return MIN_TIME_TO_RESOLUTION <= remaining <= timedelta(hours=self.max_hours_until_resolution)

    def matches_category(self, event: Event) -> bool:
        if not self.categories:
            return True
        category = (event.category or "").lower()
        if any(cat in category for cat in self.categories):
            return True
        text = f"{event.title} {event.description}".lower()
        for cat in self.categories:
            keywords = KEYWORDS_BY_CATEGORY.get(cat, ())
            if any(kw in text for kw in keywords):
                return True
        return False

    def filter_events(self, events: list[Event], now: datetime | None = None) -> list[Event]:
        now = now or datetime.now(timezone.utc)
        return [e for e in events if self.matches_category(e) and self.is_within_timeframe(e.resolution_date, now)]

    def has_liquidity(self, quote: MarketQuote) -> bool:
        return quote.liquidity > 0 and quote.liquidity >= self.min_liquidity
