"""Polymarket client - Gamma API discovery, quotes and settlement; orders via an injected wallet."""

from __future__ import annotations

import json
from typing import Any, Protocol

import httpx
import structlog

from crossarb.matching.text import parse_resolution_date
from crossarb.models import Event, MarketQuote
from crossarb.venues.base import VenueClient, VenueError, VenueOrderError

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"
DEFAULT_TIMEOUT = 10.0


class PolymarketWallet(Protocol):
    """Signs and submits CLOB orders and reads the USDC balance. Lives outside this package."""

    async def submit_order(self, token_id: str, side: str, size: float, price: float) -> str | None: ...
    async def usdc_balance(self) -> float: ...


def _json_list(value: str | list[Any] | None) -> list[Any]:
    """Gamma returns some list fields as JSON-encoded strings."""
    if isinstance(value, list):
        return value
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def _outcome_prices(raw: dict[str, Any]) -> dict[str, float]:
    names = [str(n).upper() for n in _json_list(raw.get("outcomes"))]
    prices = []
    for p in _json_list(raw.get("outcomePrices")):
        try:
            prices.append(float(p))
        except (TypeError, ValueError):
            prices.append(0.0)
    return dict(zip(names, prices))


def parse_event(raw: dict[str, Any]) -> Event:
    """Convert a Gamma market object to a canonical Event."""
    tags = tuple(
        str(t.get("label") if isinstance(t, dict) else t) for t in (raw.get("tags") or [])
    )
    return Event(
        venue=PolymarketClient.venue_id,
        event_id=str(raw.get("id", "")),
        title=raw.get("question") or raw.get("title") or "",
        description=raw.get("description") or "",
        resolution_date=parse_resolution_date(raw.get("endDate") or raw.get("end_date_iso")),
        category=raw.get("category"),
        tags=tags,
    )


def parse_quote(raw: dict[str, Any]) -> MarketQuote:
    prices = _outcome_prices(raw)
    liquidity = float(raw.get("liquidityNum") or raw.get("liquidity") or 0)
    return MarketQuote(
        yes=min(max(prices.get("YES", 0.0), 0.0), 1.0),
        no=min(max(prices.get("NO", 0.0), 0.0), 1.0),
        liquidity=max(liquidity, 0.0),
    )


def parse_settlement(raw: dict[str, Any]) -> bool | None:
    """Closed market whose Yes price settled to 1 (or 0). None while open or ambiguous."""
    if not raw.get("closed"):
        return None
    prices = _outcome_prices(raw)
    yes = prices.get("YES")
    if yes is None:
        return None
    if yes >= 0.99:
        return True
    if yes <= 0.01:
        return False
    return None


class PolymarketClient(VenueClient):
    """Async Gamma API client. Order placement and balance need a PolymarketWallet."""

    venue_id = "polymarket"

    def __init__(
        self,
        base_url: str = GAMMA_API_BASE,
        wallet: PolymarketWallet | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        page_limit: int = 500,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.wallet = wallet
        self.page_limit = page_limit
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            resp = await self._http.get(path, params=params)
            resp.raise_for_status()
            return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise VenueError(f"polymarket GET {path} failed: {e}") from e

    async def _market(self, event_id: str) -> dict[str, Any]:
        data = await self._get(f"/markets/{event_id}")
        if not isinstance(data, dict):
            raise VenueError(f"polymarket market {event_id}: unexpected payload")
        return data

    async def fetch_events(self) -> list[Event]:
        data = await self._get("/markets", params={"closed": "false", "active": "true", "limit": self.page_limit})
        if isinstance(data, dict):
            data = data.get("data", [])
        events = []
        for row in data or []:
            if row.get("closed") is True or row.get("active") is False:
                continue
            try:
                events.append(parse_event(row))
            except Exception as e:
                log.warning("skip_market", venue=self.venue_id, market_id=row.get("id"), error=str(e))
        return events

    async def fetch_quote(self, event_id: str) -> MarketQuote:
        return parse_quote(await self._market(event_id))

    async def place_order(
        self, event_id: str, outcome: str, notional_usd: float, limit_price: float
    ) -> str | None:
        if self.wallet is None:
            raise VenueOrderError("polymarket wallet not configured")
        try:
            market = await self._market(event_id)
        except VenueError as e:
            raise VenueOrderError(str(e)) from e
        names = [str(n).upper() for n in _json_list(market.get("outcomes"))]
        token_ids = _json_list(market.get("clobTokenIds"))
        if outcome not in names or len(token_ids) != len(names):
            raise VenueOrderError(f"polymarket market {event_id} has no token for {outcome}")
        token_id = str(token_ids[names.index(outcome)])
        size = notional_usd / limit_price
        log.info(
            "order_submitting",
            venue=self.venue_id,
            event_id=event_id,
            outcome=outcome,
            size=round(size, 4),
            price=limit_price,
        )
        try:
            return await self.wallet.submit_order(token_id, "BUY", size, limit_price)
        except VenueOrderError:
            raise
        except Exception as e:
            raise VenueOrderError(f"polymarket order failed: {e}") from e

    async def check_settlement(self, event_id: str) -> bool | None:
        return parse_settlement(await self._market(event_id))

    async def get_balance(self) -> float:
        if self.wallet is None:
            raise VenueError("polymarket wallet not configured")
        return float(await self.wallet.usdc_balance())

    async def aclose(self) -> None:
        await self._http.aclose()
