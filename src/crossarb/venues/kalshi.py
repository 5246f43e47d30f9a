"""Kalshi trade API v2 client. Prices on the wire are integer cents."""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from crossarb.matching.text import parse_resolution_date
from crossarb.models import Event, MarketQuote
from crossarb.venues.base import VenueClient, VenueError, VenueOrderError
from crossarb.venues.rate_limit import TokenBucket, backoff_on_429
from crossarb.venues.signing import RequestSigner

log = structlog.get_logger(__name__)

KALSHI_API_BASE = "https://api.elections.kalshi.com/trade-api/v2"
DEFAULT_TIMEOUT = 10.0
SETTLED_STATUSES = frozenset({"settled", "finalized", "determined"})


def _cents(value: Any) -> float:
    try:
        return float(value or 0) / 100.0
    except (TypeError, ValueError):
        return 0.0


def parse_event(raw: dict[str, Any]) -> Event:
    """Convert a Kalshi event (optionally with nested markets) to a canonical Event."""
    markets = raw.get("markets") or []
    expiry = None
    if markets:
        first = markets[0]
        expiry = first.get("expected_expiration_time") or first.get("close_time")
    expiry = expiry or raw.get("expected_expiration_time") or raw.get("strike_date")
    return Event(
        venue=KalshiClient.venue_id,
        event_id=str(raw.get("event_ticker", "")),
        title=raw.get("title") or "",
        description=raw.get("sub_title") or raw.get("subtitle") or "",
        resolution_date=parse_resolution_date(expiry),
        category=raw.get("category"),
    )


def parse_quote(markets: list[dict[str, Any]]) -> MarketQuote:
    """Ask prices of the event's binary market; depth is summed volume."""
    if not markets:
        return MarketQuote.empty()
    market = markets[0]
    liquidity = sum(float(m.get("volume") or 0) for m in markets)
    return MarketQuote(
        yes=min(_cents(market.get("yes_ask")), 1.0),
        no=min(_cents(market.get("no_ask")), 1.0),
        liquidity=liquidity,
    )


def parse_settlement(markets: list[dict[str, Any]]) -> bool | None:
    if not markets:
        return None
    market = markets[0]
    if str(market.get("status", "")).lower() not in SETTLED_STATUSES:
        return None
    result = str(market.get("result", "")).lower()
    if result == "yes":
        return True
    if result == "no":
        return False
    return None


class KalshiClient(VenueClient):
    """Async Kalshi REST client with token-bucket rate limiting and 429 backoff."""

    venue_id = "kalshi"

    def __init__(
        self,
        api_key: str,
        signer: RequestSigner | None = None,
        base_url: str = KALSHI_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
        rate_per_sec: float = 10.0,
        max_retries: int = 3,
        page_limit: int = 200,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.signer = signer
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.page_limit = page_limit
        self._path_prefix = urlsplit(self.base_url).path
        self._bucket = TokenBucket(rate=rate_per_sec)
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    def _auth_headers(self, method: str, path: str) -> dict[str, str]:
        timestamp = str(int(time.time() * 1000))
        headers = {"KALSHI-ACCESS-KEY": self.api_key, "KALSHI-ACCESS-TIMESTAMP": timestamp}
        if self.signer is not None:
            headers["KALSHI-ACCESS-SIGNATURE"] = self.signer(timestamp, method, self._path_prefix + path)
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        retries = 0
        while True:
            await self._bucket.acquire()
            try:
                resp = await self._http.request(method, path, headers=self._auth_headers(method, path), **kwargs)
            except httpx.HTTPError as e:
                raise VenueError(f"kalshi {method} {path} failed: {e}") from e
            if resp.status_code != 429 or retries >= self.max_retries:
                return resp
            delay = backoff_on_429(retries)
            log.warning("rate_limited", venue=self.venue_id, path=path, delay=delay)
            retries += 1
            await asyncio.sleep(delay)

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        resp = await self._request("GET", path, params=params)
        if resp.is_error:
            raise VenueError(f"kalshi GET {path}: {resp.status_code} {resp.text}")
        try:
            return resp.json()
        except ValueError as e:
            raise VenueError(f"kalshi GET {path}: invalid JSON") from e

    async def _markets(self, event_ticker: str) -> list[dict[str, Any]]:
        data = await self._get_json("/markets", params={"event_ticker": event_ticker})
        return list(data.get("markets") or [])

    async def fetch_events(self) -> list[Event]:
        data = await self._get_json(
            "/events",
            params={"status": "open", "limit": self.page_limit, "with_nested_markets": "true"},
        )
        events = []
        for row in data.get("events") or []:
            try:
                events.append(parse_event(row))
            except Exception as e:
                log.warning("skip_event", venue=self.venue_id, event_ticker=row.get("event_ticker"), error=str(e))
        return events

    async def fetch_quote(self, event_id: str) -> MarketQuote:
        return parse_quote(await self._markets(event_id))

    async def place_order(
        self, event_id: str, outcome: str, notional_usd: float, limit_price: float
    ) -> str | None:
        """Buy int(notional / price) whole contracts at the limit price.

        Kalshi trades whole contracts, so the fill is truncated: 100 USD at 0.39
        buys 256 contracts, while the ledger books notional / price = 256.41
        shares. Realized profit on a win is overstated by that fraction.
        """
        try:
            markets = await self._markets(event_id)
        except VenueError as e:
            raise VenueOrderError(str(e)) from e
        ticker = markets[0].get("ticker") if markets else None
        if not ticker:
            raise VenueOrderError(f"kalshi event {event_id} has no tradable market")
        count = int(notional_usd / limit_price)
        if count < 1:
            raise VenueOrderError(f"kalshi order too small: ${notional_usd:.2f} at {limit_price:.2f}")
        side = outcome.lower()
        body = {
            "ticker": ticker,
            "action": "buy",
            "side": side,
            "count": count,
            "type": "limit",
            f"{side}_price": int(round(limit_price * 100)),
            "client_order_id": str(uuid.uuid4()),
        }
        log.info("order_submitting", venue=self.venue_id, event_id=event_id, outcome=outcome, count=count, price=limit_price)
        resp = await self._request("POST", "/portfolio/orders", json=body)
        if resp.is_error:
            raise VenueOrderError(f"kalshi order rejected: {resp.status_code} {resp.text}")
        try:
            order = resp.json().get("order") or {}
        except ValueError as e:
            raise VenueOrderError("kalshi order response is not JSON") from e
        return order.get("order_id")

    async def check_settlement(self, event_id: str) -> bool | None:
        return parse_settlement(await self._markets(event_id))

    async def get_balance(self) -> float:
        data = await self._get_json("/portfolio/balance")
        return _cents(data.get("balance"))

    async def aclose(self) -> None:
        await self._http.aclose()
