"""Venue clients against mocked HTTP, plus quote degradation."""

import asyncio
import base64
import json
from datetime import datetime, timezone

import httpx
import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding

from crossarb.models import MarketQuote
from crossarb.venues import VenueError, VenueOrderError, VenueQuoteFetcher
from crossarb.venues import kalshi as kalshi_api
from crossarb.venues import polymarket as polymarket_api
from crossarb.venues.kalshi import KalshiClient
from crossarb.venues.polymarket import PolymarketClient
from crossarb.venues.rate_limit import TokenBucket, backoff_on_429
from crossarb.venues.signing import load_private_key, rsa_pss_signer
from fakes import FakeVenue, RecordingWallet

GAMMA_MARKET = {
    "id": "512345",
    "question": "Bitcoin above $100,000 on March 1, 2026?",
    "description": "Resolves Yes if BTC/USD trades above $100,000.",
    "endDate": "2026-03-01T18:00:00Z",
    "category": "Crypto",
    "outcomes": '["Yes", "No"]',
    "outcomePrices": '["0.41", "0.58"]',
    "clobTokenIds": '["111", "222"]',
    "liquidityNum": 2500.5,
    "active": True,
    "closed": False,
}

KALSHI_MARKET = {
    "ticker": "KXBTC-26MAR01-T100000",
    "event_ticker": "KXBTC-26MAR01",
    "yes_ask": 40,
    "no_ask": 62,
    "volume": 1200,
    "status": "active",
    "close_time": "2026-03-01T17:00:00Z",
}


def _gamma(handler):
    return PolymarketClient(transport=httpx.MockTransport(handler))


def _kalshi(handler, **kwargs):
    return KalshiClient("key-id", transport=httpx.MockTransport(handler), **kwargs)


# --- Polymarket ---


def test_polymarket_parse_event():
    event = polymarket_api.parse_event(GAMMA_MARKET)
    assert event.venue == "polymarket"
    assert event.event_id == "512345"
    assert event.title.startswith("Bitcoin above")
    assert event.resolution_date == datetime(2026, 3, 1, 18, tzinfo=timezone.utc)
    assert event.category == "Crypto"


def test_polymarket_parse_quote_and_settlement():
    quote = polymarket_api.parse_quote(GAMMA_MARKET)
    assert (quote.yes, quote.no, quote.liquidity) == (0.41, 0.58, 2500.5)
    assert polymarket_api.parse_settlement(GAMMA_MARKET) is None
    closed = dict(GAMMA_MARKET, closed=True, outcomePrices='["1", "0"]')
    assert polymarket_api.parse_settlement(closed) is True
    closed_no = dict(GAMMA_MARKET, closed=True, outcomePrices='["0", "1"]')
    assert polymarket_api.parse_settlement(closed_no) is False
    disputed = dict(GAMMA_MARKET, closed=True, outcomePrices='["0.5", "0.5"]')
    assert polymarket_api.parse_settlement(disputed) is None


def test_polymarket_fetch_events_skips_closed():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["closed"] = request.url.params.get("closed")
        return httpx.Response(200, json=[GAMMA_MARKET, dict(GAMMA_MARKET, id="9", closed=True)])

    async def run():
        client = _gamma(handler)
        try:
            return await client.fetch_events()
        finally:
            await client.aclose()

    events = asyncio.run(run())
    assert [e.event_id for e in events] == ["512345"]
    assert seen == {"path": "/markets", "closed": "false"}


def test_polymarket_http_error_raises_venue_error():
    async def run():
        client = _gamma(lambda request: httpx.Response(503, text="down"))
        try:
            await client.fetch_quote("512345")
        finally:
            await client.aclose()

    with pytest.raises(VenueError):
        asyncio.run(run())


def test_polymarket_order_uses_outcome_token():
    wallet = RecordingWallet()

    async def run():
        client = PolymarketClient(wallet=wallet, transport=httpx.MockTransport(lambda r: httpx.Response(200, json=GAMMA_MARKET)))
        try:
            return await client.place_order("512345", "NO", 58.0, 0.58), await client.get_balance()
        finally:
            await client.aclose()

    order_id, balance = asyncio.run(run())
    assert order_id == "0xabc"
    assert balance == 42.0
    token_id, side, size, price = wallet.orders[0]
    assert (token_id, side, price) == ("222", "BUY", 0.58)
    assert size == pytest.approx(100.0)


def test_polymarket_without_wallet_cannot_trade():
    async def run():
        client = _gamma(lambda r: httpx.Response(200, json=GAMMA_MARKET))
        try:
            await client.place_order("512345", "YES", 10.0, 0.41)
        finally:
            await client.aclose()

    with pytest.raises(VenueOrderError):
        asyncio.run(run())


# --- Kalshi ---


def test_kalshi_parsers():
    event = kalshi_api.parse_event(
        {"event_ticker": "KXBTC-26MAR01", "title": "Bitcoin price", "category": "Crypto", "markets": [KALSHI_MARKET]}
    )
    assert event.event_id == "KXBTC-26MAR01"
    assert event.resolution_date == datetime(2026, 3, 1, 17, tzinfo=timezone.utc)

    quote = kalshi_api.parse_quote([KALSHI_MARKET])
    assert quote.yes == pytest.approx(0.40)
    assert quote.no == pytest.approx(0.62)
    assert quote.liquidity == 1200
    assert kalshi_api.parse_quote([]) == MarketQuote.empty()

    assert kalshi_api.parse_settlement([KALSHI_MARKET]) is None
    assert kalshi_api.parse_settlement([dict(KALSHI_MARKET, status="settled", result="yes")]) is True
    assert kalshi_api.parse_settlement([dict(KALSHI_MARKET, status="finalized", result="no")]) is False
    assert kalshi_api.parse_settlement([dict(KALSHI_MARKET, status="settled", result="")]) is None


def test_kalshi_order_priced_in_cents():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.method == "GET":
            return httpx.Response(200, json={"markets": [KALSHI_MARKET]})
        return httpx.Response(201, json={"order": {"order_id": "ord-1", "status": "resting"}})

    signed = []

    def signer(timestamp, method, path):
        signed.append((method, path))
        return "sig"

    async def run():
        client = _kalshi(handler, signer=signer)
        try:
            return await client.place_order("KXBTC-26MAR01", "YES", 100.0, 0.40)
        finally:
            await client.aclose()

    assert asyncio.run(run()) == "ord-1"
    post = requests[-1]
    assert post.url.path.endswith("/portfolio/orders")
    body = json.loads(post.content)
    assert body["ticker"] == "KXBTC-26MAR01-T100000"
    assert (body["side"], body["action"], body["count"], body["yes_price"]) == ("yes", "buy", 250, 40)
    assert post.headers["KALSHI-ACCESS-KEY"] == "key-id"
    assert post.headers["KALSHI-ACCESS-SIGNATURE"] == "sig"
    assert signed[-1] == ("POST", "/trade-api/v2/portfolio/orders")


def test_kalshi_order_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"markets": [KALSHI_MARKET]})
        return httpx.Response(400, json={"error": "insufficient_balance"})

    async def run():
        client = _kalshi(handler)
        try:
            await client.place_order("KXBTC-26MAR01", "NO", 100.0, 0.62)
        finally:
            await client.aclose()

    with pytest.raises(VenueOrderError):
        asyncio.run(run())


def test_kalshi_balance_and_rate_limited():
    async def run():
        ok = _kalshi(lambda r: httpx.Response(200, json={"balance": 12345}))
        limited = _kalshi(lambda r: httpx.Response(429), max_retries=0)
        try:
            balance = await ok.get_balance()
            with pytest.raises(VenueError):
                await limited.get_balance()
            return balance
        finally:
            await ok.aclose()
            await limited.aclose()

    assert asyncio.run(run()) == pytest.approx(123.45)


def test_token_bucket_and_backoff():
    bucket = TokenBucket(rate=1.0, capacity=2)
    assert bucket.try_take()
    assert bucket.try_take()
    assert not bucket.try_take()
    assert 0 < bucket.shortfall_sec() <= 1.0
    assert backoff_on_429(0) == 1.0
    assert backoff_on_429(3) == 8.0
    assert backoff_on_429(10) == 30.0
    with pytest.raises(ValueError):
        TokenBucket(rate=1.0, capacity=0)


def test_token_bucket_acquire_waits_for_refill():
    bucket = TokenBucket(rate=50.0, capacity=1)

    async def run():
        loop = asyncio.get_running_loop()
        start = loop.time()
        for _ in range(3):
            await bucket.acquire()
        return loop.time() - start

    assert asyncio.run(run()) >= 0.03


# --- Quote fetcher ---


def test_quote_fetcher_degrades_to_empty():
    venue = FakeVenue("kalshi")
    venue.quotes["K1"] = MarketQuote(yes=0.4, no=0.6, liquidity=10)
    fetch = VenueQuoteFetcher({"kalshi": venue})

    async def run():
        return await fetch("K1", "kalshi"), await fetch("missing", "kalshi"), await fetch("K1", "other")

    found, missing, unknown = asyncio.run(run())
    assert found.yes == 0.4
    assert missing == MarketQuote.empty()
    assert unknown == MarketQuote.empty()


def test_rsa_pss_signer_verifies(rsa_key, rsa_pem):
    sign = rsa_pss_signer(load_private_key(rsa_pem))
    signature = sign("1700000000000", "POST", "/trade-api/v2/portfolio/orders")
    rsa_key.public_key().verify(
        base64.b64decode(signature),
        b"1700000000000POST/trade-api/v2/portfolio/orders",
        padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.DIGEST_LENGTH),
        hashes.SHA256(),
    )


def test_load_private_key_rejects_garbage():
    with pytest.raises(ValueError):
        load_private_key("not a key")


def test_kalshi_order_truncates_to_whole_contracts():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json={"markets": [KALSHI_MARKET]})
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"order": {"order_id": "ord-2"}})

    async def run():
        client = _kalshi(handler)
        try:
            await client.place_order("KXBTC-26MAR01", "NO", 100.0, 0.39)
            with pytest.raises(VenueOrderError):
                await client.place_order("KXBTC-26MAR01", "NO", 0.30, 0.39)
        finally:
            await client.aclose()

    asyncio.run(run())
    assert len(bodies) == 1
    assert (bodies[0]["count"], bodies[0]["no_price"]) == (256, 39)
