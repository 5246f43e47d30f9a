"""Category, timeframe and liquidity filters."""

from datetime import timedelta

from crossarb.arbitrage import MarketFilters
from crossarb.models import MarketQuote
from fakes import NOW, make_event


def test_timeframe_window():
    f = MarketFilters(max_hours_until_resolution=24)
    assert f.is_within_timeframe(NOW + timedelta(hours=1), NOW)
    assert f.is_within_timeframe(NOW + timedelta(minutes=5), NOW)
    assert not f.is_within_timeframe(NOW + timedelta(minutes=4), NOW)
    assert not f.is_within_timeframe(NOW + timedelta(hours=25), NOW)
    assert not f.is_within_timeframe(NOW - timedelta(hours=1), NOW)
    assert not f.is_within_timeframe(None, NOW)


def test_category_by_field_or_keywords():
    f = MarketFilters(categories=["crypto", "sports"])
    assert f.matches_category(make_event("kalshi", "1", "Anything", category="Crypto Daily"))
    assert f.matches_category(make_event("kalshi", "2", "Will BTC close green?"))
    assert f.matches_category(make_event("kalshi", "3", "Celtics vs Knicks", description="NBA regular season game"))
    assert not f.matches_category(make_event("kalshi", "4", "Best picture at the Oscars?", category="Culture"))
    assert MarketFilters(categories=[]).matches_category(make_event("kalshi", "5", "Best picture at the Oscars?"))


def test_filter_events_applies_both():
    f = MarketFilters()
    keep = make_event("kalshi", "1", "Bitcoin above $90k?", resolution_date=NOW + timedelta(hours=3))
    too_late = make_event("kalshi", "2", "Bitcoin above $90k?", resolution_date=NOW + timedelta(days=3))
    off_topic = make_event("kalshi", "3", "Oscar best picture", resolution_date=NOW + timedelta(hours=3))
    assert f.filter_events([keep, too_late, off_topic], NOW) == [keep]


def test_liquidity_excludes_degenerate_quote():
    f = MarketFilters(min_liquidity=100)
    assert f.has_liquidity(MarketQuote(yes=0.5, no=0.5, liquidity=100))
    assert not f.has_liquidity(MarketQuote(yes=0.5, no=0.5, liquidity=99))
    assert not MarketFilters(min_liquidity=0).has_liquidity(MarketQuote.empty())


def test_timeframe_accepts_naive_timestamps():
    filters = MarketFilters()
    naive = make_event("kalshi", "K", "Bitcoin above $90k?", resolution_date=(NOW + timedelta(hours=2)).replace(tzinfo=None), category="crypto")
    assert filters.filter_events([naive], NOW) == [naive]
    assert filters.is_within_timeframe(NOW + timedelta(hours=2), now=NOW.replace(tzinfo=None))
