"""scan and match commands: one pass against live venues, no orders."""

from __future__ import annotations

import asyncio

import typer

from crossarb.cli.common import bot_or_exit


def scan(ctx: typer.Context) -> None:
    """Fetch events and quotes once and print arbitrage opportunities."""
    bot = bot_or_exit(ctx.obj["settings"])

    async def _scan():
        try:
            events_a, events_b = await bot.fetch_events()
            return await bot.scan_for_opportunities(events_a, events_b)
        finally:
            await bot.aclose()

    opportunities = asyncio.run(_scan())
    for event_a, event_b, opp in opportunities:
        typer.echo(f"  {event_a.title[:60]}")
        typer.echo(
            f"    {opp.description}  cost={opp.total_cost:.4f}  net={opp.net_profit:.4f}  ROI={opp.roi_percent:.2f}%"
        )
        typer.echo(f"    {event_a.venue}:{event_a.event_id}  {event_b.venue}:{event_b.event_id}")
    typer.echo(f"Total: {len(opportunities)} opportunities")


def match(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Max pairs to print"),
) -> None:
    """Fetch events once and print matched cross-venue pairs with score breakdown."""
    bot = bot_or_exit(ctx.obj["settings"])

    async def _fetch():
        try:
            return await bot.fetch_events()
        finally:
            await bot.aclose()

    events_a, events_b = asyncio.run(_fetch())
    matches = bot.match(events_a, events_b)
    for event_a, event_b, conf in matches[:limit]:
        typer.echo(f"  {conf.overall_score:.3f}  {event_a.title[:50]}  <->  {event_b.title[:50]}")
        typer.echo(
            f"         text={conf.text_similarity:.2f} kw={conf.keyword_overlap:.2f} "
            f"date={conf.date_match} cat={conf.category_match} num={conf.number_match}"
        )
    typer.echo(f"Total: {len(matches)} matches ({len(events_a)} x {len(events_b)} events)")
