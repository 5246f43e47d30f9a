"""run command: continuous scan/execute and settlement loops."""

from __future__ import annotations

import asyncio
import signal
import sys

import typer

from crossarb.cli.common import bot_or_exit
from crossarb.runner import ArbitrageRunner


def run(
    ctx: typer.Context,
    dry_run: bool = typer.Option(False, "--dry-run", help="Scan and report, never place orders"),
    notional: float = typer.Option(None, "--notional", "-n", help="USD per leg (overrides config)"),
) -> None:
    """Scan for arbitrage and execute it; reconcile settlements on a separate cadence."""
    settings = ctx.obj["settings"]
    bot = bot_or_exit(settings, require_credentials=not dry_run)
    runner = ArbitrageRunner(
        bot,
        notional_usd=notional or settings.notional_usd,
        scan_interval_sec=settings.scan_interval_sec,
        settlement_interval_sec=settings.settlement_interval_sec,
        dry_run=dry_run,
    )
    stop_event = asyncio.Event()

    def shutdown() -> None:
        stop_event.set()

    loop = asyncio.new_event_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, shutdown)
        loop.add_signal_handler(signal.SIGTERM, shutdown)
    try:
        typer.echo("Starting arbitrage runner (Ctrl+C to stop)...")
        loop.run_until_complete(runner.run(stop_event=stop_event))
    except KeyboardInterrupt:
        pass
    finally:
        loop.run_until_complete(bot.aclose())
        loop.close()
    stats = bot.get_statistics()
    typer.echo(
        f"Stopped. Positions: {stats.total}  Open: {stats.open}  Won: {stats.won}  "
        f"Lost: {stats.lost}  Profit: ${stats.total_profit:.2f}"
    )
