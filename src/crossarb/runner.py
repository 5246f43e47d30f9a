"""Periodic driver: scan-and-execute on one cadence, settlement sweeps on another."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from crossarb.bot import ArbitrageBot

log = structlog.get_logger(__name__)


class ArbitrageRunner:
    """Runs scan and settlement loops until stop_event is set. Scans never overlap."""

    def __init__(
        self,
        bot: ArbitrageBot,
        notional_usd: float = 100.0,
        scan_interval_sec: float = 60.0,
        settlement_interval_sec: float = 300.0,
        dry_run: bool = False,
    ) -> None:
        self.bot = bot
        self.notional_usd = notional_usd
        self.scan_interval_sec = scan_interval_sec
        self.settlement_interval_sec = settlement_interval_sec
        self.dry_run = dry_run
        self.scans = 0
        self.trades = 0

    async def scan_once(self) -> int:
        """Fetch, scan and (unless dry_run) execute. Returns opportunities found."""
        events_a, events_b = await self.bot.fetch_events()
        opportunities = await self.bot.scan_for_opportunities(events_a, events_b)
        self.scans += 1
        if self.dry_run:
            return len(opportunities)
        for event_a, event_b, opportunity in opportunities:
            result = await self.bot.execute_arbitrage(opportunity, event_a, event_b, self.notional_usd)
            self.trades += 1
            if result.success:
                log.info("trade_succeeded", title=event_a.title, order_id_a=result.order_id_a, order_id_b=result.order_id_b)
            else:
                log.warning("trade_failed", title=event_a.title, error=result.error)
        return len(opportunities)

    async def settle_once(self) -> int:
        settled = await self.bot.reconcile_settlements()
        if settled:
            log.info("statistics", **self.bot.get_statistics().as_dict())
            await self.bot.get_balances()
        else:
            log.info("no_new_settlements")
        return settled

    async def _loop(
        self, name: str, interval: float, step: Callable[[], Awaitable[int]], stop: asyncio.Event
    ) -> None:
        while not stop.is_set():
            try:
                await step()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error("cycle_failed", loop=name, error=str(e))
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        stop = stop_event or asyncio.Event()
        log.info(
            "runner_started",
            scan_interval_sec=self.scan_interval_sec,
            settlement_interval_sec=self.settlement_interval_sec,
            dry_run=self.dry_run,
        )
        await asyncio.gather(
            self._loop("scan", self.scan_interval_sec, self.scan_once, stop),
            self._loop("settlement", self.settlement_interval_sec, self.settle_once, stop),
        )
        log.info("runner_stopped", scans=self.scans, trades=self.trades)
