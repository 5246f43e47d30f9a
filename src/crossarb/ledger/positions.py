"""Position ledger - the single source of truth for open exposure and realized P&L.

All access goes through one threading.Lock. The API is synchronous and does no
I/O, so the lock can never be held across an await: callers snapshot, release,
do their venue calls, then come back to commit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock

import structlog

from crossarb.models import Position, PositionStatistics, PositionStatus

log = structlog.get_logger(__name__)


class PositionLedger:
    """Positions keyed by generated id. Queries return copies."""

    def __init__(self) -> None:
        self._positions: dict[str, Position] = {}
        self._lock = Lock()

    def add(self, position: Position) -> None:
        with self._lock:
            if position.id in self._positions:
                raise ValueError(f"duplicate position id: {position.id}")
            self._positions[position.id] = position.model_copy()
        log.info(
            "position_opened",
            position_id=position.id,
            venue=position.venue,
            title=position.event_title,
            outcome=position.outcome,
            shares=round(position.shares, 4),
            price=position.price,
        )

    def get(self, position_id: str) -> Position | None:
        with self._lock:
            position = self._positions.get(position_id)
            return position.model_copy() if position else None

    def all_positions(self) -> list[Position]:
        with self._lock:
            return [p.model_copy() for p in self._positions.values()]

    def open_positions(self) -> list[Position]:
        with self._lock:
            return [p.model_copy() for p in self._positions.values() if p.status is PositionStatus.OPEN]

    def positions_by_venue(self, venue: str) -> list[Position]:
        with self._lock:
            return [p.model_copy() for p in self._positions.values() if p.venue == venue]

    def settle(self, position_id: str, won: bool, payout: float | None) -> float | None:
        """Move an open position to WON/LOST. Returns realized profit, or None if unknown or already settled."""
        with self._lock:
            position = self._positions.get(position_id)
            if position is None or position.status.is_terminal:
                return None
            profit = position.profit_if_won() if won else position.profit_if_lost()
            position.status = PositionStatus.WON if won else PositionStatus.LOST
            position.settled_at = datetime.now(timezone.utc)
            position.payout = payout
            position.profit = profit
            title = position.event_title
        log.info(
            "position_settled",
            position_id=position_id,
            title=title,
            result="won" if won else "lost",
            profit=round(profit, 4),
        )
        return profit

    def total_profit(self) -> float:
        with self._lock:
            return sum(p.profit for p in self._positions.values() if p.profit is not None)

    def profit_by_venue(self, venue: str) -> float:
        with self._lock:
            return sum(
                p.profit for p in self._positions.values() if p.venue == venue and p.profit is not None
            )

    def statistics(self) -> PositionStatistics:
        with self._lock:
            stats = PositionStatistics(total=len(self._positions))
            for p in self._positions.values():
                if p.status is PositionStatus.OPEN:
                    stats.open += 1
                elif p.status is PositionStatus.WON:
                    stats.won += 1
                else:
                    stats.lost += 1
                if p.profit is not None:
                    stats.total_profit += p.profit
        return stats

    def __len__(self) -> int:
        with self._lock:
            return len(self._positions)
