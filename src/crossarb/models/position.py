"""Position and its settlement state."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class PositionStatus(str, Enum):
    OPEN = "open"
    WON = "won"
    LOST = "lost"

    @property
    def is_terminal(self) -> bool:
        return self is not PositionStatus.OPEN


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_position_id(venue: str) -> str:
    return f"{venue}_{uuid.uuid4().hex[:8]}"


class Position(BaseModel):
    """Shares held on one venue for one outcome, tracked until settlement."""

    id: str
    venue: str
    event_id: str
    event_title: str = ""
    outcome: str = Field(..., pattern="^(YES|NO)$")
    shares: float = Field(..., ge=0)
    cost: float = Field(..., ge=0)
    price: float = Field(..., ge=0, le=1)
    order_id: str | None = None
    status: PositionStatus = PositionStatus.OPEN
    created_at: datetime = Field(default_factory=_utcnow)
    settled_at: datetime | None = None
    payout: float | None = None
    profit: float | None = None

    @classmethod
    def open(
        cls,
        venue: str,
        event_id: str,
        event_title: str,
        outcome: str,
        shares: float,
        cost: float,
        price: float,
        order_id: str | None = None,
    ) -> Position:
        return cls(
            id=new_position_id(venue),
            venue=venue,
            event_id=event_id,
            event_title=event_title,
            outcome=outcome,
            shares=shares,
            cost=cost,
            price=price,
            order_id=order_id,
        )

    def profit_if_won(self) -> float:
        # Each share pays $1.00
        return self.shares * 1.0 - self.cost

    def profit_if_lost(self) -> float:
        return -self.cost


@dataclass
class PositionStatistics:
    """Aggregate counts and realized P&L across the ledger."""

    total: int = 0
    open: int = 0
    won: int = 0
    lost: int = 0
    total_profit: float = 0.0

    def as_dict(self) -> dict[str, float | int]:
        return {
            "total": self.total,
            "open": self.open,
            "won": self.won,
            "lost": self.lost,
            "total_profit": round(self.total_profit, 4),
        }
