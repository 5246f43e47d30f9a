"""Event, MarketQuote - canonical venue-agnostic entities."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

QUOTE_SUM_TOLERANCE = 0.01


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Event(BaseModel):
    """Binary-outcome event listed on one venue."""

    model_config = ConfigDict(frozen=True)

    venue: str
    event_id: str
    title: str
    description: str = ""
    resolution_date: datetime | None = None  # UTC
    category: str | None = None
    tags: tuple[str, ...] = ()

    @field_validator("resolution_date")
    @classmethod
    def _resolution_date_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class MarketQuote(BaseModel):
    """Current Yes/No price (cost per $1 payout) and reported depth."""

    model_config = ConfigDict(frozen=True)

    yes: float = Field(..., ge=0, le=1, description="Yes price in [0, 1]")
    no: float = Field(..., ge=0, le=1, description="No price in [0, 1]")
    liquidity: float = Field(0.0, ge=0)

    @classmethod
    def empty(cls) -> MarketQuote:
        """Zero quote used when a fetch fails; the liquidity filter drops it."""
        return cls(yes=0.0, no=0.0, liquidity=0.0)

    @property
    def is_consistent(self) -> bool:
        """Yes + No within one cent of $1. Advisory only, never enforced."""
        return abs(self.yes + self.no - 1.0) < QUOTE_SUM_TOLERANCE
