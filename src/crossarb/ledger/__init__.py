"""In-memory position ledger."""

from crossarb.ledger.positions import PositionLedger

__all__ = ["PositionLedger"]
