"""Settlement reconciliation against venue oracles."""

from crossarb.settlement.reconciler import SettlementReconciler, position_won

__all__ = ["SettlementReconciler", "position_won"]
